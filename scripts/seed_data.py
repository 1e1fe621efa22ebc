import sys
from datetime import date, timedelta
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from app.core.config import get_config
from app.core.exceptions import PipelineError
from app.database.db import build_engine, build_session_factory, create_schema, session_scope
from app.models import Client
from app.services.client_service import ClientService
from app.services.task_service import TaskService

DEMO_CLIENT = {
    "name": "Sarah Connor",
    "email": "demo@example.com",
    "phone": "604-555-0100",
    "file_type": "Residential",
    "stage": "Docs Requested",
    "assigned_to": "Assistant",
    "bank": "First Coastal",
}


def seed_pipeline():
    config = get_config()
    engine = build_engine(config.DATABASE_URL)
    create_schema(engine)

    with session_scope(build_session_factory(engine)) as db:
        existing = db.query(Client).filter(Client.email == DEMO_CLIENT["email"]).first()
        if existing:
            print("Seed client already exists.")
            return

        print("Seeding demo client...")
        try:
            client = ClientService(db).create_client(DEMO_CLIENT)
            TaskService(db).create_task(
                {
                    "title": "Collect T4s and paystubs",
                    "assigned_to": "Assistant",
                    "due_date": date.today() + timedelta(days=2),
                    "client_id": client.id,
                }
            )
        except PipelineError as e:
            print(f"Error seeding data: {e}")
            return
        print(f"Seeded client: {client.name} ({client.stage})")


if __name__ == "__main__":
    seed_pipeline()
