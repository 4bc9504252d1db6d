# scripts/seed.py
# Propósito: Sembrar clientes de ejemplo en la base configurada (DATABASE_URL).
# Uso: python scripts/seed.py [--clear] [--reset]

import argparse
import logging
import sys

from sqlalchemy import delete, func, or_, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from app.core.settings import settings
from app.db.models import Client
from app.db.session import create_db_engine, create_session_factory, init_db, is_db_initialized, reset_db
from app.models.client import ClientCreate
from app.services.client_repository import ClientRepository
from app.utils.errors import AppError, DuplicateError
from app.utils.logging import setup_logging

logger = logging.getLogger("seed")

SAMPLE_CLIENTS = [
    {"name": "John Smith", "email": "john.smith@email.com", "phone": "(555) 123-4567"},
    {"name": "Maria Rodriguez", "email": "maria.rodriguez@gmail.com", "phone": "555-987-6543"},
    {"name": "James Johnson Jr.", "email": "james.johnson@company.com", "phone": "(555) 456-7890"},
    {"name": "Sarah O'Connor", "email": "sarah.oconnor@outlook.com", "phone": "555.321.9876"},
    {"name": "Michael Chen", "email": "michael.chen@tech.io", "phone": "(555) 654-3210"},
    {"name": "Emma Thompson", "email": "emma.thompson@design.co", "phone": None},
    {"name": "David Wilson", "email": "david.wilson@startup.com", "phone": "555-789-0123"},
    {"name": "Lisa Anderson", "email": "lisa.anderson@freelance.net", "phone": "(555) 098-7654"},
    {"name": "Robert Brown", "email": "robert.brown@consulting.biz", "phone": "555 432 1098"},
    {"name": "Jennifer Davis", "email": "jennifer.davis@marketing.agency", "phone": "(555) 567-8901"},
]


def seed(engine: Engine, clear_first: bool = False) -> list:
    """
    Inserta SAMPLE_CLIENTS vía ClientRepository (misma validación que la API).
    Si la tabla ya tiene datos y no se pide clear_first, no inserta nada.
    """
    if not is_db_initialized(engine):
        logger.info("📋 Database not initialized, initializing first...")
        init_db(engine)

    session_factory = create_session_factory(engine)
    inserted = []
    with session_factory() as db:
        if clear_first:
            logger.info("🧹 Clearing existing client data...")
            db.execute(delete(Client))
            db.commit()

        existing = db.scalar(select(func.count()).select_from(Client))
        if existing:
            logger.info(f"📊 Database already contains {existing} clients; use --clear to replace them")
            return []

        repo = ClientRepository(db)
        for data in SAMPLE_CLIENTS:
            try:
                client = repo.create(ClientCreate(**data))
            except DuplicateError:
                logger.warning(f"⚠️ Client with email {data['email']} already exists, skipping...")
                continue
            inserted.append(client)
            logger.info(f"✅ Inserted: {client.name} ({client.email})")

    logger.info(f"📊 Seeding summary: inserted={len(inserted)} skipped={len(SAMPLE_CLIENTS) - len(inserted)}")
    return inserted


def verify(engine: Engine) -> dict:
    """Comprueba campos obligatorios, emails únicos y timestamps."""
    with Session(engine) as db:
        invalid = db.scalars(
            select(Client.id).where(
                or_(Client.name.is_(None), Client.name == "", Client.email.is_(None), Client.email == "")
            )
        ).all()
        duplicates = db.execute(
            select(Client.email, func.count()).group_by(Client.email).having(func.count() > 1)
        ).all()
        missing_ts = db.scalars(
            select(Client.id).where(or_(Client.created_at.is_(None), Client.updated_at.is_(None)))
        ).all()

    errors = []
    if invalid:
        errors.append({"missing_required_fields": list(invalid)})
    if duplicates:
        errors.append({"duplicate_emails": [email for email, _ in duplicates]})
    if missing_ts:
        errors.append({"missing_timestamps": list(missing_ts)})
    return {"valid": not errors, "errors": errors}


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Seed the clients table with sample data")
    parser.add_argument("--clear", action="store_true", help="delete existing clients before seeding")
    parser.add_argument("--reset", action="store_true", help="drop and recreate the schema before seeding")
    args = parser.parse_args(argv)

    setup_logging(settings.LOG_LEVEL)
    engine = create_db_engine(settings.DATABASE_URL)
    try:
        if args.reset:
            reset_db(engine)
            init_db(engine)
        inserted = seed(engine, clear_first=args.clear)
        if inserted:
            report = verify(engine)
            if not report["valid"]:
                logger.error(f"❌ Seed data integrity check failed: {report['errors']}")
                return 1
            logger.info("✅ All seed data integrity checks passed!")
    except AppError as e:
        logger.error(f"❌ Error en seed: {e.message} ({e.details})")
        return 1
    finally:
        engine.dispose()

    logger.info("🎉 Seed completado con éxito.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
