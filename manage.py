"""Management CLI commands."""

import json
import sys

from flask import Flask

from commute_match import create_app, db


DEMO_PROFILES = [
    {
        "full_name": "Ana Lopez",
        "email": "ana@example.com",
        "preferences": {
            "profession": "Software Engineer",
            "about_me": "Backend developer who cycles to work and listens to tech podcasts.",
            "languages": ["English", "Spanish"],
            "interests": ["cycling", "podcasts", "open source"],
            "commute_start": "08:00",
            "commute_end": "09:00",
            "commute_days": ["MONDAY", "WEDNESDAY", "FRIDAY"],
        },
    },
    {
        "full_name": "Ben Carter",
        "email": "ben@example.com",
        "preferences": {
            "profession": "Data Scientist",
            "about_me": "Likes board games, machine learning and quiet morning rides.",
            "languages": ["English"],
            "interests": ["board games", "machine learning", "cycling"],
            "commute_start": "08:15",
            "commute_end": "09:15",
            "commute_days": ["MONDAY", "FRIDAY"],
        },
    },
    {
        "full_name": "Chloe Martin",
        "email": "chloe@example.com",
        "preferences": {
            "profession": "Nurse",
            "about_me": "Night shift nurse, reads novels on the train.",
            "languages": ["English", "French"],
            "interests": ["reading", "yoga"],
            "commute_start": "22:00",
            "commute_end": "02:00",
            "commute_days": ["TUESDAY", "THURSDAY", "SATURDAY"],
        },
    },
]


def init_db(app: Flask) -> None:
    """Create all tables directly (development convenience; production uses migrate)."""
    with app.app_context():
        db.create_all()
        app.logger.info("Database initialized successfully")


def drop_db(app: Flask, confirm: bool = False) -> None:
    """Drop all database tables."""
    if not confirm:
        response = input("Are you sure you want to drop all tables? [y/N]: ")
        if response.lower() != "y":
            print("Operation cancelled")
            return

    with app.app_context():
        db.drop_all()
        app.logger.info("Database dropped successfully")


def migrate(app: Flask) -> None:
    """Run database migrations."""
    from alembic.config import Config
    from alembic import command

    alembic_cfg = Config("alembic.ini")

    with app.app_context():
        command.upgrade(alembic_cfg, "head")
        print("Migrations completed successfully")


def create_migration(app: Flask, message: str) -> None:
    """Create a new migration."""
    from alembic.config import Config
    from alembic import command

    alembic_cfg = Config("alembic.ini")

    with app.app_context():
        command.revision(alembic_cfg, autogenerate=True, message=message)
        print(f"Migration created with message: {message}")


def stamp_db(app: Flask, revision: str = "head") -> None:
    """Stamp database with a specific migration version without running it."""
    from alembic.config import Config
    from alembic import command

    alembic_cfg = Config("alembic.ini")

    with app.app_context():
        command.stamp(alembic_cfg, revision)
        print(f"Database stamped with revision: {revision}")


def embeddings_backfill(app: Flask, limit: int = None) -> None:
    """Generate missing or stale embeddings."""
    from commute_match.services import build_matching_preferences_service

    with app.app_context():
        limit = limit or app.config.get("BULK_EMBEDDING_DEFAULT_LIMIT", 50)
        service = build_matching_preferences_service()
        results = service.bulk_generate_embeddings(limit)
        print(json.dumps(results, indent=2))


def embeddings_stats(app: Flask) -> None:
    """Print embedding coverage."""
    from commute_match.services import build_matching_preferences_service

    with app.app_context():
        service = build_matching_preferences_service()
        print(json.dumps(service.get_embedding_stats(), indent=2))


def seed_demo(app: Flask) -> None:
    """Insert demo users with matching preferences (embeddings come from the backfill)."""
    from sqlalchemy import select

    from commute_match.models import User, UserMatchingPreference

    with app.app_context():
        created = 0
        for entry in DEMO_PROFILES:
            existing = db.session.execute(
                select(User).where(User.email == entry["email"])
            ).scalar_one_or_none()
            if existing:
                continue

            user = User(full_name=entry["full_name"], email=entry["email"])
            db.session.add(user)
            db.session.flush()
            db.session.add(UserMatchingPreference(user_id=user.id, **entry["preferences"]))
            created += 1

        db.session.commit()
        print(f"Seeded {created} demo users. Run 'embeddings-backfill' to generate embeddings.")


if __name__ == "__main__":
    app = create_app()

    commands = {
        "init-db": lambda: init_db(app),
        "drop-db": lambda: drop_db(app),
        "migrate": lambda: migrate(app),
        "create-migration": lambda: create_migration(app, sys.argv[2] if len(sys.argv) > 2 else "auto"),
        "stamp": lambda: stamp_db(app, sys.argv[2] if len(sys.argv) > 2 else "head"),
        "embeddings-backfill": lambda: embeddings_backfill(
            app,
            limit=int(sys.argv[2]) if len(sys.argv) > 2 else None
        ),
        "embeddings-stats": lambda: embeddings_stats(app),
        "seed-demo": lambda: seed_demo(app),
    }

    if len(sys.argv) < 2:
        print("Usage: python manage.py <command>")
        print("\nCommands:")
        print("  init-db             - Create tables without migrations")
        print("  drop-db             - Drop all tables")
        print("  migrate             - Run migrations")
        print("  create-migration    - Create new migration")
        print("  stamp               - Mark database as at specific revision")
        print("                        Usage: stamp [revision] (default: head)")
        print("\nEmbedding Commands:")
        print("  embeddings-backfill - Generate missing embeddings")
        print("                        Usage: embeddings-backfill [limit]")
        print("  embeddings-stats    - Show embedding coverage")
        print("\nData Commands:")
        print("  seed-demo           - Seed demo users and preferences")
        sys.exit(1)

    command = sys.argv[1]
    if command not in commands:
        print(f"Unknown command: {command}")
        sys.exit(1)

    commands[command]()
