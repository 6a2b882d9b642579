from datetime import datetime
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from config import get_settings
from database import Base
from tests.models import Department, Post, Profile, User


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def fresh_settings(monkeypatch: pytest.MonkeyPatch):
    """Re-read settings after the test has changed the environment."""
    get_settings.cache_clear()
    yield monkeypatch
    get_settings.cache_clear()


@pytest.fixture
def session_factory(tmp_path: Path):
    """Temporary SQLite database seeded with five users."""
    db_path = tmp_path / "query_builder.db"
    engine = create_engine(f"sqlite:///{db_path.as_posix()}", connect_args={"check_same_thread": False})
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    with SessionLocal() as db:
        hr = Department(id=1, name="HR")
        engineering = Department(id=2, name="Engineering")
        db.add_all([hr, engineering])
        db.add_all([
            User(id=1, name="John Smith", email="john@example.com", status="ACTIVE", age=30,
                 created_at=datetime(2024, 1, 1), department=engineering,
                 profile=Profile(city="Johnstown", country="USA"),
                 posts=[Post(title="Hello", published=True)]),
            User(id=2, name="Jane Doe", email="jane@example.com", status="ACTIVE", age=25,
                 created_at=datetime(2024, 1, 2), department=hr,
                 profile=Profile(city="Paris", country="France")),
            User(id=3, name="Bob Johnson", email="bob@example.com", status="BANNED", age=40,
                 is_active=False, created_at=datetime(2024, 1, 3), department=engineering,
                 profile=Profile(city="Austin", country="USA"),
                 posts=[Post(title="Draft", published=False), Post(title="Notes", published=True)]),
            User(id=4, name="Alice", email="alice@example.com", status="ACTIVE", age=35,
                 created_at=datetime(2024, 1, 4)),
            User(id=5, name="Carol_100%", email="carol@example.com", status="ACTIVE", age=28,
                 created_at=datetime(2024, 1, 5), department=hr),
        ])
        db.commit()

    yield SessionLocal
    engine.dispose()
