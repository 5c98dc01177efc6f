from dataclasses import dataclass
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_db
from app.core.security import create_access_token
from app.db.base import Base
from app.main import app
from app.models.client import Client
from app.models.mc import Mc
from app.models.platform import Platform
from app.models.show_reference import ShowStandard, ShowStatus, ShowType
from app.models.studio_room import StudioRoom
from app.models.user import User

JUNE_START = datetime(2026, 6, 1, tzinfo=timezone.utc)
JUNE_END = datetime(2026, 7, 1, tzinfo=timezone.utc)


@dataclass
class SeedData:
    user: User
    client: Client
    other_client: Client
    rooms: list[StudioRoom]
    show_type: ShowType
    show_status: ShowStatus
    show_standard: ShowStandard
    mcs: list[Mc]
    platforms: list[Platform]


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db_session(session_factory) -> Session:
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


def seed_reference_data(db: Session) -> SeedData:
    user = User(name="Planner", email="planner@example.com")
    client = Client(name="Acme Beauty", contact_person="Jo", contact_email="jo@acme.example")
    other_client = Client(name="Globex Home")
    rooms = [StudioRoom(name="Room A"), StudioRoom(name="Room B")]
    show_type = ShowType(name="bau")
    show_status = ShowStatus(name="confirmed")
    show_standard = ShowStandard(name="standard")
    mcs = [Mc(name="Alex"), Mc(name="Bea"), Mc(name="Cy")]
    platforms = [Platform(name="Shopee"), Platform(name="TikTok")]
    db.add_all(
        [user, client, other_client, *rooms, show_type, show_status, show_standard, *mcs, *platforms]
    )
    db.commit()
    return SeedData(
        user=user,
        client=client,
        other_client=other_client,
        rooms=rooms,
        show_type=show_type,
        show_status=show_status,
        show_standard=show_standard,
        mcs=mcs,
        platforms=platforms,
    )


@pytest.fixture()
def seed(db_session) -> SeedData:
    return seed_reference_data(db_session)


def plan_item(seed: SeedData, temp_id: str | None, start: str, end: str, **overrides) -> dict:
    """A plan-document show in wire (camelCase) form; times are ISO strings within June 2026."""
    item = {
        "tempId": temp_id,
        "name": f"Show {temp_id}",
        "startTime": start,
        "endTime": end,
        "clientId": seed.client.uid,
        "studioRoomId": seed.rooms[0].uid,
        "showTypeId": seed.show_type.uid,
        "showStatusId": seed.show_status.uid,
        "showStandardId": seed.show_standard.uid,
        "mcs": [],
        "platforms": [],
        "metadata": {},
    }
    item.update(overrides)
    return item


def plan_document(*shows: dict) -> dict:
    return {"metadata": {}, "shows": list(shows)}


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def auth_headers(seed) -> dict:
    token = create_access_token(seed.user.uid)
    return {"Authorization": f"Bearer {token}"}
