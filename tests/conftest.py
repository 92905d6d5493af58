"""Shared test setup: temporary data dir, fresh tables per test, factories."""

import os
import tempfile
from datetime import datetime

# Setup environment for testing (before albumguard.config is imported)
os.environ["ALBUMGUARD_DATA_DIR"] = tempfile.mkdtemp()
os.environ["ALBUMGUARD_DB_PATH"] = os.path.join(os.environ["ALBUMGUARD_DATA_DIR"], "test.db")

import pytest
from fastapi.testclient import TestClient
from sqlmodel import SQLModel, Session, select

from albumguard.database import engine, init_db
from albumguard.models import AlbumAsset, Asset, AssetVisibility, User
from albumguard.repositories import SqlAccessChecker, SqlAlbumStore, SqlAssetStore, SqlUserStore
from albumguard.services.album_service import AlbumService
from albumguard.services.events import EventBus
from albumguard.utils.locks import KeyedLock
from albumguard.utils.security import create_access_token


class RecordingEventBus(EventBus):
    def __init__(self):
        super().__init__()
        self.recorded: list[tuple[str, dict]] = []
        self.subscribe(lambda name, payload: self.recorded.append((name, payload)))


@pytest.fixture(autouse=True)
def db():
    SQLModel.metadata.drop_all(engine)
    init_db()
    yield


@pytest.fixture
def session():
    with Session(engine) as s:
        yield s


@pytest.fixture
def make_user(session):
    def _make(name: str = "alice") -> User:
        user = User(name=name)
        session.add(user)
        session.commit()
        session.refresh(user)
        return user
    return _make


@pytest.fixture
def make_asset(session):
    counter = iter(range(1, 10_000))

    def _make(
        owner: User,
        visibility: AssetVisibility = AssetVisibility.TIMELINE,
        file_created_at: datetime | None = None,
    ) -> Asset:
        asset = Asset(
            owner_id=owner.id,
            original_file_name=f"IMG_{next(counter):04d}.jpg",
            visibility=visibility.value,
            file_created_at=file_created_at,
        )
        session.add(asset)
        session.commit()
        session.refresh(asset)
        return asset
    return _make


@pytest.fixture
def events():
    return RecordingEventBus()


@pytest.fixture
def service(session, events):
    return AlbumService(
        albums=SqlAlbumStore(session),
        assets=SqlAssetStore(session),
        access=SqlAccessChecker(session),
        users=SqlUserStore(session),
        events=events,
        locks=KeyedLock(),
    )


@pytest.fixture
def client():
    from albumguard.main import app

    with TestClient(app) as c:
        yield c


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


def visibility_of(session: Session, asset_id: str) -> str:
    session.expire_all()
    return session.get(Asset, asset_id).visibility


def albums_of(session: Session, asset_id: str) -> set[str]:
    session.expire_all()
    return set(session.exec(select(AlbumAsset.album_id).where(AlbumAsset.asset_id == asset_id)).all())
