import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app import models  # noqa: F401
from app.api.v1.endpoints import alarms, config, health, materials, users
from app.core.database import Base, get_db
from app.models.user import User, UserRole


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def users_by_role(db) -> dict[UserRole, int]:
    ids = {}
    for index, role in enumerate(UserRole):
        user = User(
            name=role.value.title(),
            email=f"{role.value.lower()}@example.com",
            matricula=f"{index:06d}",
            role=role,
        )
        db.add(user)
        db.commit()
        ids[role] = user.id
    return ids


@pytest.fixture
def api_app(session_factory) -> FastAPI:
    app = FastAPI()
    for module in (health, materials, users, alarms, config):
        app.include_router(module.router, prefix="/api/v1")

    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    return app


@pytest.fixture
def client(api_app) -> TestClient:
    return TestClient(api_app)

