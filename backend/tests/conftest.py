import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from rowchain.database import Base, get_db
from rowchain.main import app
from rowchain.models.document import Document
from rowchain.services import lifecycle_service, save_service

TEST_DB_URL = "sqlite:///./test_rowchain.db"

engine = create_engine(TEST_DB_URL, connect_args={"check_same_thread": False})
TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.create_all(bind=engine)
    yield
    lifecycle_service.clear()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def document(db):
    doc = Document(title="초안", content="첫 번째 내용")
    assert save_service.save(db, doc)
    return doc


def edit(db, entity, **changes) -> bool:
    for key, value in changes.items():
        setattr(entity, key, value)
    return save_service.save(db, entity)
