import pytest
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from study_planner import crud
from study_planner.database import build_engine, init_db
from study_planner.schemas import UserCreate, SubjectCreate


@pytest.fixture(scope="function")
def engine():
    # Fresh in-memory database per test; StaticPool keeps the one connection alive
    test_engine = build_engine("sqlite://", poolclass=StaticPool)
    init_db(bind=test_engine)
    try:
        yield test_engine
    finally:
        test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def user(db):
    return crud.create_user(db, UserCreate(name="Ada", email="ada@example.com"))


@pytest.fixture
def other_user(db):
    return crud.create_user(db, UserCreate(name="Grace", email="grace@example.com"))


@pytest.fixture
def math(db, user):
    return crud.create_subject(db, user.id, SubjectCreate(name="Math", color="#10B981"))


@pytest.fixture
def physics(db, user):
    return crud.create_subject(db, user.id, SubjectCreate(name="Physics"))
