import logging
from datetime import datetime

from sqlalchemy import create_engine, event, text, Column, Integer, String, DateTime
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base

from study_planner.config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()


def build_engine(database_url: str, **engine_kwargs) -> Engine:
    """Create an engine; SQLite gets foreign keys enabled on every connection"""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False

    engine = create_engine(database_url, connect_args=connect_args, **engine_kwargs)

    if engine.dialect.name == "sqlite":
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


engine = build_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class SchemaVersion(Base):
    """Applied migrations"""
    __tablename__ = "schema_version"

    version = Column(Integer, primary_key=True)
    description = Column(String, nullable=False)
    applied_at = Column(DateTime, default=datetime.utcnow)


def _create_tables(connection):
    # Import models so every table is registered on Base.metadata
    import study_planner.models  # noqa: F401
    Base.metadata.create_all(bind=connection)


def _add_reporting_indexes(connection):
    connection.execute(text(
        "CREATE INDEX IF NOT EXISTS ix_planner_slots_user_day ON planner_slots (user_id, day_of_week)"
    ))
    connection.execute(text(
        "CREATE INDEX IF NOT EXISTS ix_progress_user_date ON progress (user_id, date)"
    ))
    connection.execute(text(
        "CREATE INDEX IF NOT EXISTS ix_tasks_user_created_date ON tasks (user_id, created_date)"
    ))


# Append only; applied in order, each exactly once
MIGRATIONS = [
    (1, "initial schema", _create_tables),
    (2, "reporting indexes", _add_reporting_indexes),
]


def init_db(bind: Engine = None) -> int:
    """
    Apply pending migrations. Safe to call on every startup.

    Returns:
        Number of migrations applied
    """
    bind = bind or engine
    SchemaVersion.__table__.create(bind=bind, checkfirst=True)

    applied = 0
    with bind.begin() as connection:
        done = {row[0] for row in connection.execute(text("SELECT version FROM schema_version"))}
        for version, description, migrate in MIGRATIONS:
            if version in done:
                continue
            logger.info(f"Applying migration {version}: {description}")
            migrate(connection)
            connection.execute(
                SchemaVersion.__table__.insert().values(
                    version=version, description=description, applied_at=datetime.utcnow()
                )
            )
            applied += 1

    return applied


def drop_db(bind: Engine = None):
    """Drop every table, including the migration history"""
    import study_planner.models  # noqa: F401
    Base.metadata.drop_all(bind=bind or engine)


def get_db():
    """Yield a session per request"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
