import logging
from pathlib import Path

from sqlalchemy import Engine, create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


Base = declarative_base()


def build_engine(database_url: str) -> Engine:
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return create_engine(database_url, future=True, echo=False)

    if not url.database or url.database == ":memory:":
        # In-memory databases live as long as their single connection
        return create_engine(
            database_url,
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    db_path = Path(url.database)
    if not db_path.parent.exists():
        db_path.parent.mkdir(parents=True, exist_ok=True)
        logger.info(f"Created database directory: {db_path.parent}")
    return create_engine(database_url, echo=False)


def build_sessionmaker(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(engine, expire_on_commit=False)


def init_models(engine: Engine) -> None:
    import chat_digest.models.conversation  # noqa: F401
    import chat_digest.models.message  # noqa: F401
    import chat_digest.models.summary  # noqa: F401

    Base.metadata.create_all(engine)
    logger.debug(f"Database schema ready: {sorted(Base.metadata.tables)}")
