from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

Base = declarative_base()


def create_db_engine(database_url: str, echo: bool = False):
    """Engine usable from worker threads; in-memory SQLite shares one connection."""
    connect_args = {}
    engine_kwargs = {"echo": echo}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        if ":memory:" in database_url:
            engine_kwargs["poolclass"] = StaticPool
    return create_engine(database_url, connect_args=connect_args, **engine_kwargs)


def create_session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def init_db(engine) -> None:
    # Table classes must be imported so they register with Base.metadata
    from . import application, user  # noqa: F401
    Base.metadata.create_all(bind=engine)
