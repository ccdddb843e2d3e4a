from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

from ..app.config import Config

# Create a base class for our models
Base = declarative_base()


def create_session_factory(database_url: str):
    """Build an engine and a configured "Session" class for the given URL."""
    kwargs = {}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        # in-memory databases must share a single connection
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    engine = create_engine(database_url, **kwargs)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    return engine, factory


# Create the SQLAlchemy engine
engine, SessionLocal = create_session_factory(Config.DATABASE_URL)


def get_db():
    """Dependency to get a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables(bind=None):
    """Create all tables in the database."""
    # Import all models here before calling create_all
    # This ensures they are registered with the Base metadata
    from .models import Product, ProductStock, Purchase, User  # noqa: F401
    Base.metadata.create_all(bind=bind or engine)


if __name__ == "__main__":
    create_tables()
    print("Database tables created successfully.")
