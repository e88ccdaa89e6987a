"""
Database session management.
"""
from contextlib import contextmanager
from typing import Generator
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import QueuePool, StaticPool
import config


class DatabaseSession:
    """Database session manager class."""

    def __init__(self, database_url: str, echo: bool = None):
        """Initialize database engine and session factory."""
        if echo is None:
            echo = config.config.DATABASE_ECHO

        if database_url.startswith("sqlite"):
            # One shared connection, otherwise every checkout of an
            # in-memory database sees an empty schema
            self.engine = create_engine(
                database_url,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
                echo=echo,
            )
        else:
            self.engine = create_engine(
                database_url,
                poolclass=QueuePool,
                pool_size=config.config.DATABASE_POOL_SIZE,
                max_overflow=config.config.DATABASE_MAX_OVERFLOW,
                pool_pre_ping=True,  # Verify connections before using
                echo=echo,
            )
        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=self.engine
        )

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """
        Get database session context manager.

        Everything done inside the block is one transaction: it is committed
        when the block exits normally and rolled back on any exception.
        """
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def create_tables(self):
        """Create all database tables."""
        from database.models import Base
        Base.metadata.create_all(bind=self.engine)

    def drop_tables(self):
        """Drop all database tables."""
        from database.models import Base
        Base.metadata.drop_all(bind=self.engine)

    def dispose(self):
        """Close all pooled connections."""
        self.engine.dispose()


# Global database session instance
_db_session: DatabaseSession | None = None


def get_db_session() -> DatabaseSession:
    """Get or create global database session instance."""
    global _db_session
    if _db_session is None:
        config.config.validate()
        _db_session = DatabaseSession(config.config.DATABASE_URL)
    return _db_session


@contextmanager
def db_session() -> Generator[Session, None, None]:
    """Context manager for database session."""
    db = get_db_session()
    with db.get_session() as session:
        yield session
