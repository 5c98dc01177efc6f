from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import get_settings

settings = get_settings()

engine = create_engine(settings.database_url, pool_pre_ping=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextmanager
def run_in_transaction(db: Session) -> Iterator[Session]:
    """Commit everything done inside the block, or roll all of it back on any error."""
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
