from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, declarative_base, Session
from sqlalchemy.orm.exc import StaleDataError
from pydantic_settings import BaseSettings
from fastapi import HTTPException, status
import logging

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./twowheels.db"  # Default to SQLite
    SECRET_KEY: str = "change-me-in-production"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 12
    LOG_LEVEL: str = "INFO"

    model_config = {
        "env_file": ".env",
        "case_sensitive": True,
    }


settings = Settings()

# Handle SQLite special case
if settings.DATABASE_URL.startswith("sqlite"):
    engine = create_engine(
        settings.DATABASE_URL,
        connect_args={"check_same_thread": False}
    )
else:
    engine = create_engine(settings.DATABASE_URL)

# Create a session local to the database
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# The base for all declarative SQLAlchemy models
Base = declarative_base()


# Dependency to get DB session (FastAPI style)
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def commit_or_fail(db: Session, action: str) -> None:
    """Commit the session, or roll back and raise 503 if the store refuses the write.

    A versioned row changed by someone else since it was loaded raises 409.

    Callers must not touch any confirmed state until this returns.
    """
    try:
        db.commit()
    except StaleDataError:
        db.rollback()
        logger.warning(f"Concurrent change detected while trying to {action}")
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Could not {action}, the record was changed by someone else. Reload and try again"
        )
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Store write failed while trying to {action}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Could not {action}, nothing was saved"
        )
