from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from leavetrack.core.config import settings

# Support both PostgreSQL and SQLite via centralized settings
DATABASE_URL = settings.database_url

if DATABASE_URL.startswith("postgresql"):
    engine = create_engine(DATABASE_URL)
else:
    # SQLite configuration for local development/testing
    engine = create_engine(
        DATABASE_URL, connect_args={"check_same_thread": False}
    )

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def get_db():
    """
    Session Provider: Provides a database session per request.
    Transaction management is handled explicitly in the Service Layer.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def init_db():
    """
    Registers all domain models and initializes the database schema.
    This should be called during the application startup lifespan.
    """
    # Import all models to ensure they are registered with Base.metadata before create_all
    from leavetrack.models import user, leave, permission, holiday, leave_balance  # noqa: F401
    Base.metadata.create_all(bind=engine)
