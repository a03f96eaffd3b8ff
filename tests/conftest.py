import pytest
import os
import tempfile
from datetime import date
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["CERTIFICATE_DIR"] = tempfile.mkdtemp(prefix="leavetrack-certs-")

from leavetrack.database import Base, get_db
from leavetrack.main import app
from fastapi.testclient import TestClient

# SQLite in-memory database configuration
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

ADMIN_PASSWORD = "AdminPassword123!"
EMPLOYEE_PASSWORD = "EmployeePassword123!"

@pytest.fixture(scope="session", autouse=True)
def setup_database():
    """Create tables once for the whole test session."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture(scope="function")
def db_session():
    """Get a clean database session for each test function with rollback safety."""
    connection = engine.connect()
    transaction = connection.begin()
    # Use sessionmaker with the active connection
    session = TestingSessionLocal(bind=connection)

    yield session

    session.close()
    transaction.rollback()
    connection.close()

@pytest.fixture(scope="function")
def admin_user(db_session):
    """Create a default administrator for tests."""
    from leavetrack.models.user import User, UserRole
    from leavetrack.services import auth as auth_service

    user = User(
        email="admin@leavetrack.io",
        hashed_password=auth_service.get_password_hash(ADMIN_PASSWORD),
        first_name="Alice",
        last_name="Admin",
        role=UserRole.ADMIN,
        is_active=True,
        hire_date=date(2015, 1, 5),
    )
    db_session.add(user)
    db_session.commit()
    return user

@pytest.fixture(scope="function")
def employee_user(db_session):
    """Create a regular employee hired in April 2024."""
    from leavetrack.models.user import User, UserRole
    from leavetrack.services import auth as auth_service

    user = User(
        email="bob@leavetrack.io",
        hashed_password=auth_service.get_password_hash(EMPLOYEE_PASSWORD),
        first_name="Bob",
        last_name="Martin",
        department="Support",
        role=UserRole.EMPLOYEE,
        is_active=True,
        hire_date=date(2024, 4, 15),
    )
    db_session.add(user)
    db_session.commit()
    return user

@pytest.fixture(scope="function")
def get_token():
    """Helper fixture to create access tokens."""
    from leavetrack.services.auth import create_access_token

    def _get_token(user):
        return create_access_token(data={
            "sub": user.email,
            "user_id": user.id,
            "role": user.role.value,
            "type": "access"
        })
    return _get_token

@pytest.fixture(scope="function")
def auth_headers(get_token):
    def _auth_headers(user):
        return {"Authorization": f"Bearer {get_token(user)}"}
    return _auth_headers

@pytest.fixture(scope="function")
def client(db_session):
    """Get a TestClient that uses the test database session via dependency override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
