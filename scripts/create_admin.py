import sys
import os
import argparse
import logging
from sqlalchemy.orm import Session

# Ensure we can import leavetrack modules
sys.path.append(os.getcwd())

from leavetrack.database import SessionLocal, init_db
from leavetrack.models.user import User, UserRole
from leavetrack.services.auth import get_password_hash

# Configure logging
logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)

def create_admin_user(email: str, password: str, first_name: str, last_name: str):
    init_db()
    db: Session = SessionLocal()
    try:
        # Check if admin already exists
        existing_user = db.query(User).filter(User.email == email).first()
        if existing_user:
            logger.warning(f"User '{email}' already exists.")
            return

        admin_user = User(
            email=email,
            hashed_password=get_password_hash(password),
            first_name=first_name,
            last_name=last_name,
            role=UserRole.ADMIN,
            is_active=True,
        )

        db.add(admin_user)
        db.commit()
        db.refresh(admin_user)

        logger.info(f"Admin user {email} created successfully (id={admin_user.id}). You can now login.")

    except Exception as e:
        logger.error(f"Error creating admin user: {e}")
        db.rollback()
    finally:
        db.close()

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create a LeaveTrack administrator")
    parser.add_argument("email")
    parser.add_argument("password")
    parser.add_argument("--first-name", default="Admin")
    parser.add_argument("--last-name", default="")
    args = parser.parse_args()
    create_admin_user(args.email, args.password, args.first_name, args.last_name)
