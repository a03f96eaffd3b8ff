import logging
from leavetrack.core.config import settings
from leavetrack.database import SessionLocal
from leavetrack.models.user import User, UserRole
from leavetrack.services import auth as auth_service

logger = logging.getLogger(__name__)

def init_system_data():
    """
    Creates the first administrator when the users table is empty and
    BOOTSTRAP_ADMIN_EMAIL / BOOTSTRAP_ADMIN_PASSWORD are configured.
    """
    if not settings.bootstrap_admin_email or not settings.bootstrap_admin_password:
        return

    db = SessionLocal()
    try:
        user_count = db.query(User).count()
        if user_count == 0:
            logger.info("Running startup initialization...")
            admin_user = User(
                email=settings.bootstrap_admin_email,
                hashed_password=auth_service.get_password_hash(settings.bootstrap_admin_password),
                first_name="Admin",
                last_name="",
                role=UserRole.ADMIN,
                is_active=True
            )
            db.add(admin_user)
            db.commit()
            logger.info(f"Created bootstrap admin: {settings.bootstrap_admin_email}")
        else:
            logger.info(f"System initialization check: {user_count} user(s) found.")
    except Exception as e:
        db.rollback()
        logger.error(f"Error during system initialization check: {str(e)}", exc_info=True)
    finally:
        db.close()
