from sqlalchemy.orm import Session


class BaseService:
    """
    Common plumbing for session-bound services.
    Services own the transaction boundary: they commit, and roll back when the commit fails.
    """

    def __init__(self, db: Session):
        self.db = db

    def commit(self):
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
