from sqlalchemy import Column, Integer, String, Date, Numeric, ForeignKey, DateTime, JSON
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from leavetrack.database import Base
import enum

class LeaveStatus(str, enum.Enum):
    PENDING = "En attente"
    APPROVED = "Approuvé"
    REJECTED = "Rejeté"

class LeaveType(str, enum.Enum):
    PAID = "Congé payé"
    SICK = "Congé maladie"
    UNPAID = "Congé sans solde"

    @property
    def balance_pool(self):
        """Balance pool a type draws from: "paid", "sick" or None for unpaid leave."""
        return {LeaveType.PAID: "paid", LeaveType.SICK: "sick"}.get(self)

class Leave(Base):
    __tablename__ = "leaves"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String, nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    total_days = Column(Numeric(5, 1), nullable=False, default=0)
    half_day_options = Column(JSON, nullable=False, default=list)  # ISO dates counted as half days
    reason = Column(String, nullable=True)
    status = Column(String, nullable=False, default=LeaveStatus.PENDING.value, index=True)  # String keeps SQLite simple
    certificate = Column(String, nullable=True)  # original filename shown to users
    certificate_path = Column(String, nullable=True)  # stored file name inside the certificate dir
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="leaves")
