from sqlalchemy import Column, Integer, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from leavetrack.database import Base

class LeaveBalance(Base):
    __tablename__ = "leave_balances"
    __table_args__ = (
        UniqueConstraint("user_id", "year", name="uq_leave_balance_user_year"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    year = Column(Integer, nullable=False, index=True)
    initial_paid_leave = Column(Integer, nullable=False, default=22)
    initial_sick_leave = Column(Integer, nullable=False, default=15)
    remaining_paid_leave = Column(Integer, nullable=False, default=22)
    remaining_sick_leave = Column(Integer, nullable=False, default=15)
    carried_over_from_previous_year = Column(Integer, nullable=False, default=0)
    carried_over_to_next_year = Column(Integer, nullable=False, default=0)
    # Paid days carry_over took out of remaining_paid_leave; a repeated carry_over gives these back
    carried_over_set_aside = Column(Integer, nullable=False, default=0)

    user = relationship("User", back_populates="leave_balances")

    def __repr__(self):
        return f"<LeaveBalance user={self.user_id} year={self.year} paid={self.remaining_paid_leave}+{self.carried_over_from_previous_year}>"

    @property
    def available_paid_leave(self) -> int:
        return self.remaining_paid_leave + self.carried_over_from_previous_year
