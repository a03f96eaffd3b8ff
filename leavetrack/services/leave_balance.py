"""
Leave Balance Service Layer

Yearly leave balances per employee:
- accrual (full year or prorated by months worked)
- deduction of approved leave, carried-over days first
- carry-over of unused paid days into the following year

Every public operation validates before mutating, so a failure leaves the
stored balances untouched, and commits once at the end.
"""
import logging
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from sqlalchemy.orm import Session

from leavetrack.core.config import settings
from leavetrack.core.exceptions import (
    ConflictError,
    InsufficientBalanceError,
    NotFoundError,
    ValidationError,
)
from leavetrack.models.leave_balance import LeaveBalance
from leavetrack.models.user import User
from leavetrack.services.base import BaseService

logger = logging.getLogger(__name__)

PAID = "paid"
SICK = "sick"


def prorate(annual_days: int, months_worked: int) -> int:
    """
    Days granted for a partial year: annual / 12 * months, rounded half away from zero.
    Twelve months or more grant the full annual amount.
    """
    if months_worked < 0:
        raise ValidationError("monthsWorked cannot be negative", details={"monthsWorked": months_worked})
    if months_worked >= 12:
        return annual_days
    exact = Decimal(annual_days) * Decimal(months_worked) / Decimal(12)
    return int(exact.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def months_worked_in_year(hire_date: Optional[date], year: int) -> int:
    """Months from the hire month through December; 12 for earlier hires, 0 for later ones."""
    if hire_date is None or hire_date.year < year:
        return 12
    if hire_date.year > year:
        return 0
    return 12 - hire_date.month + 1


class LeaveBalanceManager(BaseService):
    """
    Owns every write to LeaveBalance rows.
    """

    def __init__(self, db: Session):
        super().__init__(db)
        self.annual_paid_days = settings.accrual.annual_paid_leave_days
        self.annual_sick_days = settings.accrual.annual_sick_leave_days

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------
    def get_yearly_balance(self, user_id: int, year: int) -> Optional[LeaveBalance]:
        return self.db.query(LeaveBalance).filter(
            LeaveBalance.user_id == user_id,
            LeaveBalance.year == year
        ).first()

    def get_balance(self, balance_id: int) -> LeaveBalance:
        balance = self.db.get(LeaveBalance, balance_id)
        if not balance:
            raise NotFoundError(f"Leave balance {balance_id} not found")
        return balance

    def list_balances(self, user_id: Optional[int] = None, year: Optional[int] = None) -> List[LeaveBalance]:
        query = self.db.query(LeaveBalance)
        if user_id is not None:
            query = query.filter(LeaveBalance.user_id == user_id)
        if year is not None:
            query = query.filter(LeaveBalance.year == year)
        return query.order_by(LeaveBalance.user_id, LeaveBalance.year).all()

    def _require_user(self, user_id: int) -> User:
        user = self.db.get(User, user_id)
        if not user:
            raise NotFoundError(f"User {user_id} not found")
        return user

    def _require_yearly_balance(self, user_id: int, year: int) -> LeaveBalance:
        balance = self.get_yearly_balance(user_id, year)
        if not balance:
            raise NotFoundError(
                f"No leave balance found for year {year}",
                details={"user_id": user_id, "year": year}
            )
        return balance

    # ------------------------------------------------------------------
    # Accrual
    # ------------------------------------------------------------------
    def _build_annual_balance(self, user_id: int, year: int) -> LeaveBalance:
        """Adds a full-year balance to the session without committing."""
        previous = self.get_yearly_balance(user_id, year - 1)

        balance = LeaveBalance(
            user_id=user_id,
            year=year,
            initial_paid_leave=self.annual_paid_days,
            initial_sick_leave=self.annual_sick_days,
            remaining_paid_leave=self.annual_paid_days,
            remaining_sick_leave=self.annual_sick_days,
            carried_over_from_previous_year=0,
            carried_over_to_next_year=0,
        )
        # Granted days count in both fields, as adjust_next_year_balance expects
        if previous and previous.carried_over_to_next_year > 0:
            balance.carried_over_from_previous_year = previous.carried_over_to_next_year
            balance.remaining_paid_leave += previous.carried_over_to_next_year

        self.db.add(balance)
        return balance

    def create_annual_balance(self, user_id: int, year: int) -> LeaveBalance:
        self._require_user(user_id)
        if self.get_yearly_balance(user_id, year):
            raise ConflictError(
                f"A leave balance already exists for year {year}",
                details={"user_id": user_id, "year": year}
            )

        balance = self._build_annual_balance(user_id, year)
        self.commit()
        self.db.refresh(balance)
        logger.info(
            f"Created {year} balance for user {user_id}",
            extra={"user_id": user_id, "year": year, "carried_in": balance.carried_over_from_previous_year}
        )
        return balance

    def create_prorated_balance(self, user_id: int, year: int, months_worked: Optional[int] = None) -> LeaveBalance:
        """
        Idempotent: an existing (user, year) balance is returned unchanged.
        Without months_worked, the user's hire date decides.
        """
        existing = self.get_yearly_balance(user_id, year)
        if existing:
            return existing

        user = self._require_user(user_id)
        if months_worked is None:
            months_worked = months_worked_in_year(user.hire_date, year)

        paid = prorate(self.annual_paid_days, months_worked)
        sick = prorate(self.annual_sick_days, months_worked)

        balance = LeaveBalance(
            user_id=user_id,
            year=year,
            initial_paid_leave=paid,
            initial_sick_leave=sick,
            remaining_paid_leave=paid,
            remaining_sick_leave=sick,
            carried_over_from_previous_year=0,
            carried_over_to_next_year=0,
        )
        self.db.add(balance)
        self.commit()
        self.db.refresh(balance)
        logger.info(
            f"Created prorated {year} balance for user {user_id} ({months_worked} months)",
            extra={"user_id": user_id, "year": year, "paid": paid, "sick": sick}
        )
        return balance

    # ------------------------------------------------------------------
    # Deduction
    # ------------------------------------------------------------------
    def deduct(self, user_id: int, year: int, days: int, leave_type: str, commit: bool = True) -> LeaveBalance:
        """
        Paid leave draws on days carried over from last year before this year's days.
        Any other type draws on the sick leave pool.
        """
        if days < 0:
            raise ValidationError("Cannot deduct a negative number of days", details={"days": days})

        balance = self._require_yearly_balance(user_id, year)

        if leave_type == PAID:
            available = balance.available_paid_leave
            if days > available:
                raise InsufficientBalanceError(
                    "Insufficient balance",
                    details={"requested": days, "available": available}
                )
            from_carried_over = min(days, balance.carried_over_from_previous_year)
            from_current = days - from_carried_over
            balance.carried_over_from_previous_year -= from_carried_over
            balance.remaining_paid_leave -= from_current
        else:
            if days > balance.remaining_sick_leave:
                raise InsufficientBalanceError(
                    "Insufficient sick leave balance",
                    details={"requested": days, "available": balance.remaining_sick_leave}
                )
            balance.remaining_sick_leave -= days

        if commit:
            self.commit()
        logger.info(
            f"Deducted {days} {leave_type} day(s) from {year} balance of user {user_id}",
            extra={"user_id": user_id, "year": year, "days": days, "leave_type": leave_type}
        )
        return balance

    # ------------------------------------------------------------------
    # Carry-over
    # ------------------------------------------------------------------
    def adjust_next_year_balance(self, next_balance: LeaveBalance, previous_grant: int, new_grant: int) -> LeaveBalance:
        """
        Replaces the carry-in granted to next_balance (previous_grant) with new_grant.

        Carry-in days already consumed stay consumed, and paid days already
        deducted from next year stay deducted: remaining paid leave moves by
        the difference between the two grants only.
        """
        consumed_carry_in = max(0, previous_grant - next_balance.carried_over_from_previous_year)
        new_carried_in = new_grant - consumed_carry_in
        new_remaining = next_balance.remaining_paid_leave + (new_grant - previous_grant)

        if new_carried_in < 0 or new_remaining < 0:
            raise InsufficientBalanceError(
                f"Cannot reduce the carry-over into {next_balance.year}: days already used",
                details={
                    "year": next_balance.year,
                    "previous_grant": previous_grant,
                    "new_grant": new_grant,
                    "consumed_carry_in": consumed_carry_in,
                }
            )

        next_balance.carried_over_from_previous_year = new_carried_in
        next_balance.remaining_paid_leave = new_remaining
        logger.info(
            f"Adjusted {next_balance.year} balance of user {next_balance.user_id}: carry-in {previous_grant} -> {new_grant}",
            extra={
                "balance_id": next_balance.id,
                "carried_in": new_carried_in,
                "remaining_paid": new_remaining,
            }
        )
        return next_balance

    def carry_over(self, user_id: int, from_year: int, days_to_carry_over: int) -> LeaveBalance:
        """
        Moves unused paid days of from_year into from_year + 1, creating that
        balance when needed. Returns the next year's balance.
        """
        if days_to_carry_over < 0:
            raise ValidationError("Cannot carry over a negative number of days")

        current = self._require_yearly_balance(user_id, from_year)
        # A repeated carry-over replaces the previous one: only the days an earlier
        # carry_over took out of remaining_paid_leave go back first
        available = current.remaining_paid_leave + current.carried_over_set_aside
        if days_to_carry_over > available:
            raise InsufficientBalanceError(
                f"Days to carry over ({days_to_carry_over}) exceed the remaining balance ({available})",
                details={"requested": days_to_carry_over, "available": available}
            )

        previous_grant = current.carried_over_to_next_year
        next_balance = self.get_yearly_balance(user_id, from_year + 1)
        if next_balance is None:
            # Built with previous_grant already counted in, like any seeded balance
            next_balance = self._build_annual_balance(user_id, from_year + 1)
        self.adjust_next_year_balance(next_balance, previous_grant, days_to_carry_over)

        current.carried_over_to_next_year = days_to_carry_over
        current.carried_over_set_aside = days_to_carry_over
        current.remaining_paid_leave = available - days_to_carry_over
        self.commit()
        self.db.refresh(current)
        self.db.refresh(next_balance)
        return next_balance

    def apply_balance_update(self, balance_id: int, carried_over_to_next_year: Optional[int]) -> LeaveBalance:
        """
        Update path for a balance record: only carried_over_to_next_year is
        client-controlled, every other field keeps its stored value. A change
        is propagated to the following year's balance when it exists.
        """
        balance = self.get_balance(balance_id)
        old_value = balance.carried_over_to_next_year

        if carried_over_to_next_year is None or carried_over_to_next_year == old_value:
            return balance
        if carried_over_to_next_year < 0:
            raise ValidationError("carriedOverToNextYear cannot be negative")

        logger.debug(
            "Processing leave balance update",
            extra={
                "balance_id": balance.id,
                "year": balance.year,
                "user_id": balance.user_id,
                "old_carry_over": old_value,
                "new_carry_over": carried_over_to_next_year,
            }
        )

        next_balance = self.get_yearly_balance(balance.user_id, balance.year + 1)
        if next_balance is not None:
            self.adjust_next_year_balance(next_balance, old_value, carried_over_to_next_year)
        else:
            logger.warning(
                f"No balance found for {balance.year + 1}, carry-over not propagated",
                extra={"year": balance.year + 1, "user_id": balance.user_id}
            )

        balance.carried_over_to_next_year = carried_over_to_next_year
        self.commit()
        self.db.refresh(balance)
        return balance
