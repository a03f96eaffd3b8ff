"""
Dashboard figures for administrators: headcount, pending requests,
who is away on a given day and how much leave each employee has used.
"""
from collections import defaultdict
from datetime import date
from typing import Dict, List

from sqlalchemy import extract

from leavetrack.models.leave import Leave, LeaveStatus, LeaveType
from leavetrack.models.leave_balance import LeaveBalance
from leavetrack.models.user import User
from leavetrack.services.base import BaseService


class AdminStatsService(BaseService):

    def _active_users(self) -> List[User]:
        return self.db.query(User).filter(User.is_active.is_(True)).order_by(User.last_name, User.first_name).all()

    def _absent_user_ids(self, day: date) -> set:
        rows = self.db.query(Leave.user_id).filter(
            Leave.status == LeaveStatus.APPROVED.value,
            Leave.start_date <= day,
            Leave.end_date >= day,
        ).distinct().all()
        return {row[0] for row in rows}

    def absent_employees(self, day: date) -> List[User]:
        absent = self._absent_user_ids(day)
        return [u for u in self._active_users() if u.id in absent]

    def present_employees(self, day: date) -> List[User]:
        absent = self._absent_user_ids(day)
        return [u for u in self._active_users() if u.id not in absent]

    def stats(self, day: date) -> Dict[str, int]:
        return {
            "total_employees": self.db.query(User).count(),
            "active_employees": self.db.query(User).filter(User.is_active.is_(True)).count(),
            "pending_leaves": self.db.query(Leave).filter(Leave.status == LeaveStatus.PENDING.value).count(),
            "today_absent": len(self.absent_employees(day)),
        }

    def leave_summary(self, year: int) -> List[dict]:
        """
        Approved days taken per type during `year`, with the remaining and
        total figures of that year's balance (zero when no balance exists).
        """
        taken: Dict[int, Dict[str, float]] = defaultdict(lambda: defaultdict(float))
        approved = self.db.query(Leave).filter(
            Leave.status == LeaveStatus.APPROVED.value,
            extract("year", Leave.start_date) == year,
        ).all()
        for leave in approved:
            taken[leave.user_id][leave.type] += float(leave.total_days or 0)

        balances = {
            b.user_id: b for b in self.db.query(LeaveBalance).filter(LeaveBalance.year == year).all()
        }

        summary = []
        for user in self._active_users():
            user_taken = taken[user.id]
            balance = balances.get(user.id)
            paid_total = (balance.initial_paid_leave if balance else 0)
            sick_total = (balance.initial_sick_leave if balance else 0)
            paid_remaining = balance.available_paid_leave if balance else 0
            sick_remaining = balance.remaining_sick_leave if balance else 0

            paid_taken = user_taken[LeaveType.PAID.value]
            sick_taken = user_taken[LeaveType.SICK.value]
            unpaid_taken = user_taken[LeaveType.UNPAID.value]

            summary.append({
                "id": user.id,
                "first_name": user.first_name,
                "last_name": user.last_name,
                "year": year,
                "leaves": {
                    "paid": {"taken": paid_taken, "remaining": paid_remaining, "total": paid_total},
                    "sick": {"taken": sick_taken, "remaining": sick_remaining, "total": sick_total},
                    "unpaid": {"taken": unpaid_taken},
                },
                "total_leaves": {
                    "taken": paid_taken + sick_taken + unpaid_taken,
                    "remaining": paid_remaining + sick_remaining,
                    "total": paid_total + sick_total,
                },
            })
        return summary
