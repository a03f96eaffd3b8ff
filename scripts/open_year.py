"""
Year-end rollover.

For every active employee: optionally carry over unused paid days of the
closing year (capped by --carry-over), then make sure the new year has a
balance, prorated from the hire date for employees hired during that year.

    python scripts/open_year.py 2025 --carry-over 5
"""
import sys
import os
import argparse
import logging

# Ensure we can import leavetrack modules
sys.path.append(os.getcwd())

from leavetrack.core.exceptions import AppException
from leavetrack.database import SessionLocal, init_db
from leavetrack.models.user import User
from leavetrack.services.leave_balance import LeaveBalanceManager

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)

def open_year(year: int, max_carry_over: int = 0):
    init_db()
    db = SessionLocal()
    try:
        manager = LeaveBalanceManager(db)
        users = db.query(User).filter(User.is_active.is_(True)).all()
        for user in users:
            try:
                previous = manager.get_yearly_balance(user.id, year - 1)
                if previous and max_carry_over > 0 and previous.carried_over_to_next_year == 0:
                    days = min(max_carry_over, previous.remaining_paid_leave)
                    if days > 0:
                        manager.carry_over(user.id, year - 1, days)
                        logger.info(f"{user.email}: carried over {days} day(s) into {year}")

                balance = manager.create_prorated_balance(user.id, year)
                logger.info(
                    f"{user.email}: {year} balance paid={balance.remaining_paid_leave} "
                    f"(+{balance.carried_over_from_previous_year} carried) sick={balance.remaining_sick_leave}"
                )
            except AppException as e:
                logger.error(f"{user.email}: skipped ({e.message})")
    finally:
        db.close()

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Open leave balances for a new year")
    parser.add_argument("year", type=int)
    parser.add_argument("--carry-over", type=int, default=0, help="maximum unused paid days carried into the new year")
    args = parser.parse_args()
    open_year(args.year, args.carry_over)
