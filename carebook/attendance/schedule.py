"""
Planned-duration lookup from the user's current support plan.
"""

import datetime as _dt
import logging

from carebook.attendance.lookup import Lookup
from carebook.attendance.models import PlanStatus
from carebook.attendance.ports import PlanSource

logger = logging.getLogger(__name__)


class ScheduleResolver:
    """
    Resolves the statutory planned duration for a user on a date.

    Only the most recently created Final plan counts. Its standard schedule
    is indexed Monday=0 … Sunday=6, which is exactly date.weekday().
    """

    def __init__(self, plans: PlanSource):
        self.plans = plans

    def resolve(self, user_id: str, date: _dt.date) -> Lookup[str]:
        """
        Planned duration (hours, as text) for the date's weekday.

        Returns Lookup.unavailable when there is no Final plan, the plan has
        no duration for that weekday, or the plan source fails.
        """
        try:
            plans = self.plans.find_final_plans(user_id)
        except Exception as exc:  # noqa: BLE001 - any source failure degrades to "no plan"
            logger.warning(
                "Plan lookup failed for user %s: %s",
                user_id,
                exc,
                extra={"user_id": user_id, "date": date.isoformat()},
            )
            return Lookup.unavailable(f"plan lookup failed: {exc}")

        finals = [p for p in plans if p.status is PlanStatus.FINAL]
        if not finals:
            return Lookup.unavailable("no final plan")

        plan = finals[0]
        slot = plan.standard_schedule.get(date.weekday())
        if slot is None or not slot.duration:
            logger.debug(
                "Plan %s has no duration for weekday %d", plan.id, date.weekday()
            )
            return Lookup.unavailable(f"no schedule for weekday {date.weekday()}")

        return Lookup.ok(slot.duration)
