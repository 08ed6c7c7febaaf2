"""Per-user activity statistics for the profile screen."""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING

from date_utils import ensure_utc, get_current_utc_time, start_of_day, trailing_days
from territory.models import UserActivityStatsResponse

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from db.stores import ActivityStore, InfluenceStore

DAYS_PER_WEEK = 7


class ActivityStats:
    def __init__(
        self,
        activities: ActivityStore,
        influences: InfluenceStore,
        *,
        clock: Callable[[], datetime] = get_current_utc_time,
    ) -> None:
        self._activities = activities
        self._influences = influences
        self._clock = clock

    async def for_user(self, user_id: str) -> UserActivityStatsResponse:
        """Totals plus one activity count per day for the last seven days.

        ``weekly_activities`` is ordered oldest day first and ends with today
        (UTC).
        """
        days = trailing_days(self._clock().date(), DAYS_PER_WEEK)
        recent = await self._activities.created_since(user_id, start_of_day(days[0]))
        per_day = Counter(ensure_utc(created).date() for created in recent)

        count, distance = await self._activities.totals_for_user(user_id)
        hexes_visited = await self._influences.count_for_user(user_id)

        return UserActivityStatsResponse(
            hexes_visited=hexes_visited,
            activities_recorded=count,
            distance_covered=distance,
            weekly_activities=[per_day.get(day, 0) for day in days],
        )
