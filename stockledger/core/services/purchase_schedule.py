"""
Purchase schedule advisor.

Date arithmetic over weekly purchasing cadences and planning periods.
Every method takes "today" or a reference date from the caller.
"""

import calendar
from collections.abc import Iterable
from datetime import date, timedelta

from stockledger.core.entities.production import Production
from stockledger.core.entities.purchasing import (
    PeriodType,
    PlanningWindow,
    PurchaseSchedule,
    Weekday,
)


def _add_months(day: date, months: int) -> date:
    """Shift by whole months, clamping to the last day of the target month."""
    index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    last = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last))


class PurchaseScheduleAdvisor:
    """Stateless helpers; no storage access."""

    @staticmethod
    def purchase_weekdays(schedules: Iterable[PurchaseSchedule]) -> set[Weekday]:
        return {Weekday(s.weekday) for s in schedules if s.order_day}

    def next_purchase_day(
        self, schedules: Iterable[PurchaseSchedule], from_date: date
    ) -> date | None:
        """Soonest order day on or after ``from_date``; None without schedules."""
        weekdays = self.purchase_weekdays(schedules)
        if not weekdays:
            return None
        for offset in range(7):
            candidate = from_date + timedelta(days=offset)
            if candidate.weekday() in weekdays:
                return candidate
        return None

    def is_today_purchase_day(
        self, schedules: Iterable[PurchaseSchedule], today: date
    ) -> bool:
        return today.weekday() in self.purchase_weekdays(schedules)

    @staticmethod
    def suggest_purchase_weekdays(productions: Iterable[Production]) -> list[Weekday]:
        """
        Weekdays to buy on, one per weekday with planned production.

        The suggestion is the day before production. Sunday production
        is bought for on Friday.
        """
        suggested: set[Weekday] = set()
        for production in productions:
            if not production.is_planned:
                continue
            weekday = production.scheduled_date.weekday()
            if weekday == Weekday.SUNDAY:
                suggested.add(Weekday.FRIDAY)
            else:
                suggested.add(Weekday((weekday - 1) % 7))
        return sorted(suggested)

    @staticmethod
    def suggested_purchase_date(
        productions: Iterable[Production], today: date, lead_days: int = 2
    ) -> date | None:
        """``lead_days`` before the earliest upcoming planned production, never before today."""
        upcoming = [
            p.scheduled_date
            for p in productions
            if p.is_planned and p.scheduled_date >= today
        ]
        if not upcoming:
            return None
        return max(min(upcoming) - timedelta(days=lead_days), today)

    @staticmethod
    def period_window(period: PeriodType | str, reference: date) -> PlanningWindow:
        """Inclusive window of the day, week (Monday start), month or year around ``reference``."""
        period = PeriodType(period)
        if period == PeriodType.DAY:
            return PlanningWindow(start=reference, end=reference)
        if period == PeriodType.WEEK:
            start = reference - timedelta(days=reference.weekday())
            return PlanningWindow(start=start, end=start + timedelta(days=6))
        if period == PeriodType.MONTH:
            last = calendar.monthrange(reference.year, reference.month)[1]
            return PlanningWindow(
                start=reference.replace(day=1),
                end=reference.replace(day=last),
            )
        return PlanningWindow(
            start=date(reference.year, 1, 1),
            end=date(reference.year, 12, 31),
        )

    @staticmethod
    def shift_period(period: PeriodType | str, reference: date, steps: int) -> date:
        """Move ``reference`` by ``steps`` periods (negative goes back)."""
        period = PeriodType(period)
        if period == PeriodType.DAY:
            return reference + timedelta(days=steps)
        if period == PeriodType.WEEK:
            return reference + timedelta(weeks=steps)
        if period == PeriodType.MONTH:
            return _add_months(reference, steps)
        return _add_months(reference, steps * 12)
