"""Tests for PurchaseScheduleAdvisor."""

from datetime import date

import pytest

from stockledger.core.entities import (
    PeriodType,
    Production,
    ProductionStatus,
    PurchaseSchedule,
    Weekday,
)
from stockledger.core.services import PurchaseScheduleAdvisor


@pytest.fixture
def advisor() -> PurchaseScheduleAdvisor:
    return PurchaseScheduleAdvisor()


@pytest.fixture
def mon_thu() -> list[PurchaseSchedule]:
    return [
        PurchaseSchedule(weekday=Weekday.MONDAY),
        PurchaseSchedule(weekday=Weekday.THURSDAY),
    ]


class TestNextPurchaseDay:
    def test_wednesday_gives_thursday(self, advisor, mon_thu, today):
        assert today.weekday() == Weekday.WEDNESDAY
        assert advisor.next_purchase_day(mon_thu, today) == date(2024, 6, 13)

    def test_same_day_counts(self, advisor, mon_thu):
        assert advisor.next_purchase_day(mon_thu, date(2024, 6, 13)) == date(2024, 6, 13)

    def test_wraps_to_next_week(self, advisor, mon_thu):
        assert advisor.next_purchase_day(mon_thu, date(2024, 6, 14)) == date(2024, 6, 17)

    def test_no_schedule(self, advisor, today):
        assert advisor.next_purchase_day([], today) is None

    def test_delivery_only_days_ignored(self, advisor, today):
        schedules = [
            PurchaseSchedule(weekday=Weekday.THURSDAY, order_day=False, delivery_day=True),
            PurchaseSchedule(weekday=Weekday.SATURDAY),
        ]
        assert advisor.next_purchase_day(schedules, today) == date(2024, 6, 15)

    def test_is_today_purchase_day(self, advisor, mon_thu, today):
        assert advisor.is_today_purchase_day(mon_thu, today) is False
        assert advisor.is_today_purchase_day(mon_thu, date(2024, 6, 17)) is True


class TestSuggestions:
    def _production(self, recipe, day, status=ProductionStatus.PLANNED):
        return Production(
            id=f"p-{day.isoformat()}",
            recipe=recipe,
            scheduled_date=day,
            planned_quantity=1,
            status=status,
        )

    def test_day_before_production(self, advisor, bread_recipe):
        productions = [
            self._production(bread_recipe, date(2024, 6, 13)),  # Thursday
            self._production(bread_recipe, date(2024, 6, 11)),  # Tuesday
        ]
        assert advisor.suggest_purchase_weekdays(productions) == [
            Weekday.MONDAY,
            Weekday.WEDNESDAY,
        ]

    def test_sunday_production_bought_friday(self, advisor, bread_recipe):
        productions = [self._production(bread_recipe, date(2024, 6, 16))]
        assert advisor.suggest_purchase_weekdays(productions) == [Weekday.FRIDAY]

    def test_monday_production_bought_sunday(self, advisor, bread_recipe):
        productions = [self._production(bread_recipe, date(2024, 6, 17))]
        assert advisor.suggest_purchase_weekdays(productions) == [Weekday.SUNDAY]

    def test_cancelled_productions_ignored(self, advisor, bread_recipe):
        productions = [
            self._production(bread_recipe, date(2024, 6, 13), ProductionStatus.CANCELLED)
        ]
        assert advisor.suggest_purchase_weekdays(productions) == []

    def test_suggested_date_uses_lead_days(self, advisor, bread_recipe, today):
        productions = [
            self._production(bread_recipe, date(2024, 6, 20)),
            self._production(bread_recipe, date(2024, 6, 18)),
        ]
        assert advisor.suggested_purchase_date(productions, today) == date(2024, 6, 16)

    def test_suggested_date_never_before_today(self, advisor, bread_recipe, today):
        productions = [self._production(bread_recipe, date(2024, 6, 13))]
        assert advisor.suggested_purchase_date(productions, today, lead_days=3) == today

    def test_no_upcoming_production(self, advisor, bread_recipe, today):
        productions = [self._production(bread_recipe, date(2024, 6, 1))]
        assert advisor.suggested_purchase_date(productions, today) is None


class TestPeriods:
    @pytest.mark.parametrize(
        "period,start,end",
        [
            (PeriodType.DAY, date(2024, 6, 12), date(2024, 6, 12)),
            (PeriodType.WEEK, date(2024, 6, 10), date(2024, 6, 16)),
            (PeriodType.MONTH, date(2024, 6, 1), date(2024, 6, 30)),
            (PeriodType.YEAR, date(2024, 1, 1), date(2024, 12, 31)),
        ],
    )
    def test_period_window(self, advisor, today, period, start, end):
        window = advisor.period_window(period, today)
        assert (window.start, window.end) == (start, end)

    def test_february_leap_year(self, advisor):
        window = advisor.period_window("month", date(2024, 2, 10))
        assert window.end == date(2024, 2, 29)

    def test_shift_week(self, advisor, today):
        assert advisor.shift_period(PeriodType.WEEK, today, -1) == date(2024, 6, 5)

    def test_shift_month_clamps_day(self, advisor):
        assert advisor.shift_period(PeriodType.MONTH, date(2024, 1, 31), 1) == date(2024, 2, 29)

    def test_shift_month_across_year(self, advisor):
        assert advisor.shift_period(PeriodType.MONTH, date(2024, 11, 15), 3) == date(2025, 2, 15)

    def test_shift_year_from_leap_day(self, advisor):
        assert advisor.shift_period(PeriodType.YEAR, date(2024, 2, 29), 1) == date(2025, 2, 28)
