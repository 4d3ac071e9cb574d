"""
Service fenetre hebdomadaire / Week window service.
Semaines ISO : lundi -> dimanche. Pur et synchrone, aucun acces stockage.
"""

from datetime import date, datetime, timedelta

from machine_planner.errors import ValidationError

DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


class WeekWindowService:
    """Arithmetique des semaines / Week arithmetic."""

    @staticmethod
    def parse_date(value: date | str) -> date:
        """Accepter une date ou 'YYYY-MM-DD' / Accept a date or 'YYYY-MM-DD'."""
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        try:
            return date.fromisoformat(value)
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid date: {value!r} (expected YYYY-MM-DD)")

    @staticmethod
    def week_start(reference: date | str) -> date:
        """
        Lundi de la semaine / Monday on or before the reference date.
        Un dimanche renvoie le lundi six jours plus tot.
        """
        day = WeekWindowService.parse_date(reference)
        return day - timedelta(days=day.weekday())

    @staticmethod
    def add_weeks(week_start: date | str, weeks: int) -> date:
        """Decaler de n semaines (n peut etre negatif) / Shift by n weeks (n may be negative)."""
        start = WeekWindowService.parse_date(week_start)
        try:
            return start + timedelta(weeks=weeks)
        except OverflowError:
            raise ValidationError(f"Week {start.isoformat()} shifted by {weeks} is out of the supported date range")

    @staticmethod
    def week_end(week_start: date | str) -> date:
        """Dimanche de la semaine / Sunday of the week."""
        return WeekWindowService.week_dates(week_start)[-1]

    @staticmethod
    def week_dates(week_start: date | str) -> list[date]:
        """Les 7 dates consecutives a partir du lundi / The 7 consecutive dates from Monday."""
        start = WeekWindowService.parse_date(week_start)
        try:
            return [start + timedelta(days=offset) for offset in range(7)]
        except OverflowError:
            raise ValidationError(f"Week starting {start.isoformat()} runs past the supported date range")

    @staticmethod
    def day_offset(week_start: date, day: date) -> int:
        """Rang du jour dans la semaine (0=lundi) / Day index within the week (0=Monday)."""
        return (day - week_start).days
