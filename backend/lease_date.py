"""
Calendar values used for lease timestamps

ISC dhcpd writes timestamps as "<weekday> YYYY/MM/DD HH:MM:SS [UTC]" where
weekday is 0 (Sunday) through 6 (Saturday).
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone as dt_timezone
from typing import Optional

from lease_errors import LeaseDateError

WEEKDAY_NAMES = ['Sunday', 'Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday']

DATE_FORMAT = '%Y/%m/%d'
TIME_FORMAT = '%H:%M:%S'


@dataclass(frozen=True, order=True)
class Date:
    """A lease timestamp. Ordering and equality use the instant only."""
    moment: datetime
    weekday: int = field(default=0, compare=False)
    timezone: Optional[str] = field(default=None, compare=False)

    @classmethod
    def from_tokens(cls, weekday: str, date: str, time: str,
                    timezone: Optional[str] = None) -> 'Date':
        """
        Build a Date from the tokens of a lease date statement

        Args:
            weekday: Day of week digit, 0 = Sunday
            date: Date in YYYY/MM/DD format
            time: Time in HH:MM:SS format
            timezone: Optional timezone label, kept but not interpreted

        Raises:
            LeaseDateError: If any component is malformed
        """
        if len(weekday) != 1 or weekday not in '0123456':
            raise LeaseDateError(f"Invalid weekday '{weekday}', expected a digit from 0 to 6")

        try:
            day = datetime.strptime(date, DATE_FORMAT)
        except ValueError:
            raise LeaseDateError(f"Invalid date '{date}', expected YYYY/MM/DD")

        try:
            clock = datetime.strptime(time, TIME_FORMAT)
        except ValueError:
            raise LeaseDateError(f"Invalid time '{time}', expected HH:MM:SS")

        moment = day.replace(hour=clock.hour, minute=clock.minute, second=clock.second)
        return cls(moment=moment, weekday=int(weekday), timezone=timezone)

    @classmethod
    def parse(cls, text: str) -> 'Date':
        """Build a Date from "YYYY/MM/DD HH:MM:SS", deriving the weekday"""
        parts = text.split()
        if len(parts) != 2:
            raise LeaseDateError(f"Invalid timestamp '{text}', expected YYYY/MM/DD HH:MM:SS")
        date, time = parts
        try:
            day = datetime.strptime(date, DATE_FORMAT)
        except ValueError:
            raise LeaseDateError(f"Invalid date '{date}', expected YYYY/MM/DD")
        # isoweekday() is 1 (Monday) .. 7 (Sunday)
        return cls.from_tokens(str(day.isoweekday() % 7), date, time)

    @classmethod
    def now(cls) -> 'Date':
        """Current UTC time, matching the UTC timestamps dhcpd writes"""
        moment = datetime.now(dt_timezone.utc).replace(tzinfo=None, microsecond=0)
        return cls(moment=moment, weekday=moment.isoweekday() % 7, timezone='UTC')

    def __str__(self) -> str:
        return f"{WEEKDAY_NAMES[self.weekday]} {self.moment.strftime(DATE_FORMAT)} {self.moment.strftime(TIME_FORMAT)}"
