import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Union
from zoneinfo import ZoneInfo

from config import get_settings

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)
MONTH_ABBREVIATIONS = tuple(name[:3] for name in MONTH_NAMES)

_MONTH_KEY_RE = re.compile(r"^(\d{4})-(0[1-9]|1[0-2])$")


def local_today() -> date:
    settings = get_settings()
    tz = ZoneInfo(settings.timezone)
    return datetime.now(tz).date()


def month_key(date_value: str) -> str:
    """Month key of an ISO ``YYYY-MM-DD`` date string."""
    return date_value[:7]


@dataclass(frozen=True, order=True)
class Month:
    """A calendar month, identified by its ``YYYY-MM`` key."""

    year: int
    month: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise ValueError(f"Invalid month number: {self.month}")
        if not 0 < self.year <= 9999:
            raise ValueError(f"Invalid year: {self.year}")

    @classmethod
    def parse(cls, key: str) -> "Month":
        match = _MONTH_KEY_RE.match(key.strip())
        if not match:
            raise ValueError(f"Month must be in YYYY-MM format, got {key!r}")
        return cls(int(match.group(1)), int(match.group(2)))

    @classmethod
    def of(cls, value: Union[date, str]) -> "Month":
        if isinstance(value, date):
            return cls(value.year, value.month)
        return cls.parse(month_key(value))

    @property
    def key(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    @property
    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def label(self) -> str:
        return MONTH_ABBREVIATIONS[self.month - 1]

    @property
    def name(self) -> str:
        return MONTH_NAMES[self.month - 1]

    @property
    def display_name(self) -> str:
        return f"{self.name} {self.year}"

    def shift(self, count: int) -> "Month":
        month_index = (self.year * 12) + (self.month - 1) + count
        return Month(month_index // 12, (month_index % 12) + 1)

    def __str__(self) -> str:
        return self.key


def current_month(today: Optional[date] = None) -> Month:
    return Month.of(today or local_today())


def recent_months(count: int = 24, *, today: Optional[date] = None) -> list[Month]:
    """The current month followed by the ``count - 1`` months before it."""
    start = current_month(today)
    return [start.shift(-offset) for offset in range(max(count, 0))]


def resolve_month(value: Optional[str], *, today: Optional[date] = None) -> Month:
    if not value or value == "current":
        return current_month(today)
    if value == "last_month":
        return current_month(today).shift(-1)
    return Month.parse(value)
