from dataclasses import dataclass, replace
from datetime import date, datetime, time, timedelta
from numbers import Integral
from typing import Optional, Union

from dateutil.relativedelta import relativedelta

from envelope_core.domain import Interval
from envelope_core.errors import InvalidArgument

DateLike = Union[date, datetime]

_ONE_TICK = timedelta(microseconds=1)


def as_datetime(value: DateLike) -> datetime:
    """Promote a date to midnight; reject anything that is not a date."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    raise InvalidArgument(f"Expected a date or datetime, got {type(value).__name__}")


def _step(interval: Interval, n: int) -> relativedelta:
    if interval is Interval.YEAR:
        return relativedelta(years=n)
    return relativedelta(months=n)


def bucket_start(moment: datetime, interval: Interval) -> datetime:
    if interval is Interval.YEAR:
        return datetime(moment.year, 1, 1)
    return datetime(moment.year, moment.month, 1)


def bucket_end(moment: datetime, interval: Interval) -> datetime:
    return bucket_start(moment, interval) + _step(interval, 1) - _ONE_TICK


def _check_steps(n) -> int:
    if isinstance(n, bool) or not isinstance(n, Integral):
        raise InvalidArgument(f"Navigation step must be an integer, got {n!r}")
    if n < 0:
        raise InvalidArgument(f"Navigation step must not be negative, got {n}")
    return int(n)


@dataclass(frozen=True)
class ViewWindow:
    """The selected reporting period.

    ``anchor`` is always the last instant of its bucket, so two windows over
    the same month (or year) compare equal whatever instant they were built
    from. Navigation returns new windows; a window is never mutated.
    """

    interval: Interval = Interval.MONTH
    anchor: Optional[DateLike] = None

    def __post_init__(self):
        interval = Interval.parse(self.interval)
        moment = datetime.now() if self.anchor is None else as_datetime(self.anchor)
        object.__setattr__(self, "interval", interval)
        object.__setattr__(self, "anchor", bucket_end(moment, interval))

    @property
    def bucket_start(self) -> datetime:
        return bucket_start(self.anchor, self.interval)

    @property
    def bucket_end(self) -> datetime:
        return self.anchor

    @property
    def label(self) -> str:
        if self.interval is Interval.YEAR:
            return f"{self.anchor.year}"
        return f"{self.anchor.year}-{self.anchor.month:02d}"

    def current(self) -> "ViewWindow":
        """Window of the same interval over the bucket containing today."""
        return ViewWindow(self.interval, datetime.now())

    def clone(self) -> "ViewWindow":
        return replace(self)

    def next(self, n: int = 1) -> "ViewWindow":
        steps = _check_steps(n)
        return ViewWindow(self.interval, self.bucket_start + _step(self.interval, steps))

    def previous(self, n: int = 1) -> "ViewWindow":
        steps = _check_steps(n)
        return ViewWindow(self.interval, self.bucket_start - _step(self.interval, steps))

    def set_interval(self, interval: Union[Interval, str]) -> "ViewWindow":
        return ViewWindow(Interval.parse(interval), self.anchor)

    def has(self, value: DateLike) -> bool:
        moment = as_datetime(value)
        if moment.year != self.anchor.year:
            return False
        if self.interval is Interval.YEAR:
            return True
        return moment.month == self.anchor.month

    def span_from(self, value: DateLike) -> int:
        """Whole interval units this window is ahead of ``value``'s bucket."""
        moment = as_datetime(value)
        years = self.anchor.year - moment.year
        if self.interval is Interval.YEAR:
            return years
        return years * 12 + (self.anchor.month - moment.month)

    def __str__(self) -> str:
        return f"{self.interval.value}:{self.label}"
