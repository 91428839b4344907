"""
Cache directive attached to a query in progress
"""

import copy
import datetime
import math
import numbers
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Union


@dataclass(frozen=True)
class CacheDuration:
    """How long results should be remembered.

    ``minutes`` is ``None`` for both UNSET and FOREVER; ``kind`` tells them
    apart so that ``minutes(0)`` is never mistaken for "no caching".
    """
    kind: str
    minutes: Optional[float] = None

    @property
    def is_set(self) -> bool:
        return self.kind != "unset"

    @property
    def is_forever(self) -> bool:
        return self.kind == "forever"

    @classmethod
    def of_minutes(cls, minutes: float) -> 'CacheDuration':
        return cls("minutes", minutes)

    def __repr__(self) -> str:
        if self.kind == "minutes":
            return f"CacheDuration.minutes({self.minutes})"
        return f"CacheDuration.{self.kind.upper()}"


CacheDuration.UNSET = CacheDuration("unset")
CacheDuration.FOREVER = CacheDuration("forever")


def to_duration(minutes: Union[float, datetime.timedelta]) -> CacheDuration:
    """Normalize a ``remember`` argument to a duration.

    Negative values mean "forever". Anything that is not a real number of
    minutes is rejected rather than silently disabling the cache.
    """
    if isinstance(minutes, datetime.timedelta):
        minutes = minutes.total_seconds() / 60
    if isinstance(minutes, bool) or not isinstance(minutes, numbers.Real):
        raise TypeError(f"Cache duration must be a number of minutes or a timedelta, got {type(minutes).__name__}")
    if math.isnan(minutes):
        raise ValueError("Cache duration cannot be NaN")
    if minutes < 0 or math.isinf(minutes):
        return CacheDuration.FOREVER
    return CacheDuration.of_minutes(minutes)


def normalize_tags(tags: Union[str, Iterable[str], None]) -> List[str]:
    if tags is None:
        return []
    if isinstance(tags, str):
        return [tags]
    return [str(tag) for tag in tags]


@dataclass
class CacheDirective:
    key: Optional[str] = None
    duration: CacheDuration = CacheDuration.UNSET
    tags: List[str] = field(default_factory=list)

    @property
    def enabled(self) -> bool:
        return self.duration.is_set

    def copy(self) -> 'CacheDirective':
        return copy.deepcopy(self)
