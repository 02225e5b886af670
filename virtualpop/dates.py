"""Year-fraction ↔ calendar date conversion.

Simulation time is measured in years from ``timemin``; outputs are
labelled with calendar dates anchored at ``timemin_date``. Year fractions
use a fixed 365-day year:

    yeardec = year + (day_of_year - 1) / 365
    date    = day ceil(frac(yeardec) * 365 + 1) of floor(yeardec)

The conversion is wrapped in YearFractionCalendar so the engine can take
any object exposing ``times_to_dates`` instead.
"""

from __future__ import annotations

import datetime as dt
import math
from typing import Iterable, List, Union

import numpy as np


DAYS_PER_YEAR = 365

DateLike = Union[str, dt.date, dt.datetime]


def parse_date(value: DateLike) -> dt.date:
    """Coerce an ISO string, date or datetime to a date.

    YAML loads unquoted ``1980-01-01`` as a date already; quoted values
    arrive as strings.
    """
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if isinstance(value, str):
        return dt.date.fromisoformat(value.strip())
    raise TypeError(f"Cannot interpret {value!r} as a date")


def date_to_yeardec(date: DateLike) -> float:
    """Decimal year of a date (365-day year, Jan 1 = x.0)."""
    d = parse_date(date)
    return d.year + (d.timetuple().tm_yday - 1) / DAYS_PER_YEAR


def yeardec_to_date(yeardec: float) -> dt.date:
    """Calendar date of a decimal year (inverse of date_to_yeardec).

    The day of year is rounded to 8 decimals before taking the ceiling so
    that float noise in accumulated time steps does not push a value that
    should land on a day boundary into the next day.
    """
    year = int(math.floor(yeardec))
    frac = yeardec - year
    doy = int(math.ceil(round(frac * DAYS_PER_YEAR + 1, 8)))
    return dt.date(year, 1, 1) + dt.timedelta(days=doy - 1)


class YearFractionCalendar:
    """Maps simulation times to calendar dates from an anchor date."""

    def __init__(self, origin: DateLike, timemin: float = 0.0):
        self.origin = parse_date(origin)
        self.timemin = float(timemin)
        self._origin_yeardec = date_to_yeardec(self.origin)

    def time_to_date(self, t: float) -> dt.date:
        return yeardec_to_date(self._origin_yeardec + (float(t) - self.timemin))

    def times_to_dates(self, times: Iterable[float]) -> List[dt.date]:
        return [self.time_to_date(t) for t in np.asarray(list(times), dtype=np.float64)]
