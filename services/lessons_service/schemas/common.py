"""Shared field types for the lessons API.

Dates travel as ``MM/DD/YYYY`` strings and times as ``HH:MM``. Inputs also
accept ISO dates and ``HH:MM:SS``.
"""

from datetime import date, time
from typing import Annotated

from libs.common.datetime_utils import (
    format_canonical_date,
    format_time_of_day,
    normalize_weekdays,
    parse_canonical_date,
    parse_time_of_day,
)
from pydantic import BeforeValidator, PlainSerializer

CanonicalDate = Annotated[
    date,
    BeforeValidator(parse_canonical_date),
    PlainSerializer(format_canonical_date, return_type=str),
]

TimeOfDay = Annotated[
    time,
    BeforeValidator(parse_time_of_day),
    PlainSerializer(format_time_of_day, return_type=str),
]

WeekdayList = Annotated[list[str], BeforeValidator(normalize_weekdays)]
