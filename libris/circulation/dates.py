"""Calendar date parsing for loan operations."""

import re
from datetime import date, datetime
from typing import Union

from libris.errors import InvalidDateError

ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

DateLike = Union[str, date]


def parse_iso_date(value: DateLike, field: str = "date") -> date:
    """
    Parse a YYYY-MM-DD string (or pass through a date).

    Raises:
        InvalidDateError: wrong format or not a real calendar day
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    if not isinstance(value, str) or not ISO_DATE_PATTERN.match(value.strip()):
        raise InvalidDateError(
            f"Invalid {field} format. Use YYYY-MM-DD",
            detail=f"Got {value!r}",
        )

    try:
        return date.fromisoformat(value.strip())
    except ValueError as e:
        raise InvalidDateError(f"Invalid {field}", detail=str(e)) from e
