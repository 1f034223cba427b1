"""Calendar date parsing helpers shared by models and services."""

import logging
from datetime import date, datetime
from typing import Any, Optional

logger = logging.getLogger(__name__)


def parse_date(value: Any) -> Optional[date]:
    """
    Convert a stored date value to a calendar date.

    Accepts date, datetime (time component dropped), "YYYY-MM-DD" strings and
    ISO-8601 datetime strings. Returns None for empty or unparseable values.
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        return value.date()

    if isinstance(value, date):
        return value

    if isinstance(value, str):
        text = value.strip()
        try:
            if "T" in text or " " in text:
                return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
            return date.fromisoformat(text)
        except ValueError:
            logger.warning(f"Unable to parse date: {value!r}")
            return None

    logger.warning(f"Unsupported date value type: {type(value).__name__}")
    return None
