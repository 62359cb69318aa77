"""Input parsing for e-paper endpoints.

Issues are created from multipart forms, so the fields are declared as
``Form`` parameters in the router; this module holds the date parsing the
router and service share.
"""

from datetime import date, datetime

from src.core.exceptions import ValidationError


def parse_issue_date(value: str | date | datetime) -> date:
    """Accept ``YYYY-MM-DD`` or a full ISO-8601 timestamp.

    Raises:
        ValidationError: If the value is not an ISO-8601 date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.fromisoformat(value.strip()).date()
    except (AttributeError, ValueError) as e:
        raise ValidationError("Invalid date format", "invalid_date") from e
