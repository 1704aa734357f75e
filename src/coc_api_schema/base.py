from dataclasses import dataclass, fields
from datetime import datetime, timezone
from typing import Optional


COC_TIME_FORMAT = "%Y%m%dT%H%M%S.%fZ"


def from_json(cls, data: Optional[dict]):
    """
    Build a schema object from a JSON object, ignoring keys the schema does not know about.

    Args:
        cls: The dataclass to build.
        data (dict | None): The decoded JSON object.

    Returns:
        The dataclass instance, or None if there was no data.
    """

    if data is None:
        return None

    known_fields = {schema_field.name for schema_field in fields(cls)}
    return cls(**{key: value for key, value in data.items() if key in known_fields})


def parse_api_time(value: str) -> datetime | None:
    """
    Parse a Clash of Clans API timestamp (e.g. "20240101T120000.000Z") into an aware datetime.
    """

    if not value:
        return None

    return datetime.strptime(value, COC_TIME_FORMAT).replace(tzinfo=timezone.utc)


@dataclass
class BadgeURLs:
    small: str = ""
    medium: str = ""
    large: str = ""


@dataclass
class IconURLs:
    small: str = ""
    medium: str = ""
    tiny: str = ""
