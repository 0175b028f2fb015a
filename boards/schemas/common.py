"""Shared schema helpers."""
import json
from datetime import datetime, timezone
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

MAX_VIBE_TAGS = 25
MAX_VIBE_TAG_LENGTH = 40


class CamelModel(BaseModel):
    """Base schema speaking camelCase on the wire and snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class StrictCamelModel(CamelModel):
    """Request schema that rejects unknown fields."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


def trimmed(value: Any) -> Optional[str]:
    """Trim strings; treat empty strings as missing."""
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def check_length(value: Optional[str], field: str, max_length: int) -> Optional[str]:
    if value is not None and len(value) > max_length:
        raise ValueError(f"{field} must be at most {max_length} characters")
    return value


def utc_aware(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes read back from SQLite."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def normalize_vibes(value: Any) -> List[str]:
    """
    Accept a list of tags or a JSON-encoded list (multipart form posts).

    Tags are trimmed and empty entries dropped.
    """
    if value is None or value == "":
        return []
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except ValueError:
            raise ValueError("Invalid vibe payload") from None
        value = parsed if isinstance(parsed, list) else []
    if not isinstance(value, (list, tuple)):
        raise ValueError("Vibe tags must be a list of strings")

    tags = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError("Vibe tags must be strings")
        tag = item.strip()
        if not tag:
            continue
        if len(tag) > MAX_VIBE_TAG_LENGTH:
            raise ValueError(f"Vibe tags must be at most {MAX_VIBE_TAG_LENGTH} characters")
        tags.append(tag)

    if len(tags) > MAX_VIBE_TAGS:
        raise ValueError(f"No more than {MAX_VIBE_TAGS} vibe tags are allowed")
    return tags
