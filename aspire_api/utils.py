"""
Row and payload helpers shared by the route modules.

Database rows use snake_case columns, SQLite integers for booleans and JSON
text for list columns; API payloads use camelCase with real booleans, lists
and absolute media URLs. The helpers here translate between the two.
"""

import json
import re
from typing import Any

from pydantic.alias_generators import to_camel, to_snake

# Columns stored as JSON text
JSON_COLUMNS = frozenset({"tags", "files", "interests", "gallery_images"})

# Columns holding media paths that are served with an absolute URL
MEDIA_COLUMNS = frozenset({"image", "featured_image", "payment_proof", "main_image"})

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_email(value: str | None) -> bool:
    return bool(value) and EMAIL_RE.match(value) is not None


def is_bool_column(name: str) -> bool:
    return name.startswith("is_") or name == "enabled"


def full_url(path: str | None, base_url: str) -> str | None:
    """
    Make a stored media path absolute.

    Absolute http(s) URLs and data URLs are returned unchanged.
    """
    if not path:
        return None
    if path.startswith(("http://", "https://", "data:")):
        return path
    return f"{base_url}{'' if path.startswith('/') else '/'}{path}"


def decode_row(row: dict[str, Any]) -> dict[str, Any]:
    """Convert SQLite storage types back to booleans and lists."""
    decoded: dict[str, Any] = {}
    for key, value in row.items():
        if is_bool_column(key) and value is not None:
            value = bool(value)
        elif key in JSON_COLUMNS:
            value = json.loads(value) if value else []
        decoded[key] = value
    return decoded


def encode_values(values: dict[str, Any]) -> dict[str, Any]:
    """Convert API values to SQLite storage types."""
    encoded: dict[str, Any] = {}
    for key, value in values.items():
        if key in JSON_COLUMNS and value is not None and not isinstance(value, str):
            value = json.dumps(value)
        elif isinstance(value, bool):
            value = int(value)
        encoded[key] = value
    return encoded


def to_api(
    row: dict[str, Any],
    *,
    base_url: str,
    renames: dict[str, str] | None = None,
) -> dict[str, Any]:
    """
    Shape a database row for the API.

    Args:
        row: Raw row from the database
        base_url: Origin used to absolutize media paths
        renames: Column renames applied before camelCasing (e.g. image_url -> image)
    """
    renames = renames or {}
    shaped: dict[str, Any] = {}
    for key, value in decode_row(row).items():
        name = renames.get(key, key)
        if key.endswith("_url") or key in MEDIA_COLUMNS:
            value = full_url(value, base_url)
        shaped[to_camel(name)] = value
    return shaped


def normalize_payload(
    payload: dict[str, Any],
    columns: tuple[str, ...],
    aliases: dict[str, str] | None = None,
) -> dict[str, Any]:
    """
    Map a free-form camelCase or snake_case body onto table columns.

    Unknown keys and bookkeeping columns (id, timestamps) are dropped.
    """
    aliases = aliases or {}
    protected = {"id", "created_at", "updated_at"}
    values: dict[str, Any] = {}
    for key, value in payload.items():
        column = aliases.get(key) or to_snake(key)
        if column in columns and column not in protected:
            values[column] = value
    return values


def paginate(limit: int | None, page: int | None) -> tuple[int | None, int | None]:
    """Return (limit, offset) for 1-based page numbers; offset only applies with a limit."""
    if not limit:
        return None, None
    offset = (page - 1) * limit if page and page > 1 else 0
    return limit, offset
