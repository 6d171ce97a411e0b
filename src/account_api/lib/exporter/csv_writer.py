"""CSV export writer for user records."""

import csv
import io
from collections.abc import Iterable
from datetime import datetime
from typing import Any

# (record key, header label) in output order
DEFAULT_COLUMNS: list[tuple[str, str]] = [
    ("id", "ID"),
    ("first_name", "First Name"),
    ("last_name", "Last Name"),
    ("email", "Email"),
    ("role", "Role"),
    ("first_login", "First Login"),
    ("last_login", "Last Login"),
    ("created_at", "Created At"),
    ("updated_at", "Updated At"),
]


def _format_cell(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S")
    return str(value)


def write_csv(
    records: Iterable[dict[str, Any]],
    *,
    columns: list[tuple[str, str]] | None = None,
) -> str:
    """Render user records as CSV text.

    Every field is wrapped in double quotes and embedded quotes are doubled.

    Args:
        records: Iterable of user record dicts.
        columns: ``(key, header)`` pairs to include. Defaults to DEFAULT_COLUMNS.

    Returns:
        The CSV document, header row first, ``\\n`` line endings.
    """
    cols = columns or DEFAULT_COLUMNS
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow([header for _, header in cols])
    for record in records:
        writer.writerow([_format_cell(record.get(key)) for key, _ in cols])
    return buffer.getvalue()
