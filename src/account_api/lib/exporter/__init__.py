"""Exporter library: public API for user data export.

Provides format-specific writers and a unified render function.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from account_api.lib.exporter.csv_writer import DEFAULT_COLUMNS, write_csv
from account_api.lib.exporter.json_writer import write_json

SUPPORTED_FORMATS = ["json", "csv"]

_MEDIA_TYPES = {
    "json": "application/json",
    "csv": "text/csv",
}


@dataclass
class ExportResult:
    """Rendered export document plus the metadata a transport needs to serve it."""

    content: bytes
    media_type: str
    filename: str
    record_count: int


def export_users(
    records: Sequence[dict[str, Any]],
    output_format: str,
    *,
    exported_at: datetime,
) -> ExportResult:
    """Render user records in the requested format.

    Args:
        records: User record dicts (never containing a password hash).
        output_format: ``json`` or ``csv``.
        exported_at: Timestamp stamped on the envelope and the filename.

    Returns:
        ExportResult with the encoded document.

    Raises:
        ValueError: If the format is not supported.
    """
    renderers: dict[str, Callable[[], str]] = {
        "json": lambda: write_json(
            {
                "exported_at": exported_at,
                "total_users": len(records),
                "format": "json",
                "users": list(records),
            }
        ),
        "csv": lambda: write_csv(records),
    }
    if output_format not in renderers:
        msg = f"Unsupported format: {output_format}. Supported: {SUPPORTED_FORMATS}"
        raise ValueError(msg)

    return ExportResult(
        content=renderers[output_format]().encode("utf-8"),
        media_type=_MEDIA_TYPES[output_format],
        filename=f"users_export_{exported_at:%Y-%m-%d}.{output_format}",
        record_count=len(records),
    )


__all__ = [
    "DEFAULT_COLUMNS",
    "SUPPORTED_FORMATS",
    "ExportResult",
    "export_users",
    "write_csv",
    "write_json",
]
