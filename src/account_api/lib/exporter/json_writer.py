"""JSON export writer for user records."""

import json
import uuid
from datetime import date, datetime
from typing import Any


class _JSONEncoder(json.JSONEncoder):
    """Custom encoder handling UUIDs, dates, and other non-serializable types."""

    def default(self, o: object) -> Any:
        if isinstance(o, uuid.UUID):
            return str(o)
        if isinstance(o, datetime | date):
            return o.isoformat()
        return super().default(o)


def write_json(payload: dict[str, Any]) -> str:
    """Render an export envelope as an indented JSON document.

    Args:
        payload: The envelope (export metadata plus a ``users`` list).

    Returns:
        The JSON text.
    """
    return json.dumps(payload, cls=_JSONEncoder, indent=2) + "\n"
