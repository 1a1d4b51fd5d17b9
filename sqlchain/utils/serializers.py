"""JSON serialization helpers shared by the logging formatter and the adapters."""

import json
from typing import Any

__all__ = ("from_json", "to_json")


def to_json(data: Any) -> str:
    """Encode data to a compact JSON string.

    Values the encoder does not know (datetimes, decimals, UUIDs) fall back to ``str``.

    Args:
        data: Data to encode.

    Returns:
        JSON string representation.
    """
    return json.dumps(data, default=str, separators=(",", ":"))


def from_json(data: "str | bytes") -> Any:
    return json.loads(data)
