"""Entry index (contents.js) decoding.

The index is a JSON array of 8-element rows, one per vault item:

    [id, type, title, site, date, unknown1, unknown2, unknown3]

Each row is type-checked positionally and turned into an immutable
``EntryRecord``. One bad row fails the whole parse.
"""

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Sequence, Tuple, Union

from ..exceptions import MalformedDocument, MalformedEntry

ENTRY_ARITY = 8

# Positional layout: (field name, expected kind)
_LAYOUT = (
    ("id", str),
    ("entry_type", str),
    ("title", str),
    ("site", str),
    ("date", int),
    ("unknown1", str),
    ("unknown2", int),
    ("unknown3", str),
)


@dataclass(frozen=True)
class EntryRecord:
    """One row of the entry index."""
    id: str
    entry_type: str
    title: str
    site: str
    date: int
    unknown1: str
    unknown2: int
    unknown3: str

    @property
    def modified_at(self) -> datetime:
        """``date`` as an aware UTC datetime."""
        return datetime.fromtimestamp(self.date, tz=timezone.utc)


def _as_int(value: Any):
    """JSON number -> int, or None if it is not an integral number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _decode_entry(index: int, row: Any) -> EntryRecord:
    if not isinstance(row, list) or len(row) != ENTRY_ARITY:
        raise MalformedEntry(
            f"Entry {index}: expected an array of {ENTRY_ARITY} elements", index=index
        )

    values = {}
    for (name, kind), value in zip(_LAYOUT, row):
        if kind is int:
            value = _as_int(value)
            ok = value is not None
        else:
            ok = isinstance(value, str)
        if not ok:
            raise MalformedEntry(
                f"Entry {index}: field {name!r} must be a {kind.__name__}", index=index
            )
        values[name] = value

    return EntryRecord(**values)


def parse_entries(raw: Union[str, bytes, Sequence[Any]]) -> Tuple[EntryRecord, ...]:
    """
    Decode the entry index, preserving source order.

    Args:
        raw: JSON text, or the already-parsed array

    Raises:
        MalformedDocument: If the document is not a JSON array
        MalformedEntry: If any row has the wrong arity or field types
    """
    if isinstance(raw, (str, bytes, bytearray)):
        try:
            raw = json.loads(raw)
        except ValueError as exc:
            raise MalformedDocument(f"Entry index is not valid JSON: {exc}") from exc

    if not isinstance(raw, list):
        raise MalformedDocument("Entry index must be a JSON array")

    return tuple(_decode_entry(i, row) for i, row in enumerate(raw))
