"""Domain entities for tracked events and the shared events index."""

from dataclasses import dataclass, field
from typing import Any

RAW_PAYLOAD_FIELD = "raw_payload"


@dataclass
class NormalizedEvent:
    """A flat record derived from one tracking payload.

    ``fields`` holds the flattened key paths plus derived fields (app_id, did,
    created_at, updated_at). ``raw_payload`` is the untouched payload as JSON
    and is always present, even when flattening failed. ``index_timestamp``
    is the value recorded for this event in the events index.
    """

    fields: dict[str, Any]
    raw_payload: str
    flattened: bool = True
    index_timestamp: Any = None

    def to_content(self) -> dict[str, Any]:
        """Document content as written to the store."""
        content = dict(self.fields)
        content[RAW_PAYLOAD_FIELD] = self.raw_payload
        return content


@dataclass
class StoredDocument:
    """A document created in the store. ``url`` is its stream URL when the store has one."""

    id: str
    content: dict[str, Any]
    url: str | None = None

    @property
    def reference(self) -> str:
        return self.url or self.id


@dataclass(frozen=True)
class IndexEntry:
    """One `{id, updated_at}` reference in the events index."""

    id: str
    updated_at: Any

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "updated_at": self.updated_at}


@dataclass
class EventIndex:
    """The shared index document listing every event created through this client."""

    entries: list[IndexEntry] = field(default_factory=list)

    @classmethod
    def from_content(cls, content: dict[str, Any] | None) -> "EventIndex":
        if not content:
            return cls()
        raw_entries = content.get("events") or []
        return cls(
            entries=[
                IndexEntry(id=item["id"], updated_at=item.get("updated_at"))
                for item in raw_entries
                if isinstance(item, dict) and "id" in item
            ]
        )

    def appended(self, entry: IndexEntry) -> "EventIndex":
        """Return a new index with ``entry`` appended; the receiver is left unchanged."""
        return EventIndex(entries=[*self.entries, entry])

    def to_content(self) -> dict[str, Any]:
        return {"events": [entry.to_dict() for entry in self.entries]}
