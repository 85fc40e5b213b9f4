from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from dateutil.parser import isoparse

from recordlens.config import TAG_SEPARATOR


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Coerce an API timestamp into an aware UTC ``datetime``.

    Accepts ISO 8601 strings, epoch seconds and ``datetime`` objects.  Naive
    values are taken to be UTC so records stay comparable when sorted.
    """

    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        parsed = datetime.fromtimestamp(value, tz=timezone.utc)
    else:
        parsed = isoparse(str(value))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _string_tuple(values: Any) -> Tuple[str, ...]:
    if values is None:
        return ()
    if isinstance(values, str):
        return (values,)
    return tuple(str(v) for v in values)


@dataclass(frozen=True)
class Record:
    id: str
    title: str = ""
    model_refs: Tuple[str, ...] = ()
    tags: Tuple[str, ...] = ()
    updated_at: Optional[datetime] = None
    metadata: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    # Derived on the client; never part of the raw list response
    model_names: Tuple[str, ...] = ()

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> Record:
        """Build a record from a raw API mapping.

        Known keys are lifted into fields; everything else stays in
        ``metadata``.
        """

        known = {"id", "title", "models", "model_refs", "tags", "updated_at", "updated", "model_names"}
        models = payload.get("model_refs", payload.get("models"))
        return cls(
            id=str(payload["id"]),
            title=str(payload.get("title") or ""),
            model_refs=_string_tuple(models),
            tags=_string_tuple(payload.get("tags")),
            updated_at=parse_timestamp(payload.get("updated_at", payload.get("updated"))),
            metadata={k: v for k, v in payload.items() if k not in known},
            model_names=_string_tuple(payload.get("model_names")),
        )

    @property
    def secondary_identifiers(self) -> Tuple[str, ...]:
        """Resolved model names when enriched, raw model references otherwise."""
        return self.model_names or self.model_refs

    @property
    def is_enriched(self) -> bool:
        return bool(self.model_names) or not self.model_refs

    def with_tags(self, tags: Sequence[str]) -> Record:
        return replace(self, tags=tuple(tags))

    def with_model_names(self, names: Sequence[str]) -> Record:
        return replace(self, model_names=tuple(names))

    def search_text(self) -> Tuple[str, str, str]:
        """Title, joined secondary identifiers and joined tags, casefolded."""
        return (
            self.title.casefold(),
            TAG_SEPARATOR.join(self.secondary_identifiers).casefold(),
            TAG_SEPARATOR.join(self.tags).casefold(),
        )


@dataclass(frozen=True)
class SearchPage:
    """One page of a server-side search: the page items and the declared total."""

    items: Tuple[Record, ...] = ()
    total: Optional[int] = None

    @classmethod
    def from_payload(cls, payload: Any) -> SearchPage:
        if isinstance(payload, SearchPage):
            return payload
        items = payload.get("items") or ()
        total = payload.get("total")
        return cls(
            items=tuple(coerce_record(item) for item in items),
            total=int(total) if total is not None else None,
        )


def coerce_record(value: Any) -> Record:
    if isinstance(value, Record):
        return value
    return Record.from_payload(value)
