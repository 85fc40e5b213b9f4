import asyncio
import logging
from typing import Any, Mapping, Optional, Sequence

from recordlens.config import ENRICH_CONCURRENCY
from recordlens.domain.models.core import Record, coerce_record
from recordlens.domain.ports import RecordDetailApi, RecordUpdateApi
from recordlens.errors import EmptyInputRejected, NetworkFailure
from recordlens.events.bus import EventBus
from recordlens.events.record_events import RecordsChangedEvent


def normalize_title(title: str) -> str:
    """Collapse inner whitespace and trim; raise when nothing is left."""
    normalized = " ".join((title or "").split())
    if not normalized:
        raise EmptyInputRejected("title")
    return normalized


class RecordService:
    """
    Application Service Facade for single-record operations.
    Full-record fetches back the projection enrichment of list screens;
    writes announce themselves with RecordsChangedEvent so resident
    collections reload.
    """
    def __init__(
        self,
        detail_api: Optional[RecordDetailApi] = None,
        update_api: Optional[RecordUpdateApi] = None,
        event_bus: Optional[EventBus] = None,
        concurrency: int = ENRICH_CONCURRENCY,
    ):
        self._detail_api = detail_api
        self._update_api = update_api
        self._event_bus = event_bus
        self._semaphore = asyncio.Semaphore(max(1, concurrency))
        self._logger = logging.getLogger(__name__)

    async def get_record(self, record_id: str) -> Record:
        if self._detail_api is None:
            raise NotImplementedError("RecordDetailApi not configured")
        try:
            payload = await self._detail_api.get_record(record_id)
        except Exception as exc:
            raise NetworkFailure(f"Loading record {record_id}", exc) from exc
        return coerce_record(payload)

    async def enrich(self, records: Sequence[Record]) -> list[Record]:
        """Resolve model names for records that only carry model references.

        A record whose full fetch fails is kept as it came from the list.
        """
        async def enrich_one(record: Record) -> Record:
            if record.is_enriched:
                return record
            async with self._semaphore:
                try:
                    full = await self.get_record(record.id)
                except NetworkFailure as exc:
                    self._logger.warning("Keeping %s unenriched: %s", record.id, exc)
                    return record
            return record.with_model_names(full.secondary_identifiers)

        return list(await asyncio.gather(*(enrich_one(r) for r in records)))

    async def rename(self, record_id: str, title: str) -> str:
        """Validate and store a new title; returns the stored title."""
        if self._update_api is None:
            raise NotImplementedError("RecordUpdateApi not configured")
        normalized = normalize_title(title)
        try:
            ok = await self._update_api.update_record(record_id, {"title": normalized})
        except Exception as exc:
            raise NetworkFailure(f"Renaming record {record_id}", exc) from exc
        if ok is False:
            raise NetworkFailure(f"Renaming record {record_id}")

        self._logger.info("Renamed record %s to %r", record_id, normalized)
        if self._event_bus is not None:
            self._event_bus.publish(RecordsChangedEvent(record_ids=[record_id]))
        return normalized
