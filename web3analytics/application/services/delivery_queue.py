"""Event delivery queue — single-worker, strictly ordered event writes."""

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from web3analytics.application.interfaces import DocumentStore
from web3analytics.application.services.payload_normalizer import PayloadNormalizer
from web3analytics.domain.entities import EventIndex, IndexEntry, SessionState
from web3analytics.domain.exceptions import DeliveryError
from web3analytics.infrastructure.logging.colored_logger import DeliveryLogger, DeliveryStage

plog = DeliveryLogger(__name__)

EVENT_SCHEMA = "Event"
EVENTS_INDEX = "events"


@dataclass(frozen=True)
class DeliveryUnit:
    """One queued payload and its position in call order."""

    sequence: int
    payload: Mapping[str, Any]


class EventDeliveryQueue:
    """Serializes all event writes through one consumer task.

    ``enqueue`` never waits: it places the payload on an asyncio.Queue and
    returns. A single worker drains the queue, so unit n+1 starts only after
    unit n has succeeded or failed. The events index is maintained with a
    read-modify-write that has no server-side isolation; this ordering is the
    only thing keeping two appends from reading the same stale index.

    A failed unit is logged and dropped; the worker moves on to the next one.
    """

    def __init__(
        self,
        normalizer: PayloadNormalizer,
        document_store: DocumentStore,
        session: SessionState,
    ) -> None:
        if session.identity is None:
            raise ValueError("EventDeliveryQueue requires an authenticated session")
        self._normalizer = normalizer
        self._store = document_store
        self._session = session
        self._queue: asyncio.Queue[DeliveryUnit | None] = asyncio.Queue()
        self._worker: asyncio.Task | None = None
        self._sequence = 0
        self._closed = False

    @property
    def session(self) -> SessionState:
        return self._session

    def enqueue(self, payload: Mapping[str, Any]) -> int:
        """Queue a payload for delivery and return its sequence number."""
        if self._closed:
            raise RuntimeError("EventDeliveryQueue is closed")
        self._ensure_worker()
        self._sequence += 1
        self._queue.put_nowait(DeliveryUnit(sequence=self._sequence, payload=payload))
        return self._sequence

    async def drain(self) -> None:
        """Wait until every unit enqueued so far has settled."""
        await self._queue.join()

    async def aclose(self) -> None:
        """Deliver what is already queued, then stop the worker."""
        if self._closed:
            return
        self._closed = True
        if self._worker is None:
            return
        self._queue.put_nowait(None)
        await self._worker
        self._worker = None

    def _ensure_worker(self) -> None:
        if self._worker is None or self._worker.done():
            self._worker = asyncio.create_task(self._run(), name="web3analytics-delivery")

    async def _run(self) -> None:
        while True:
            unit = await self._queue.get()
            try:
                if unit is None:
                    return
                await self._deliver(unit)
            except Exception as exc:
                plog.step_error(DeliveryStage.ERROR, f"Event #{unit.sequence} dropped", error=exc)
            finally:
                self._queue.task_done()

    async def _deliver(self, unit: DeliveryUnit) -> None:
        identity = self._session.identity

        with plog.timed_step(DeliveryStage.NORMALIZE, f"Normalizing event #{unit.sequence}"):
            event = self._normalizer.normalize(
                unit.payload,
                app_id=self._session.app_id,
                did=identity.id,
            )
        plog.detail(f"Normalized event #{unit.sequence}", flattened=event.flattened, fields=len(event.fields))

        # Create the event document and read the index concurrently.
        created, index_content = await asyncio.gather(
            self._store.create_document(EVENT_SCHEMA, event.to_content()),
            self._store.read_named_document(EVENTS_INDEX),
            return_exceptions=True,
        )
        if isinstance(created, BaseException):
            raise DeliveryError(f"Could not create event document: {created}") from created

        with plog.timed_step(DeliveryStage.CREATE, f"Writing id into event #{unit.sequence}", id=created.id):
            content = dict(created.content)
            content["id"] = created.id
            await self._store.update_document(created.id, content)

        # A failed index read leaves the created document orphaned (stored but unindexed).
        if isinstance(index_content, BaseException):
            raise DeliveryError(
                f"Could not read events index; document {created.id} left unindexed: {index_content}",
                document_id=created.id,
            ) from index_content

        index = EventIndex.from_content(index_content).appended(
            IndexEntry(id=created.reference, updated_at=event.index_timestamp)
        )
        with plog.timed_step(DeliveryStage.INDEX, f"Appending event #{unit.sequence} to index", size=len(index.entries)):
            try:
                await self._store.set_named_document(EVENTS_INDEX, index.to_content())
            except Exception as exc:
                raise DeliveryError(
                    f"Could not write events index; document {created.id} left unindexed: {exc}",
                    document_id=created.id,
                ) from exc

        plog.step_complete(DeliveryStage.COMPLETE, f"Event #{unit.sequence} delivered", id=created.id)
