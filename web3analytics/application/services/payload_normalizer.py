"""Payload normalizer — nested tracking payload → flat event record.

Strategy: copy-everything. Every flattened key path of the payload is kept;
nothing is allow-listed. Derived fields are written last and therefore win
over payload keys of the same name.
"""

import json
import logging
import math
from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import Any

from web3analytics.domain.entities import NormalizedEvent
from web3analytics.domain.exceptions import NormalizationError

logger = logging.getLogger(__name__)

DELIMITER = "_"
CIRCULAR_MARKER = "[Circular]"

_SCALARS = (str, int, float, bool, type(None))
_SETS = (set, frozenset)


def _json_leaf(value: Any) -> Any:
    """Return a JSON-safe leaf; foreign values and non-finite floats become strings."""
    if isinstance(value, float) and not math.isfinite(value):
        return str(value)
    if isinstance(value, _SCALARS):
        return value
    return str(value)


def flatten(payload: Mapping[str, Any], delimiter: str = DELIMITER) -> dict[str, Any]:
    """Flatten nested mappings and lists into single-level key paths.

    ``{"meta": {"ts": 1}, "tags": ["a"]}`` → ``{"meta_ts": 1, "tags_0": "a"}``.
    Sets are walked as sorted lists. Empty containers are kept as values and
    other leaves JSON cannot encode are stringified. Raises NormalizationError
    on circular structures or non-string keys.
    """
    if not isinstance(payload, Mapping):
        raise NormalizationError(f"Payload must be a mapping, got {type(payload).__name__}")

    output: dict[str, Any] = {}

    def walk(value: Any, prefix: str | None, ancestors: frozenset[int]) -> None:
        if isinstance(value, _SETS):
            value = sorted(value, key=repr)
        if isinstance(value, Mapping):
            items = list(value.items())
        elif isinstance(value, (list, tuple)):
            items = [(str(i), v) for i, v in enumerate(value)]
        else:
            items = []

        if not items:
            output[prefix] = value if isinstance(value, (Mapping, list, tuple)) else _json_leaf(value)
            return

        if id(value) in ancestors:
            raise NormalizationError(f"Circular reference at '{prefix}'")
        inner = ancestors | {id(value)}

        for key, child in items:
            if not isinstance(key, str):
                raise NormalizationError(f"Non-string key {key!r} at '{prefix}'")
            path = key if prefix is None else f"{prefix}{delimiter}{key}"
            walk(child, path, inner)

    if payload:
        walk(payload, None, frozenset())
    return output


def serialize_payload(payload: Any) -> str:
    """JSON-encode the payload exactly as supplied.

    JSON-compatible payloads round-trip through json.loads unchanged. Payloads
    that cannot be encoded directly (cycles, foreign objects) are encoded with
    cycles replaced by a marker and other values stringified.
    """
    try:
        return json.dumps(payload, separators=(",", ":"), allow_nan=False)
    except (TypeError, ValueError) as exc:
        logger.warning("Payload is not plain JSON, serializing a safe copy: %s", exc)
        return json.dumps(
            _safe_copy(payload, frozenset()), separators=(",", ":"), allow_nan=False, default=str
        )


def _safe_copy(value: Any, ancestors: frozenset[int]) -> Any:
    if isinstance(value, _SETS):
        value = sorted(value, key=repr)
    if isinstance(value, (Mapping, list, tuple)):
        if id(value) in ancestors:
            return CIRCULAR_MARKER
        inner = ancestors | {id(value)}
        if isinstance(value, Mapping):
            return {str(k): _safe_copy(v, inner) for k, v in value.items()}
        return [_safe_copy(v, inner) for v in value]
    return _json_leaf(value)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PayloadNormalizer:
    """Builds NormalizedEvents; never loses the raw payload."""

    def __init__(
        self,
        delimiter: str = DELIMITER,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self._delimiter = delimiter
        self._clock = clock

    def normalize(self, payload: Mapping[str, Any], *, app_id: str, did: str) -> NormalizedEvent:
        raw_payload = serialize_payload(payload)

        try:
            fields = flatten(payload, self._delimiter)
            flattened = True
        except NormalizationError as exc:
            logger.warning("Could not flatten payload, keeping top-level values only: %s", exc)
            fields = self._top_level_scalars(payload)
            flattened = False

        now = self._clock()
        updated_at = int(now.timestamp() * 1000)

        ts_key = f"meta{self._delimiter}ts"
        if fields.get(ts_key) is not None:
            fields[ts_key] = str(fields[ts_key])

        fields["updated_at"] = updated_at
        fields["created_at"] = now.isoformat(timespec="milliseconds").replace("+00:00", "Z")
        fields["app_id"] = app_id
        fields["did"] = did

        return NormalizedEvent(
            fields=fields,
            raw_payload=raw_payload,
            flattened=flattened,
            index_timestamp=self._meta_timestamp(payload, default=updated_at),
        )

    @staticmethod
    def _top_level_scalars(payload: Any) -> dict[str, Any]:
        if not isinstance(payload, Mapping):
            return {}
        return {
            str(key): _json_leaf(value)
            for key, value in payload.items()
            if not isinstance(value, (Mapping, list, tuple, *_SETS))
        }

    @staticmethod
    def _meta_timestamp(payload: Any, default: int) -> Any:
        meta = payload.get("meta") if isinstance(payload, Mapping) else None
        if isinstance(meta, Mapping) and meta.get("ts") is not None:
            return _json_leaf(meta["ts"])
        return default
