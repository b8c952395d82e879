"""Unit tests for the PayloadNormalizer."""

import json
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from web3analytics.application.services.payload_normalizer import (
    CIRCULAR_MARKER,
    PayloadNormalizer,
    flatten,
    serialize_payload,
)
from web3analytics.domain.entities import RAW_PAYLOAD_FIELD
from web3analytics.domain.exceptions import NormalizationError

APP_ID = "0x" + "12" * 20
DID = "did:key:zQ3sTest"
FIXED_NOW = datetime(2024, 5, 1, 12, 30, 15, 250000, tzinfo=timezone.utc)


@pytest.fixture
def normalizer() -> PayloadNormalizer:
    return PayloadNormalizer(clock=lambda: FIXED_NOW)


def _page_payload() -> dict:
    return {
        "type": "page",
        "anonymousId": "a1b2",
        "properties": {"url": "https://example.com/", "path": "/", "tags": ["x", "y"]},
        "meta": {"ts": 1714566615250, "rid": "r-1"},
        "options": {},
    }


# ── flatten ──


def test_flatten_nested_mappings_and_lists():
    result = flatten(_page_payload())

    assert result["type"] == "page"
    assert result["properties_url"] == "https://example.com/"
    assert result["properties_tags_0"] == "x"
    assert result["properties_tags_1"] == "y"
    assert result["meta_ts"] == 1714566615250
    assert result["options"] == {}
    assert "properties" not in result


def test_flatten_custom_delimiter():
    assert flatten({"a": {"b": 1}}, delimiter=".") == {"a.b": 1}


def test_flatten_rejects_circular_structure():
    payload: dict = {"event": "loop"}
    payload["self"] = payload

    with pytest.raises(NormalizationError):
        flatten(payload)


def test_flatten_allows_shared_non_circular_references():
    shared = {"k": 1}
    assert flatten({"a": shared, "b": shared}) == {"a_k": 1, "b_k": 1}


# ── serialize_payload ──


def test_serialize_payload_round_trips():
    payload = _page_payload()
    assert json.loads(serialize_payload(payload)) == payload


def test_serialize_payload_marks_cycles():
    payload: dict = {"event": "loop"}
    payload["self"] = payload

    assert json.loads(serialize_payload(payload)) == {"event": "loop", "self": CIRCULAR_MARKER}


# ── normalize ──


@pytest.mark.parametrize(
    "payload",
    [
        {"event": "page_view"},
        _page_payload(),
        {"traits": {"email": "a@b.c", "plan": None, "score": 1.5, "active": True}},
        {"nested": {"list": [{"deep": [1, 2, {"x": "ü"}]}]}},
        {},
    ],
)
def test_raw_payload_round_trips(normalizer: PayloadNormalizer, payload: dict):
    event = normalizer.normalize(payload, app_id=APP_ID, did=DID)

    assert json.loads(event.raw_payload) == payload
    assert json.loads(event.to_content()[RAW_PAYLOAD_FIELD]) == payload


def test_normalize_adds_derived_fields(normalizer: PayloadNormalizer):
    event = normalizer.normalize(_page_payload(), app_id=APP_ID, did=DID)

    assert event.flattened is True
    assert event.fields["app_id"] == APP_ID
    assert event.fields["did"] == DID
    assert event.fields["created_at"] == "2024-05-01T12:30:15.250Z"
    assert event.fields["updated_at"] == int(FIXED_NOW.timestamp() * 1000)


def test_normalize_stringifies_meta_timestamp(normalizer: PayloadNormalizer):
    event = normalizer.normalize(_page_payload(), app_id=APP_ID, did=DID)

    assert event.fields["meta_ts"] == "1714566615250"
    assert event.index_timestamp == 1714566615250


def test_index_timestamp_defaults_to_update_time(normalizer: PayloadNormalizer):
    event = normalizer.normalize({"event": "click"}, app_id=APP_ID, did=DID)
    assert event.index_timestamp == event.fields["updated_at"]


def test_derived_fields_override_payload_keys(normalizer: PayloadNormalizer):
    event = normalizer.normalize({"app_id": "spoofed", "did": "spoofed"}, app_id=APP_ID, did=DID)

    assert event.fields["app_id"] == APP_ID
    assert event.fields["did"] == DID
    assert json.loads(event.raw_payload) == {"app_id": "spoofed", "did": "spoofed"}


def test_payload_is_not_mutated(normalizer: PayloadNormalizer):
    payload = _page_payload()
    normalizer.normalize(payload, app_id=APP_ID, did=DID)
    assert payload == _page_payload()


def test_self_referential_payload_degrades_but_keeps_raw(normalizer: PayloadNormalizer):
    payload: dict = {"event": "loop", "count": 3, "nested": {"a": 1}}
    payload["self"] = payload

    event = normalizer.normalize(payload, app_id=APP_ID, did=DID)

    assert event.flattened is False
    assert event.raw_payload
    assert json.loads(event.raw_payload)["self"] == CIRCULAR_MARKER
    assert event.fields["event"] == "loop"
    assert event.fields["count"] == 3
    assert "nested" not in event.fields
    for key in ("app_id", "did", "created_at", "updated_at"):
        assert key in event.fields


# ── Values outside JSON ──


def test_flatten_stringifies_foreign_leaves():
    when = datetime(2024, 5, 1, tzinfo=timezone.utc)
    fields = flatten({"when": when, "price": Decimal("1.5"), "blob": b"\x01", "ratio": float("nan")})

    assert fields == {
        "when": str(when),
        "price": "1.5",
        "blob": str(b"\x01"),
        "ratio": "nan",
    }


def test_flatten_walks_sets_as_sorted_lists():
    assert flatten({"ids": {2, 1}, "none": set()}) == {"ids_0": 1, "ids_1": 2, "none": []}


def test_serialize_payload_never_emits_nan():
    raw = serialize_payload({"ratio": float("nan"), "tags": {"b", "a"}})
    assert json.loads(raw) == {"ratio": "nan", "tags": ["a", "b"]}
    assert "NaN" not in raw


def test_fallback_stringifies_foreign_top_level_values(normalizer: PayloadNormalizer):
    payload: dict = {"event": "loop", "price": Decimal("2.25"), "ratio": float("inf")}
    payload["self"] = payload

    event = normalizer.normalize(payload, app_id=APP_ID, did=DID)

    assert event.flattened is False
    assert event.fields["price"] == "2.25"
    assert event.fields["ratio"] == "inf"
    json.dumps(event.to_content(), allow_nan=False)
