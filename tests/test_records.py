"""Tests for record validation and deduplication."""

from tokenmeter.models import UsageRecord
from tokenmeter.records import dedupe, is_valid_usage_record, record_identity


def test_valid_record(make_entry):
    assert is_valid_usage_record(make_entry())


def test_invalid_records(make_entry):
    assert not is_valid_usage_record(None)
    assert not is_valid_usage_record([1, 2])
    assert not is_valid_usage_record({"type": "user", "message": {"content": "hi"}})
    assert not is_valid_usage_record({"message": {"usage": None}})

    missing_output = make_entry()
    del missing_output["message"]["usage"]["output_tokens"]
    assert not is_valid_usage_record(missing_output)

    string_tokens = make_entry(input_tokens="100")
    assert not is_valid_usage_record(string_tokens)

    bool_tokens = make_entry(output_tokens=True)
    assert not is_valid_usage_record(bool_tokens)


def test_synthetic_and_error_entries_excluded(make_entry):
    assert not is_valid_usage_record(make_entry(model="<synthetic>"))
    assert not is_valid_usage_record(make_entry(isApiErrorMessage=True))
    assert is_valid_usage_record(make_entry(isApiErrorMessage=False))


def test_from_entry(make_entry):
    record = UsageRecord.from_entry(
        make_entry(
            input_tokens=10,
            output_tokens=20,
            cache_creation=30,
            cache_read=40,
            timestamp="2026-02-19T10:00:05.000Z",
        )
    )
    assert record.message_id == "msg_1"
    assert record.request_id == "req_1"
    assert record.total_tokens == 100
    assert record.timestamp.year == 2026
    assert record.timestamp.utcoffset().total_seconds() == 0


def test_from_entry_missing_cache_fields(make_entry):
    entry = make_entry()
    del entry["message"]["usage"]["cache_read_input_tokens"]
    entry["message"]["usage"]["cache_creation_input_tokens"] = None
    record = UsageRecord.from_entry(entry)
    assert record.cache_read_tokens == 0
    assert record.cache_creation_tokens == 0


def test_identity():
    assert record_identity(UsageRecord(message_id="m", request_id="r")) == "m-r"
    assert record_identity(UsageRecord(message_id="m")) == "m-"
    assert record_identity(UsageRecord()) == "-"


def test_dedupe_keeps_first_in_order():
    a1 = UsageRecord(message_id="a", request_id="1", input_tokens=1)
    b = UsageRecord(message_id="b", request_id="1", input_tokens=2)
    a2 = UsageRecord(message_id="a", request_id="1", input_tokens=99)
    c = UsageRecord(message_id="a", request_id="2", input_tokens=3)

    unique, seen = dedupe([a1, b, a2, c])
    assert unique == [a1, b, c]
    assert unique[0].input_tokens == 1
    assert seen == {"a-1", "b-1", "a-2"}


def test_dedupe_is_idempotent():
    records = [UsageRecord(message_id=str(i), request_id="r") for i in range(3)]
    once, _ = dedupe(records)
    twice, _ = dedupe(records + records)
    assert once == twice
