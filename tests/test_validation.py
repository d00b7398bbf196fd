from datetime import datetime, timezone

import pytest

from conftest import make_log
from logsink_service.errors import ValidationError
from logsink_service.models import LogRecord, parse_instant
from logsink_service.validation import narrow_record, validate_log


def test_valid_record_passes():
  assert validate_log(make_log()) is None


@pytest.mark.parametrize(
  "field",
  ["level", "message", "resourceId", "timestamp", "traceId", "spanId", "commit", "metadata"],
)
def test_missing_field_is_named(field):
  log = make_log()
  del log[field]
  assert validate_log(log) == f"Missing required field: {field}"


def test_first_missing_field_wins():
  log = make_log()
  del log["commit"]
  del log["spanId"]
  assert validate_log(log) == "Missing required field: spanId"


def test_unknown_level_lists_allowed_levels():
  reason = validate_log(make_log(level="critical"))
  assert reason == "Invalid level. Expected one of: error, warn, info, debug"


def test_level_is_case_sensitive():
  assert validate_log(make_log(level="ERROR")) is not None


def test_non_string_level_rejected():
  assert validate_log(make_log(level=None)).startswith("Invalid level.")


@pytest.mark.parametrize("timestamp", ["not-a-date", "", 1694764800, None, True, "2023-13-45T08:00:00Z"])
def test_bad_timestamp_rejected(timestamp):
  assert validate_log(make_log(timestamp=timestamp)) == "Invalid timestamp. Must be ISO 8601 string."


@pytest.mark.parametrize(
  "timestamp",
  ["2023-09-15T08:00:00Z", "2023-09-15T08:00:00.123+07:00", "2023-09-15T08:00:00", "2023-09-15"],
)
def test_iso_timestamps_accepted(timestamp):
  assert validate_log(make_log(timestamp=timestamp)) is None


@pytest.mark.parametrize("timestamp", ["20230915T080000Z", "2023-09-15T0800Z", "2023-09-15T08:00:00+0200", "2023-09-15Z"])
def test_basic_and_partial_iso_forms_rejected(timestamp):
  assert validate_log(make_log(timestamp=timestamp)) == "Invalid timestamp. Must be ISO 8601 string."
  assert parse_instant(timestamp) is None


def test_fraction_of_any_width_parses_to_same_instant():
  expected = datetime(2023, 9, 15, 8, 0, 0, 500000, tzinfo=timezone.utc)
  assert parse_instant("2023-09-15T08:00:00.5Z") == expected
  assert parse_instant("2023-09-15T08:00:00.500000z") == expected
  assert parse_instant("2023-09-15 10:00:00.50+02:00") == expected


@pytest.mark.parametrize("metadata", [[], None, "x", 3, ["a", "b"]])
def test_metadata_must_be_object(metadata):
  assert validate_log(make_log(metadata=metadata)) == "Invalid metadata. Must be a JSON object."


def test_empty_metadata_object_is_fine():
  assert validate_log(make_log(metadata={})) is None


def test_check_order_missing_before_level():
  log = make_log(level="critical")
  del log["metadata"]
  assert validate_log(log) == "Missing required field: metadata"


def test_check_order_level_before_timestamp():
  reason = validate_log(make_log(level="critical", timestamp="nope", metadata=[]))
  assert reason.startswith("Invalid level.")


def test_check_order_timestamp_before_metadata():
  reason = validate_log(make_log(timestamp="nope", metadata=[]))
  assert reason.startswith("Invalid timestamp.")


def test_text_fields_must_be_strings():
  assert validate_log(make_log(message=42)) == "Invalid message. Must be a string."
  assert validate_log(make_log(commit=None)) == "Invalid commit. Must be a string."


@pytest.mark.parametrize("candidate", [None, [], "log", 7])
def test_non_mapping_candidate_reports_first_missing_field(candidate):
  assert validate_log(candidate) == "Missing required field: level"


def test_narrow_record_returns_typed_record_with_extras():
  record = narrow_record(make_log(host="web-1"))
  assert isinstance(record, LogRecord)
  assert record.level == "error"
  assert record.instant.isoformat() == "2023-09-15T08:00:00+00:00"
  assert record.model_dump(mode="json") == make_log(host="web-1")


def test_narrow_record_raises_with_reason():
  with pytest.raises(ValidationError) as exc_info:
    narrow_record(make_log(level="critical"))
  assert "error, warn, info, debug" in exc_info.value.reason
