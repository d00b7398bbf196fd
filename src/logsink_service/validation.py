"""Ingest-time validation of candidate log records.

Checks run in a fixed order and stop at the first failure:

1. every required field is present
2. `level` is one of error, warn, info, debug
3. `timestamp` parses to an instant
4. `metadata` is a JSON object
5. the text fields are strings

Callers rely on which message is reported when several fields are bad at
once, so the order must not change.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError
from .models import ALLOWED_LEVELS, REQUIRED_FIELDS, TEXT_FIELDS, LogRecord, parse_instant


def validate_log(candidate: Any) -> Optional[str]:
  """Return None when the candidate is valid, otherwise the first failing reason."""
  if not isinstance(candidate, Mapping):
    candidate = {}

  for key in REQUIRED_FIELDS:
    if key not in candidate:
      return f"Missing required field: {key}"

  level = candidate["level"]
  if not isinstance(level, str) or level not in ALLOWED_LEVELS:
    return f"Invalid level. Expected one of: {', '.join(ALLOWED_LEVELS)}"

  if parse_instant(candidate["timestamp"]) is None:
    return "Invalid timestamp. Must be ISO 8601 string."

  if not isinstance(candidate["metadata"], Mapping):
    return "Invalid metadata. Must be a JSON object."

  for key in TEXT_FIELDS:
    if not isinstance(candidate[key], str):
      return f"Invalid {key}. Must be a string."

  return None


def narrow_record(candidate: Any) -> LogRecord:
  """
  Validate a loosely-typed candidate and build a LogRecord from it.

  Raises ValidationError with the first failing reason.
  """
  reason = validate_log(candidate)
  if reason is not None:
    raise ValidationError(reason)
  try:
    return LogRecord.model_validate(dict(candidate))
  except PydanticValidationError as exc:
    # Only reachable for non-JSON input, e.g. metadata with non-string keys
    first = exc.errors()[0]
    field = ".".join(str(part) for part in first["loc"])
    raise ValidationError(f"Invalid {field}. {first['msg']}") from exc
