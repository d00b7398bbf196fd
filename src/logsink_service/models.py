from __future__ import annotations

import re
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LogLevel(str, Enum):
  ERROR = "error"
  WARN = "warn"
  INFO = "info"
  DEBUG = "debug"


ALLOWED_LEVELS = [level.value for level in LogLevel]

REQUIRED_FIELDS = [
  "level",
  "message",
  "resourceId",
  "timestamp",
  "traceId",
  "spanId",
  "commit",
  "metadata",
]

TEXT_FIELDS = ["message", "resourceId", "traceId", "spanId", "commit"]


# Extended ISO 8601 only. Every part this accepts is understood by
# datetime.fromisoformat on all supported interpreters.
_ISO_INSTANT = re.compile(
  r"(?P<date>[0-9]{4}-[0-9]{2}-[0-9]{2})"
  r"(?:[Tt ](?P<time>[0-9]{2}:[0-9]{2}(?::[0-9]{2}(?:\.(?P<fraction>[0-9]{1,6}))?)?)"
  r"(?P<offset>[Zz]|[+-][0-9]{2}:[0-9]{2})?)?"
)


def parse_instant(value: Any) -> Optional[datetime]:
  """Parse an ISO 8601 timestamp into a timezone-aware datetime.

  Returns None when the value is not a string or cannot be parsed.
  Timestamps without an offset are interpreted as UTC. The basic format
  (``20230915T080000Z``) is rejected.
  """
  if not isinstance(value, str):
    return None
  match = _ISO_INSTANT.fullmatch(value.strip())
  if match is None:
    return None
  text = match.group("date")
  if match.group("time"):
    clock = match.group("time")
    fraction = match.group("fraction")
    if fraction:
      clock = clock[: -len(fraction)] + fraction.ljust(6, "0")
    text += "T" + clock
    offset = match.group("offset")
    if offset:
      text += "+00:00" if offset in ("Z", "z") else offset
  try:
    dt = datetime.fromisoformat(text)
  except ValueError:
    return None
  if dt.tzinfo is None:
    dt = dt.replace(tzinfo=timezone.utc)
  return dt


class LogRecord(BaseModel):
  """
  A single stored log entry.

  `timestamp` keeps the text the caller sent so the stored record is
  returned unchanged; use `instant` for comparisons. Keys outside the
  required set are preserved as-is.
  """

  model_config = ConfigDict(extra="allow", use_enum_values=True)

  level: LogLevel
  message: str
  resourceId: str
  timestamp: str
  traceId: str
  spanId: str
  commit: str
  metadata: Dict[str, Any]

  @field_validator("timestamp")
  @classmethod
  def _timestamp_is_instant(cls, value: str) -> str:
    if parse_instant(value) is None:
      raise ValueError("timestamp must be an ISO 8601 string")
    return value

  @property
  def instant(self) -> datetime:
    return parse_instant(self.timestamp)  # type: ignore[return-value]


class RecordCollection(BaseModel):
  """
  Persisted image of the whole store: {"logs": [...]}.

  Sibling keys next to `logs` are kept so the image can grow without a
  format migration.
  """

  model_config = ConfigDict(extra="allow")

  logs: List[LogRecord] = Field(default_factory=list)


class FilterSet(BaseModel):
  """
  Optional query predicates, combined with AND.

  Values are kept as raw strings; an empty string counts as absent and a
  malformed timestamp bound is ignored by the query engine.
  """

  level: Optional[str] = None
  message: Optional[str] = None
  resourceId: Optional[str] = None
  timestamp_start: Optional[str] = None
  timestamp_end: Optional[str] = None
  traceId: Optional[str] = None
  spanId: Optional[str] = None
  commit: Optional[str] = None
