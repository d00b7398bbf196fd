from typing import Any, Dict

import pytest

from logsink_service.storage import JsonFileRecordStore


def make_log(**overrides: Any) -> Dict[str, Any]:
  record: Dict[str, Any] = {
    "level": "error",
    "message": "Failed to connect to DB",
    "resourceId": "server-1234",
    "timestamp": "2023-09-15T08:00:00Z",
    "traceId": "abc-xyz-123",
    "spanId": "span-456",
    "commit": "5e5342f",
    "metadata": {"parentResourceId": "server-0987"},
  }
  record.update(overrides)
  return record


@pytest.fixture
def store_path(tmp_path):
  return tmp_path / "db.json"


@pytest.fixture
def store(store_path):
  return JsonFileRecordStore(store_path)
