"""
The two operations the core exposes to its collaborators.

`ingest` validates a candidate and appends it through the store.
`query` filters and sorts a read-only snapshot and never raises for bad
filter values.
"""

from __future__ import annotations

from typing import Any, List, Optional

from . import storage
from .models import FilterSet, LogRecord
from .query import run_query
from .validation import narrow_record


def ingest(candidate: Any, store: Optional[storage.RecordStore] = None) -> LogRecord:
  """
  Validate and persist one record.

  Raises ValidationError before the store is touched, or StoreError if
  persisting fails (nothing is committed in that case).
  """
  record = narrow_record(candidate)
  backend = store or storage.get_storage()
  return backend.append(record)


def query(filters: Optional[FilterSet] = None, store: Optional[storage.RecordStore] = None) -> List[LogRecord]:
  backend = store or storage.get_storage()
  snapshot = backend.load()
  return run_query(snapshot.logs, filters)
