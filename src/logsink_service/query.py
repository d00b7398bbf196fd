"""Filtering and ordering of a record snapshot.

All predicates are optional and combined with AND. Text predicates
(`message`, `resourceId`) are case-insensitive substring matches, `level`
and the identifier predicates are exact. Timestamp bounds are inclusive; a
bound that does not parse is ignored rather than rejected, unlike the
strict checks applied at ingest time.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Iterable, List, Optional

from .models import FilterSet, LogRecord, parse_instant

Predicate = Callable[[LogRecord], bool]


def _contains(field: str, needle: str) -> Predicate:
  needle = needle.lower()
  return lambda r: needle in getattr(r, field).lower()


def _equals(field: str, expected: str) -> Predicate:
  return lambda r: getattr(r, field) == expected


def _not_before(start: datetime) -> Predicate:
  return lambda r: r.instant >= start


def _not_after(end: datetime) -> Predicate:
  return lambda r: r.instant <= end


def build_predicates(filters: FilterSet) -> List[Predicate]:
  predicates: List[Predicate] = []

  if filters.level:
    predicates.append(_equals("level", filters.level))
  if filters.message:
    predicates.append(_contains("message", filters.message))
  if filters.resourceId:
    predicates.append(_contains("resourceId", filters.resourceId))

  start: Optional[datetime] = parse_instant(filters.timestamp_start)
  if start is not None:
    predicates.append(_not_before(start))
  end: Optional[datetime] = parse_instant(filters.timestamp_end)
  if end is not None:
    predicates.append(_not_after(end))

  if filters.traceId:
    predicates.append(_equals("traceId", filters.traceId))
  if filters.spanId:
    predicates.append(_equals("spanId", filters.spanId))
  if filters.commit:
    predicates.append(_equals("commit", filters.commit))

  return predicates


def apply_filters(records: Iterable[LogRecord], filters: FilterSet) -> List[LogRecord]:
  predicates = build_predicates(filters)
  return [r for r in records if all(p(r) for p in predicates)]


def sort_records(records: Iterable[LogRecord]) -> List[LogRecord]:
  """Most recent first. Records with equal timestamps keep their input order."""
  return sorted(records, key=lambda r: r.instant, reverse=True)


def run_query(records: Iterable[LogRecord], filters: Optional[FilterSet] = None) -> List[LogRecord]:
  return sort_records(apply_filters(records, filters or FilterSet()))
