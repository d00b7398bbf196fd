from __future__ import annotations


class LogSinkError(Exception):
  """Base class for errors raised by the log store core."""


class ValidationError(LogSinkError):
  """
  A candidate record failed validation.

  `reason` is the message of the first failing check. Not retriable until
  the caller fixes the input.
  """

  def __init__(self, reason: str) -> None:
    super().__init__(reason)
    self.reason = reason


class StoreError(LogSinkError):
  """
  Persisting the collection failed.

  Nothing partial is ever committed, so the operation is safe to retry.
  """
