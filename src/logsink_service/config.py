from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List

DEFAULT_DB_PATH = "db.json"
DEFAULT_HOST = "localhost"
DEFAULT_PORT = 4000
DEFAULT_MAX_BODY_BYTES = 1024 * 1024
DEFAULT_LOG_LEVEL = "INFO"

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


@dataclass(frozen=True)
class StoreConfig:
  path: Path


@dataclass(frozen=True)
class ServerConfig:
  host: str
  port: int
  cors_origins: List[str]
  max_body_bytes: int
  log_level: str


def load_store_config() -> StoreConfig:
  """
  Load the persisted image location from LOGSINK_DB_PATH.

  Defaults to db.json in the current working directory.
  """
  raw = os.getenv("LOGSINK_DB_PATH", "").strip()
  if not raw:
    return StoreConfig(path=Path(DEFAULT_DB_PATH))
  return StoreConfig(path=Path(raw).expanduser())


def _int_env(name: str, default: int) -> int:
  raw = os.getenv(name)
  if raw is None:
    return default
  try:
    return int(raw)
  except ValueError:
    # Fallback to default on invalid input
    return default


def load_server_config() -> ServerConfig:
  """
  Load HTTP server settings from the environment.

  LOGSINK_CORS_ORIGINS is a comma-separated list, "*" allows every origin.
  Invalid numbers and unknown log levels fall back to their defaults.
  """
  host = os.getenv("LOGSINK_HOST", "").strip() or DEFAULT_HOST

  port = _int_env("LOGSINK_PORT", DEFAULT_PORT)
  if port < 1 or port > 65535:
    port = DEFAULT_PORT

  raw_origins = os.getenv("LOGSINK_CORS_ORIGINS", "*")
  if raw_origins.strip() == "*":
    origins = ["*"]
  else:
    origins = [o.strip() for o in raw_origins.split(",") if o.strip()]
    if not origins:
      origins = ["*"]

  max_body = _int_env("LOGSINK_MAX_BODY_BYTES", DEFAULT_MAX_BODY_BYTES)
  if max_body < 1:
    max_body = DEFAULT_MAX_BODY_BYTES

  log_level = os.getenv("LOGSINK_LOG_LEVEL", DEFAULT_LOG_LEVEL).strip().upper()
  if log_level not in _LOG_LEVELS:
    log_level = DEFAULT_LOG_LEVEL

  return ServerConfig(
    host=host,
    port=port,
    cors_origins=origins,
    max_body_bytes=max_body,
    log_level=log_level,
  )
