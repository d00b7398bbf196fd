from __future__ import annotations

import argparse
import logging
import sys
from typing import NoReturn

import httpx

from . import storage
from .config import load_server_config
from .errors import StoreError


def main(argv: list[str] | None = None) -> NoReturn:
  argv = list(sys.argv[1:] if argv is None else argv)

  if not argv or argv[0] not in {"serve", "status", "init"}:
    print("Usage: python -m logsink_service {serve|status|init}", file=sys.stderr)
    print("  serve   - Run the HTTP API", file=sys.stderr)
    print("  status  - Check a running service", file=sys.stderr)
    print("  init    - Create the log store if it does not exist", file=sys.stderr)
    sys.exit(1)

  if argv[0] == "serve":
    _run_serve(argv[1:])
  elif argv[0] == "status":
    _run_status()
  elif argv[0] == "init":
    _run_init(argv[1:])
  sys.exit(0)


def _run_serve(args: list[str]) -> None:
  server_cfg = load_server_config()

  parser = argparse.ArgumentParser(prog="logsink serve", description="Run the log ingestion API")
  parser.add_argument("--host", default=server_cfg.host, help=f"Bind host (default: {server_cfg.host})")
  parser.add_argument("--port", type=int, default=server_cfg.port, help=f"Bind port (default: {server_cfg.port})")
  parsed = parser.parse_args(args)

  logging.basicConfig(
    level=server_cfg.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
  )

  # Create or recover the image before accepting requests
  storage.get_storage().load()

  import uvicorn

  from .api import app

  logging.getLogger(__name__).info("Starting log API on http://%s:%d", parsed.host, parsed.port)
  uvicorn.run(app, host=parsed.host, port=parsed.port)


def _run_status() -> None:
  server_cfg = load_server_config()
  url = f"http://{server_cfg.host}:{server_cfg.port}/status"

  try:
    resp = httpx.get(url, timeout=1.0)
    resp.raise_for_status()
    data = resp.json()
  except (httpx.HTTPError, ValueError):
    print(f"LogSink status: UNREACHABLE at {url}", file=sys.stderr)
    print("Hint: ensure the service is running and listening on this host/port.", file=sys.stderr)
    sys.exit(2)

  print("LogSink status: HEALTHY")
  print(f"Service: {data.get('service_name')} v{data.get('version')}")
  print(f"Store: {data.get('store_path')} ({data.get('record_count')} records)")


def _run_init(args: list[str]) -> None:
  parser = argparse.ArgumentParser(prog="logsink init", description="Create the log store if missing")
  parser.add_argument("--path", default=None, help="Store path (default: LOGSINK_DB_PATH or db.json)")
  parsed = parser.parse_args(args)

  if parsed.path:
    backend: storage.RecordStore = storage.JsonFileRecordStore(parsed.path)
  else:
    backend = storage.get_storage()

  try:
    collection = backend.load()
  except StoreError as exc:
    print(f"LogSink init failed: {exc}", file=sys.stderr)
    sys.exit(2)

  location = getattr(backend, "path", parsed.path)
  print(f"Log store ready at {location} ({len(collection.logs)} records)")


if __name__ == "__main__":
  main()
