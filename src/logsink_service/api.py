from __future__ import annotations

import json
import logging
from typing import Dict, List, Optional

from fastapi import FastAPI, Query, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from . import __version__, service
from . import status as service_status
from .config import load_server_config
from .errors import StoreError, ValidationError
from .models import FilterSet

logger = logging.getLogger(__name__)

app = FastAPI(title="LogSink", version=__version__)


def install_cors(application: FastAPI) -> None:
  """CORS for browser clients; allowed origins come from LOGSINK_CORS_ORIGINS."""
  application.add_middleware(
    CORSMiddleware,
    allow_origins=load_server_config().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
  )


install_cors(app)


def _error(status_code: int, message: str) -> JSONResponse:
  return JSONResponse(status_code=status_code, content={"error": message})


def _reject_constant(name: str) -> None:
  # json.loads accepts NaN/Infinity, strict JSON does not
  raise ValueError(f"Invalid JSON constant: {name}")


def _declared_length(request: Request) -> Optional[int]:
  try:
    return int(request.headers.get("content-length", ""))
  except ValueError:
    return None


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
  logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
  return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error")


@app.get("/", response_class=PlainTextResponse)
async def root() -> str:
  return "Log Ingestion API is running"


@app.get("/status")
def status_endpoint() -> Dict[str, object]:
  """
  Lightweight status endpoint, includes the store's record count.
  """
  return service_status.get_status()


@app.post("/logs", status_code=status.HTTP_201_CREATED)
async def ingest_log(request: Request) -> JSONResponse:
  """
  Ingest one log record.

  400 with the first failing validation reason, 413 when the body is over
  LOGSINK_MAX_BODY_BYTES, 500 when the store cannot persist.
  """
  limit = load_server_config().max_body_bytes
  too_large = f"Request body exceeds {limit} bytes."
  declared = _declared_length(request)
  if declared is not None and declared > limit:
    return _error(status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, too_large)

  # Chunked uploads declare no length
  body = await request.body()
  if len(body) > limit:
    return _error(status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, too_large)

  try:
    payload = json.loads(body, parse_constant=_reject_constant) if body else None
  except ValueError:
    return _error(status.HTTP_400_BAD_REQUEST, "Malformed JSON body.")

  try:
    # File I/O and the writer lock must stay off the event loop
    record = await run_in_threadpool(service.ingest, payload)
  except ValidationError as exc:
    return _error(status.HTTP_400_BAD_REQUEST, exc.reason)

  return JSONResponse(status_code=status.HTTP_201_CREATED, content=record.model_dump(mode="json"))


@app.get("/logs")
def list_logs(
  level: Optional[str] = Query(None, description="Exact level: error, warn, info, debug"),
  message: Optional[str] = Query(None, description="Case-insensitive substring of message"),
  resourceId: Optional[str] = Query(None, description="Case-insensitive substring of resourceId"),
  timestamp_start: Optional[str] = Query(None, description="ISO 8601 lower bound, inclusive; ignored if malformed"),
  timestamp_end: Optional[str] = Query(None, description="ISO 8601 upper bound, inclusive; ignored if malformed"),
  traceId: Optional[str] = Query(None, description="Exact traceId"),
  spanId: Optional[str] = Query(None, description="Exact spanId"),
  commit: Optional[str] = Query(None, description="Exact commit"),
) -> List[Dict[str, object]]:
  """
  List logs matching every supplied filter, most recent first.

  Always succeeds with a (possibly empty) array.
  """
  filters = FilterSet(
    level=level,
    message=message,
    resourceId=resourceId,
    timestamp_start=timestamp_start,
    timestamp_end=timestamp_end,
    traceId=traceId,
    spanId=spanId,
    commit=commit,
  )
  records = service.query(filters)
  return [r.model_dump(mode="json") for r in records]
