from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Optional

from . import __version__, storage
from .config import load_server_config


@dataclass
class ServiceStatus:
  status: str
  service_name: str
  version: str
  host: str
  port: int
  store_path: Optional[str]
  record_count: int
  corrupt_recoveries: int


def get_status() -> dict:
  """
  Return a simple status payload for the running service.
  """
  server_cfg = load_server_config()
  backend = storage.get_storage()

  store_path = getattr(backend, "path", None)
  payload = ServiceStatus(
    status="healthy",
    service_name="logsink",
    version=__version__,
    host=server_cfg.host,
    port=server_cfg.port,
    store_path=str(store_path) if store_path is not None else None,
    record_count=len(backend.load().logs),
    corrupt_recoveries=getattr(backend, "corrupt_recoveries", 0),
  )
  return asdict(payload)
