"""
logsink_service

Structured log ingestion and querying over a single crash-safe JSON store.
"""

__version__ = "0.1.0"
