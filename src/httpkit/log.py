"""
=============================================================================
TRANSFER LOGGING
=============================================================================
One structured record per completed client transfer.

    TEXT FORMAT (default):
    ┌─────────────────────────────────────────────────────────────────────┐
    │ [18/Oct/2026:10:55:36 +0000] "GET http://host/api" 200 1234 5.21ms  │
    │ ────────────────────────────────────────────────────────────────── │
    │ Timestamp                    Method/URI        Status Size Duration │
    └─────────────────────────────────────────────────────────────────────┘

    JSON FORMAT:
    ┌─────────────────────────────────────────────────────────────────────┐
    │ {"method": "GET", "uri": "http://host/api", "status_code": 200,     │
    │  "content_length": 1234, "duration_ms": 5.21, ...}                  │
    └─────────────────────────────────────────────────────────────────────┘

The level follows the status: INFO for 1xx-3xx, WARNING for 4xx, ERROR
for 5xx. Records go to the "httpkit.transfer" logger:

    logging.getLogger("httpkit.transfer").setLevel(logging.WARNING)

Credentials never reach the record; the URI is logged without userinfo.
=============================================================================
"""

import json
import logging
import time
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlsplit, urlunsplit


logger = logging.getLogger("httpkit.transfer")


@dataclass
class TransferLog:
    """
    Structured log entry for one request/response exchange.

    status_code is None when the transfer produced no response.
    """
    method: str
    uri: str
    status_code: Optional[int]
    content_length: int
    duration_ms: float
    timestamp: str
    handler: str = "-"

    @classmethod
    def create(
        cls,
        method: str,
        uri: str,
        status_code: Optional[int],
        content_length: int,
        started: float,
        handler: str = "-",
    ) -> "TransferLog":
        """Build a record for a transfer that started at ``started`` (time.time())."""
        return cls(
            method=method,
            uri=strip_userinfo(uri),
            status_code=status_code,
            content_length=content_length,
            duration_ms=(time.time() - started) * 1000,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
            handler=handler,
        )

    @property
    def level(self) -> int:
        if self.status_code is None or self.status_code >= 500:
            return logging.ERROR
        if self.status_code >= 400:
            return logging.WARNING
        return logging.INFO

    def to_dict(self) -> dict:
        return {
            "method": self.method,
            "uri": self.uri,
            "status_code": self.status_code,
            "content_length": self.content_length,
            "duration_ms": round(self.duration_ms, 2),
            "timestamp": self.timestamp,
            "handler": self.handler,
        }

    def to_text(self) -> str:
        status = self.status_code if self.status_code is not None else "-"
        return (
            f'[{self.timestamp}] "{self.method} {self.uri}" {status} '
            f'{self.content_length} {self.duration_ms:.2f}ms'
        )


def strip_userinfo(uri: str) -> str:
    """Drop "user:pass@" from a URI."""
    parts = urlsplit(uri)
    if "@" not in parts.netloc:
        return uri
    netloc = parts.netloc.rsplit("@", 1)[1]
    return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))


def log_transfer(entry: TransferLog, log_format: str = "text") -> None:
    """Emit a record at the level its status calls for."""
    if log_format == "json":
        logger.log(entry.level, json.dumps(entry.to_dict()))
    else:
        logger.log(entry.level, entry.to_text())
