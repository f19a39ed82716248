"""
=============================================================================
CLIENT CONFIGURATION
=============================================================================
Default transfer settings for clients, in one typed place.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   Priority (highest to lowest):                                     │
    │                                                                     │
    │   1. Options passed to Client(...)                                  │
    │      └── Client(uri, {"timeout": 5})                                │
    │                                                                     │
    │   2. Environment variables                                          │
    │      └── HTTPKIT_TIMEOUT=5 python -m httpkit ...                    │
    │                                                                     │
    │   3. Default values (in this dataclass)                             │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

    config = ClientConfig.from_env()
    config.validate()
    client = Client(uri, {**config.to_client_options(), "method": "POST"})

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Any, Dict, Optional


HTTP_VERSIONS = ("1.0", "1.1", "2")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str) -> Optional[float]:
    value = os.getenv(name)
    return float(value) if value not in (None, "") else None


@dataclass
class ClientConfig:
    """
    Transfer settings shared by the clients of an application.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    IDENTITY
    - user_agent, base_uri

    TIMEOUTS
    - timeout, connect_timeout

    TLS
    - verify_peer, allow_self_signed

    REDIRECTS & PROTOCOL
    - follow_location, max_redirects, http_version

    LOGGING
    - log_level, log_format

    =========================================================================
    """

    user_agent: str = "httpkit/1.0"
    base_uri: Optional[str] = None

    timeout: Optional[float] = 30.0
    """Whole-transfer timeout in seconds. None waits forever."""

    connect_timeout: Optional[float] = 10.0

    verify_peer: bool = True
    allow_self_signed: bool = False

    follow_location: bool = False
    max_redirects: int = 10

    http_version: Optional[str] = None
    """"1.0", "1.1" or "2"; None lets the transport choose."""

    log_level: str = "INFO"
    log_format: str = "text"

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        HTTPKIT_USER_AGENT         User-Agent header (default: httpkit/1.0)
        HTTPKIT_BASE_URI           Prefix for relative request URIs
        HTTPKIT_TIMEOUT            Transfer timeout, seconds (default: 30)
        HTTPKIT_CONNECT_TIMEOUT    Connect timeout, seconds (default: 10)
        HTTPKIT_VERIFY_PEER        1/0, true/false (default: true)
        HTTPKIT_ALLOW_SELF_SIGNED  1/0, true/false (default: false)
        HTTPKIT_FOLLOW_LOCATION    1/0, true/false (default: false)
        HTTPKIT_MAX_REDIRECTS      Redirect limit (default: 10)
        HTTPKIT_HTTP_VERSION       1.0, 1.1 or 2
        HTTPKIT_LOG_LEVEL          Logging level (default: INFO)
        HTTPKIT_LOG_FORMAT         text or json (default: text)

        =====================================================================
        """
        defaults = cls()
        timeout = _env_float("HTTPKIT_TIMEOUT")
        connect_timeout = _env_float("HTTPKIT_CONNECT_TIMEOUT")

        return cls(
            user_agent=os.getenv("HTTPKIT_USER_AGENT", defaults.user_agent),
            base_uri=os.getenv("HTTPKIT_BASE_URI") or None,
            timeout=timeout if timeout is not None else defaults.timeout,
            connect_timeout=connect_timeout if connect_timeout is not None else defaults.connect_timeout,
            verify_peer=_env_bool("HTTPKIT_VERIFY_PEER", defaults.verify_peer),
            allow_self_signed=_env_bool("HTTPKIT_ALLOW_SELF_SIGNED", defaults.allow_self_signed),
            follow_location=_env_bool("HTTPKIT_FOLLOW_LOCATION", defaults.follow_location),
            max_redirects=int(os.getenv("HTTPKIT_MAX_REDIRECTS", str(defaults.max_redirects))),
            http_version=os.getenv("HTTPKIT_HTTP_VERSION") or None,
            log_level=os.getenv("HTTPKIT_LOG_LEVEL", defaults.log_level).upper(),
            log_format=os.getenv("HTTPKIT_LOG_FORMAT", defaults.log_format),
        )

    def validate(self) -> None:
        """
        Check every value, raising on the first bad one.

        Raises:
            ValueError: If a setting is out of range or unknown
        """
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.connect_timeout is not None and self.connect_timeout <= 0:
            raise ValueError("connect_timeout must be > 0")

        if self.max_redirects < 0:
            raise ValueError("max_redirects must be >= 0")

        if self.http_version is not None and self.http_version not in HTTP_VERSIONS:
            raise ValueError(
                f"Invalid http_version: {self.http_version}. Must be one of {', '.join(HTTP_VERSIONS)}."
            )

        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"Invalid log_level: {self.log_level}")

        if self.log_format not in ("text", "json"):
            raise ValueError(f"Invalid log_format: {self.log_format}. Must be text or json.")

        if self.base_uri is not None and not self.base_uri.startswith(("http://", "https://")):
            raise ValueError(f"base_uri must be an http(s) URI: {self.base_uri}")

    def to_client_options(self) -> Dict[str, Any]:
        """The settings as Client options (unset ones left out)."""
        options: Dict[str, Any] = {
            "user_agent": self.user_agent,
            "verify_peer": self.verify_peer,
            "allow_self_signed": self.allow_self_signed,
            "follow_location": self.follow_location,
            "max_redirects": self.max_redirects,
            "log_format": self.log_format,
        }
        if self.base_uri:
            options["base_uri"] = self.base_uri
        if self.timeout is not None:
            options["timeout"] = self.timeout
        if self.connect_timeout is not None:
            options["connect_timeout"] = self.connect_timeout
        if self.http_version is not None:
            options["http_version"] = self.http_version
        return options
