"""
Configuration module for dashstore.
"""

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Dict, List, Optional

from ..auth.session import SessionConfig
from ..errors import ConfigurationError, ErrorCode
from ..tokenstore import STORAGE_BACKENDS
from ..transport.http import DEFAULT_API_URL, TransportConfig
from ..util.config import (
    get_config_value,
    get_list_config,
    load_config_file,
    parse_duration,
)


COLLECTION_RESOURCES = ["workshops", "services", "blogs", "subscribers", "who-am-i"]
SINGLETON_RESOURCES = ["settings", "profile"]

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class StorageConfig:
    """Credential storage configuration"""
    backend: str = "memory"
    path: Optional[str] = None
    redis_url: Optional[str] = None
    key_prefix: str = "dashstore:"


@dataclass
class Config:
    """Configuration for the dashboard client"""
    transport: TransportConfig = field(default_factory=TransportConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    resources: List[str] = field(default_factory=lambda: list(COLLECTION_RESOURCES))
    singletons: List[str] = field(default_factory=lambda: list(SINGLETON_RESOURCES))
    resource_timeouts: Dict[str, timedelta] = field(default_factory=dict)
    idempotent_delete: bool = True
    log_level: str = "INFO"

    @property
    def base_url(self) -> str:
        return self.transport.base_url

    @classmethod
    def from_env(cls) -> "Config":
        """Create configuration from DASHSTORE_* environment variables"""
        return cls(
            transport=TransportConfig(
                base_url=get_config_value("api_url", DEFAULT_API_URL),
                timeout=parse_duration(get_config_value("timeout", "30s")),
            ),
            session=SessionConfig(
                session_ttl=parse_duration(get_config_value("session_ttl", "24h")),
                check_interval=parse_duration(get_config_value("session_check_interval", "24m")),
            ),
            storage=StorageConfig(
                backend=get_config_value("storage", "memory"),
                path=get_config_value("storage_path"),
                redis_url=get_config_value("redis_url"),
            ),
            resources=get_list_config("resources", list(COLLECTION_RESOURCES)),
            singletons=get_list_config("singletons", list(SINGLETON_RESOURCES)),
            idempotent_delete=get_config_value("idempotent_delete", True, bool),
            log_level=get_config_value("log_level", "INFO"),
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """
        Create configuration from a nested dictionary.

        Durations may be given as seconds or strings such as '30s' or '24h'.
        """
        transport_data = dict(data.get("transport") or {})
        if "timeout" in transport_data:
            transport_data["timeout"] = parse_duration(transport_data["timeout"])

        session_data = dict(data.get("session") or {})
        for key in ("session_ttl", "check_interval"):
            if key in session_data:
                session_data[key] = parse_duration(session_data[key])

        try:
            return cls(
                transport=TransportConfig(**transport_data),
                session=SessionConfig(**session_data),
                storage=StorageConfig(**(data.get("storage") or {})),
                resources=list(data.get("resources", COLLECTION_RESOURCES)),
                singletons=list(data.get("singletons", SINGLETON_RESOURCES)),
                resource_timeouts={
                    name: parse_duration(value)
                    for name, value in (data.get("resource_timeouts") or {}).items()
                },
                idempotent_delete=bool(data.get("idempotent_delete", True)),
                log_level=str(data.get("log_level", "INFO")),
            )
        except TypeError as e:
            raise ConfigurationError(
                f"Invalid configuration: {e}", code=ErrorCode.INVALID_CONFIGURATION, cause=e
            ) from e

    @classmethod
    def from_file(cls, file_path: str) -> "Config":
        """Create configuration from a JSON or YAML file"""
        return cls.from_dict(load_config_file(file_path))

    def validate(self) -> bool:
        """Validate the configuration"""
        def fail(message: str) -> None:
            raise ConfigurationError(message, code=ErrorCode.INVALID_CONFIGURATION)

        if not self.transport.base_url:
            fail("transport.base_url is required")
        if self.transport.timeout.total_seconds() <= 0:
            fail("transport.timeout must be positive")
        if self.session.session_ttl.total_seconds() <= 0:
            fail("session.session_ttl must be positive")
        if self.storage.backend not in STORAGE_BACKENDS:
            fail(f"storage.backend must be one of {STORAGE_BACKENDS}")
        if self.storage.backend == "file" and not self.storage.path:
            fail("storage.path is required for file storage")
        if self.storage.backend == "redis" and not self.storage.redis_url:
            fail("storage.redis_url is required for redis storage")
        overlap = set(self.resources) & set(self.singletons)
        if overlap:
            fail(f"resources declared both as collection and singleton: {sorted(overlap)}")
        if self.log_level.upper() not in LOG_LEVELS:
            fail(f"log_level must be one of {LOG_LEVELS}")
        return True

    def apply_logging(self) -> None:
        """Set the level of the dashstore logger."""
        logging.getLogger("dashstore").setLevel(self.log_level.upper())
