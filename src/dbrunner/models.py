"""Shared domain models for dbrunner."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class DatabaseKind(str, Enum):
    POSTGRESQL = "postgresql"
    MYSQL = "mysql"
    MONGODB = "mongodb"
    REDIS = "redis"


class ContainerStatus(str, Enum):
    RUNNING = "running"
    STOPPED = "stopped"
    ERROR = "error"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Credentials:
    user: str
    password: str
    database: str


@dataclass(frozen=True)
class DatabaseDescriptor:
    """Built-in container defaults for one supported database kind."""

    kind: DatabaseKind
    display_name: str
    base_image: str
    default_tag: str
    port: int
    container_name: str
    data_path: str
    environment: Tuple[Tuple[str, str], ...]
    health_check: Tuple[str, ...]
    volume_prefix: str
    credentials: Credentials
    legacy_template: str

    @property
    def volume_name(self) -> str:
        return f"{self.volume_prefix}_data"


@dataclass
class Config:
    """User overrides keyed by lower-case database kind."""

    volume_paths: Dict[str, str] = field(default_factory=dict)
    image_tags: Dict[str, str] = field(default_factory=dict)

    def copy(self) -> "Config":
        return Config(volume_paths=dict(self.volume_paths), image_tags=dict(self.image_tags))

    def to_dict(self) -> Dict[str, Dict[str, str]]:
        return {"volume_paths": dict(self.volume_paths), "image_tags": dict(self.image_tags)}


@dataclass
class CommandResult:
    """Structured outcome handed back to the caller of an operation."""

    success: bool
    message: str
    data: Optional[Any] = None
    error: Optional[str] = None


@dataclass
class DatabaseInfo:
    name: str
    status: str
    port: int
    image: str
    volume_path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "status": self.status,
            "port": self.port,
            "image": self.image,
        }
        if self.volume_path is not None:
            data["volume_path"] = self.volume_path
        return data
