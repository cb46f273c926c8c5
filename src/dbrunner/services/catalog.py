"""Built-in database catalog and image resolution."""

from typing import Dict, Optional, Union

from dbrunner.errors import UnsupportedDatabase
from dbrunner.errors_catalog import actionable_error
from dbrunner.models import Config, Credentials, DatabaseDescriptor, DatabaseKind

DEFAULT_POSTGRES_TAG = "18-alpine"
DEFAULT_MYSQL_TAG = "8.0"
DEFAULT_MONGODB_TAG = "8"
DEFAULT_REDIS_TAG = "8-alpine"

CATALOG: Dict[DatabaseKind, DatabaseDescriptor] = {
    DatabaseKind.POSTGRESQL: DatabaseDescriptor(
        kind=DatabaseKind.POSTGRESQL,
        display_name="PostgreSQL",
        base_image="postgres",
        default_tag=DEFAULT_POSTGRES_TAG,
        port=5432,
        container_name="dbrunner-postgres",
        data_path="/var/lib/postgresql/data",
        environment=(
            ("POSTGRES_USER", "postgres"),
            ("POSTGRES_PASSWORD", "postgres"),
            ("POSTGRES_DB", "devdb"),
        ),
        health_check=("CMD-SHELL", "pg_isready -U postgres"),
        volume_prefix="postgres",
        credentials=Credentials(user="postgres", password="postgres", database="devdb"),
        legacy_template="postgres.yml",
    ),
    DatabaseKind.MYSQL: DatabaseDescriptor(
        kind=DatabaseKind.MYSQL,
        display_name="MySQL",
        base_image="mysql",
        default_tag=DEFAULT_MYSQL_TAG,
        port=3306,
        container_name="dbrunner-mysql",
        data_path="/var/lib/mysql",
        environment=(
            ("MYSQL_ROOT_PASSWORD", "root"),
            ("MYSQL_DATABASE", "devdb"),
            ("MYSQL_USER", "mysql"),
            ("MYSQL_PASSWORD", "mysql"),
        ),
        health_check=("CMD", "mysqladmin", "ping", "-h", "localhost", "-u", "root", "-proot"),
        volume_prefix="mysql",
        credentials=Credentials(user="root", password="root", database="devdb"),
        legacy_template="mysql.yml",
    ),
    DatabaseKind.MONGODB: DatabaseDescriptor(
        kind=DatabaseKind.MONGODB,
        display_name="MongoDB",
        base_image="mongo",
        default_tag=DEFAULT_MONGODB_TAG,
        port=27017,
        container_name="dbrunner-mongodb",
        data_path="/data/db",
        environment=(
            ("MONGO_INITDB_ROOT_USERNAME", "admin"),
            ("MONGO_INITDB_ROOT_PASSWORD", "admin"),
            ("MONGO_INITDB_DATABASE", "devdb"),
        ),
        health_check=("CMD", "mongosh", "--eval", "db.adminCommand('ping')"),
        volume_prefix="mongodb",
        credentials=Credentials(user="admin", password="admin", database="devdb"),
        legacy_template="mongodb.yml",
    ),
    DatabaseKind.REDIS: DatabaseDescriptor(
        kind=DatabaseKind.REDIS,
        display_name="Redis",
        base_image="redis",
        default_tag=DEFAULT_REDIS_TAG,
        port=6379,
        container_name="dbrunner-redis",
        data_path="/data",
        environment=(),
        health_check=("CMD", "redis-cli", "ping"),
        volume_prefix="redis",
        credentials=Credentials(user="N/A", password="N/A", database="0 (default)"),
        legacy_template="redis.yml",
    ),
}


def find_kind(name: Union[str, DatabaseKind]) -> Optional[DatabaseKind]:
    """Returns the kind for a case-insensitive name, or None when not cataloged."""
    if isinstance(name, DatabaseKind):
        return name
    try:
        return DatabaseKind(str(name).strip().lower())
    except ValueError:
        return None


def normalize_kind(name: Union[str, DatabaseKind]) -> DatabaseKind:
    kind = find_kind(name)
    if kind is None:
        raise UnsupportedDatabase(actionable_error("unknown_database", name=str(name)))
    return kind


def get_descriptor(name: Union[str, DatabaseKind]) -> DatabaseDescriptor:
    return CATALOG[normalize_kind(name)]


def resolve_image(name: Union[str, DatabaseKind], config: Config) -> str:
    """Returns ``base:tag`` using the configured tag override when present.

    Unknown names resolve to ``":"`` so callers can tell them apart without an
    exception.
    """
    kind = find_kind(name)
    if kind is None:
        return ":"

    descriptor = CATALOG[kind]
    tag = config.image_tags.get(kind.value) or descriptor.default_tag
    return f"{descriptor.base_image}:{tag}"
