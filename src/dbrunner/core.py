import logging
import os
import subprocess
from typing import Any, Callable, List, Optional

from .errors import DBRunnerError
from .models import CommandResult, ContainerStatus, DatabaseInfo
from .services.catalog import (
    CATALOG,
    find_kind,
    get_descriptor,
    normalize_kind,
    resolve_image,
)
from .services.command_runner import CommandRunner
from .services.compose import ComposeService
from .services.config_store import CONFIG_FILE_NAME, ConfigRepository, ConfigStore
from .services.connection import generate_connection_strings
from .services.docker_runtime import DockerRuntimeService
from .services.filesystem import FileSystemService

logger = logging.getLogger("dbrunner")


class DBRunner:
    """Operation boundary for managing local development database containers.

    Every mutating operation returns a CommandResult; domain errors are
    reported through it instead of being raised.
    """

    OPERATION_ALIASES = {
        "listDatabases": "list_databases",
        "startDatabase": "start_database",
        "stopDatabase": "stop_database",
        "getDatabaseStatus": "get_database_status",
        "setVolumePath": "set_volume_path",
        "getVolumePath": "get_volume_path",
        "setImageTag": "set_image_tag",
        "getImageTag": "get_image_tag",
        "getContainerLogs": "get_container_logs",
        "generateConnectionStrings": "generate_connection_strings",
    }

    def __init__(
        self,
        config_dir: Optional[str] = None,
        compose_dir: Optional[str] = None,
        legacy_template_dir: str = "docker-templates",
        engine: str = "docker",
        engine_timeout: Optional[float] = None,
        config_store: Optional[ConfigStore] = None,
        command_runner: Optional[CommandRunner] = None,
    ):
        if config_store is None:
            config_file = os.path.join(config_dir, CONFIG_FILE_NAME) if config_dir else None
            repository = ConfigRepository(config_file=config_file, logger=logger)
            config_store = ConfigStore(repository=repository, logger=logger)
        self.config_store = config_store

        self.command_runner = command_runner or CommandRunner(
            logger=logger,
            default_timeout=engine_timeout,
            subprocess_module=subprocess,
        )
        self.filesystem_service = FileSystemService(logger=logger)
        self.compose_service = ComposeService()
        self.docker_runtime_service = DockerRuntimeService(
            logger=logger,
            config_store=self.config_store,
            command_runner=self.command_runner,
            filesystem_service=self.filesystem_service,
            compose_service=self.compose_service,
            engine=engine,
            compose_dir=compose_dir,
            legacy_template_dir=legacy_template_dir,
        )

    def _guard(self, action: Callable[[], CommandResult]) -> CommandResult:
        try:
            return action()
        except DBRunnerError as exc:
            logger.error(str(exc))
            return CommandResult(success=False, message=str(exc), error=type(exc).__name__)

    def list_databases(self, include_status: bool = False) -> List[DatabaseInfo]:
        config = self.config_store.get()
        databases = []
        for kind, descriptor in CATALOG.items():
            status = ContainerStatus.STOPPED
            if include_status:
                status = self.docker_runtime_service.status(kind.value)
            databases.append(
                DatabaseInfo(
                    name=descriptor.display_name,
                    status=status.value,
                    port=descriptor.port,
                    image=resolve_image(kind, config),
                    volume_path=config.volume_paths.get(kind.value),
                )
            )
        return databases

    def start_database(self, name: str) -> CommandResult:
        def action():
            message = self.docker_runtime_service.start(name)
            return CommandResult(success=True, message=message)

        return self._guard(action)

    def stop_database(self, name: str) -> CommandResult:
        def action():
            message = self.docker_runtime_service.stop(name)
            return CommandResult(success=True, message=message)

        return self._guard(action)

    def get_database_status(self, name: str) -> str:
        return self.docker_runtime_service.status(name).value

    def set_volume_path(self, name: str, path: str) -> CommandResult:
        def action():
            kind = normalize_kind(name)
            stored = self.config_store.set_volume_path(kind.value, path)
            return CommandResult(
                success=True,
                message=f"Volume path set for {name}",
                data=stored,
            )

        return self._guard(action)

    def get_volume_path(self, name: str) -> Optional[str]:
        kind = find_kind(name)
        if kind is None:
            return None
        return self.config_store.get_volume_path(kind.value)

    def set_image_tag(self, name: str, tag: str) -> CommandResult:
        def action():
            kind = normalize_kind(name)
            stored = self.config_store.set_image_tag(kind.value, tag)
            if stored is None:
                return CommandResult(success=True, message=f"Reset {name} to default image tag")
            return CommandResult(success=True, message=f"Image tag set for {name}", data=stored)

        return self._guard(action)

    def get_image_tag(self, name: str) -> Optional[str]:
        kind = find_kind(name)
        if kind is None:
            return None
        return self.config_store.get_image_tag(kind.value)

    def get_container_logs(self, name: str, tail_lines: Optional[int] = None) -> CommandResult:
        def action():
            text = self.docker_runtime_service.logs(name, tail_lines=tail_lines)
            return CommandResult(success=True, message="Logs retrieved", data=text)

        return self._guard(action)

    def generate_connection_strings(self, name: str, port: Optional[int] = None) -> CommandResult:
        def action():
            effective_port = port if port is not None else get_descriptor(name).port
            strings = generate_connection_strings(name, effective_port)
            return CommandResult(
                success=True,
                message=f"Connection strings for {name}",
                data=strings,
            )

        return self._guard(action)

    def dispatch(self, operation: str, **kwargs: Any) -> Any:
        """Invokes an exposed operation by its snake_case or camelCase name."""
        method_name = self.OPERATION_ALIASES.get(operation, operation)
        if method_name not in self.OPERATION_ALIASES.values():
            raise KeyError(f"Unknown operation: {operation}")
        return getattr(self, method_name)(**kwargs)
