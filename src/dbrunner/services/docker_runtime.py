"""Docker runtime services for dbrunner."""

import os
import tempfile
import threading
from typing import Dict, List, Optional

from dbrunner.errors import DBRunnerError, EngineInvocationError
from dbrunner.models import ContainerStatus, DatabaseKind
from dbrunner.services.catalog import CATALOG, find_kind, normalize_kind
from dbrunner.services.command_runner import CommandRunner
from dbrunner.services.compose import ComposeService
from dbrunner.services.config_store import ConfigStore
from dbrunner.services.filesystem import FileSystemService

DEFAULT_TAIL_LINES = 100
NO_LOGS_PLACEHOLDER = "No logs available"
STATUS_FORMAT = "{{.Status}}"


def classify_status(output: str) -> ContainerStatus:
    """Maps ``docker ps --format {{.Status}}`` output to a status.

    Any text mentioning "Up" counts as running; everything else, including
    "Exited" or "Created", counts as stopped.
    """
    if not output.strip():
        return ContainerStatus.STOPPED
    if "Up" in output:
        return ContainerStatus.RUNNING
    return ContainerStatus.STOPPED


def merge_log_streams(stdout: str, stderr: str) -> str:
    combined = stderr or ""
    if stdout:
        if combined:
            combined += "\n"
        combined += stdout
    return combined or NO_LOGS_PLACEHOLDER


class DockerRuntimeService:
    """Starts, stops and inspects database containers through docker compose.

    State lives in the engine; the only local artifact is the compose file at
    ``<compose_dir>/dbrunner-<kind>.yml`` kept between start and stop.
    """

    def __init__(
        self,
        logger,
        config_store: ConfigStore,
        command_runner: CommandRunner,
        filesystem_service: FileSystemService,
        compose_service: Optional[ComposeService] = None,
        engine: str = "docker",
        compose_dir: Optional[str] = None,
        legacy_template_dir: str = "docker-templates",
    ):
        self.logger = logger
        self.config_store = config_store
        self.command_runner = command_runner
        self.filesystem_service = filesystem_service
        self.compose_service = compose_service or ComposeService()
        self.engine = engine
        self.compose_dir = compose_dir or tempfile.gettempdir()
        self.legacy_template_dir = legacy_template_dir
        self._kind_locks: Dict[DatabaseKind, threading.Lock] = {
            kind: threading.Lock() for kind in DatabaseKind
        }

    def compose_cmd(self) -> List[str]:
        return [self.engine, "compose"]

    def compose_file_path(self, kind: DatabaseKind) -> str:
        return os.path.join(self.compose_dir, f"dbrunner-{kind.value}.yml")

    def legacy_template_path(self, kind: DatabaseKind) -> str:
        return os.path.join(self.legacy_template_dir, CATALOG[kind].legacy_template)

    def start(self, name: str) -> str:
        kind = normalize_kind(name)
        descriptor = CATALOG[kind]

        with self._kind_locks[kind]:
            config = self.config_store.get()
            custom_path = config.volume_paths.get(kind.value)
            content = self.compose_service.render(kind.value, custom_path, config)

            compose_file = self.compose_file_path(kind)
            self.filesystem_service.write_text(compose_file, content)

            self.logger.info("Starting %s from %s", descriptor.display_name, compose_file)
            self.command_runner.run(self.compose_cmd() + ["-f", compose_file, "up", "-d"])

        return f"{descriptor.display_name} started successfully"

    def stop(self, name: str) -> str:
        kind = normalize_kind(name)
        descriptor = CATALOG[kind]

        with self._kind_locks[kind]:
            compose_file = self.compose_file_path(kind)
            if os.path.exists(compose_file):
                file_to_use = compose_file
            else:
                file_to_use = self.legacy_template_path(kind)
                self.logger.warning(
                    "No generated compose file for %s; falling back to legacy template %s",
                    descriptor.display_name,
                    file_to_use,
                )

            self.logger.info("Stopping %s using %s", descriptor.display_name, file_to_use)
            self.command_runner.run(self.compose_cmd() + ["-f", file_to_use, "down"])
            self.filesystem_service.remove_file(compose_file)

        return f"{descriptor.display_name} stopped successfully"

    def status(self, name: str) -> ContainerStatus:
        kind = find_kind(name)
        if kind is None:
            return ContainerStatus.UNKNOWN

        container_name = CATALOG[kind].container_name
        cmd = [
            self.engine,
            "ps",
            "--filter",
            f"name={container_name}",
            "--format",
            STATUS_FORMAT,
        ]

        try:
            result = self.command_runner.run(cmd, check=False)
        except DBRunnerError as exc:
            self.logger.warning("Could not query status of %s: %s", container_name, exc)
            return ContainerStatus.ERROR

        if result.returncode != 0:
            return ContainerStatus.ERROR
        return classify_status(result.stdout or "")

    def logs(self, name: str, tail_lines: Optional[int] = None) -> str:
        kind = normalize_kind(name)
        container_name = CATALOG[kind].container_name
        lines = DEFAULT_TAIL_LINES if tail_lines is None else tail_lines

        result = self.command_runner.run(
            [self.engine, "logs", "--tail", str(lines), container_name],
            check=False,
        )
        if result.returncode != 0:
            stderr = result.stderr or ""
            raise EngineInvocationError(
                f"Container not running or not found: {stderr}",
                stderr=stderr,
            )

        return merge_log_streams(result.stdout or "", result.stderr or "")
