import subprocess
import threading
import time

import pytest

from dbrunner.errors import (
    EngineInvocationError,
    FileWriteError,
    ProcessSpawnError,
    UnsupportedDatabase,
)
from dbrunner.models import ContainerStatus
from dbrunner.services.config_store import ConfigRepository, ConfigStore
from dbrunner.services.docker_runtime import (
    DockerRuntimeService,
    classify_status,
    merge_log_streams,
)
from dbrunner.services.filesystem import FileSystemService


class DummyLogger:
    def debug(self, *_args, **_kwargs):
        return None

    def info(self, *_args, **_kwargs):
        return None

    def warning(self, *_args, **_kwargs):
        return None


class FakeRunner:
    """Records commands and replays a scripted result."""

    def __init__(self, returncode=0, stdout="", stderr="", error=None):
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.error = error
        self.commands = []

    def run(self, cmd, check=True, timeout=None):
        self.commands.append(cmd)
        if self.error is not None:
            raise self.error
        if check and self.returncode != 0:
            raise EngineInvocationError(self.stderr, stderr=self.stderr)
        return subprocess.CompletedProcess(
            cmd, self.returncode, stdout=self.stdout, stderr=self.stderr
        )


def _service(tmp_path, runner, legacy_dir=None):
    repository = ConfigRepository(str(tmp_path / "config" / "config.json"), logger=DummyLogger())
    store = ConfigStore(repository=repository, logger=DummyLogger())
    compose_dir = tmp_path / "compose"
    compose_dir.mkdir(exist_ok=True)
    return DockerRuntimeService(
        logger=DummyLogger(),
        config_store=store,
        command_runner=runner,
        filesystem_service=FileSystemService(DummyLogger()),
        compose_dir=str(compose_dir),
        legacy_template_dir=legacy_dir or str(tmp_path / "docker-templates"),
    )


@pytest.mark.parametrize(
    "output, expected",
    [
        ("", ContainerStatus.STOPPED),
        ("   \n", ContainerStatus.STOPPED),
        ("Up 2 minutes", ContainerStatus.RUNNING),
        ("Up 5 seconds (healthy)\n", ContainerStatus.RUNNING),
        ("Exited (1)", ContainerStatus.STOPPED),
        ("Created", ContainerStatus.STOPPED),
    ],
)
def test_classify_status(output, expected):
    assert classify_status(output) is expected


def test_merge_log_streams_puts_stderr_first():
    assert merge_log_streams("out", "err") == "err\nout"
    assert merge_log_streams("out", "") == "out"
    assert merge_log_streams("", "err") == "err"
    assert merge_log_streams("", "") == "No logs available"


def test_start_writes_compose_file_and_runs_up(tmp_path):
    runner = FakeRunner()
    service = _service(tmp_path, runner)

    message = service.start("PostgreSQL")

    compose_file = tmp_path / "compose" / "dbrunner-postgresql.yml"
    assert message == "PostgreSQL started successfully"
    assert compose_file.exists()
    assert "container_name: dbrunner-postgres" in compose_file.read_text(encoding="utf-8")
    assert runner.commands == [["docker", "compose", "-f", str(compose_file), "up", "-d"]]


def test_start_uses_configured_volume_path(tmp_path):
    runner = FakeRunner()
    service = _service(tmp_path, runner)
    data_dir = tmp_path / "redis-data"
    data_dir.mkdir()
    service.config_store.set_volume_path("redis", str(data_dir))

    service.start("redis")

    content = (tmp_path / "compose" / "dbrunner-redis.yml").read_text(encoding="utf-8")
    assert f'- "{data_dir}:/data"' in content
    assert "driver: local" not in content


def test_start_overwrites_stale_compose_file(tmp_path):
    service = _service(tmp_path, FakeRunner())
    stale = tmp_path / "compose" / "dbrunner-mysql.yml"
    stale.write_text("stale", encoding="utf-8")

    service.start("mysql")

    assert 'image: "mysql:8.0"' in stale.read_text(encoding="utf-8")


def test_start_rejects_unknown_database(tmp_path):
    runner = FakeRunner()
    service = _service(tmp_path, runner)

    with pytest.raises(UnsupportedDatabase):
        service.start("oracle")

    assert runner.commands == []


def test_start_surfaces_engine_stderr(tmp_path):
    service = _service(tmp_path, FakeRunner(returncode=1, stderr="port is already allocated"))

    with pytest.raises(EngineInvocationError, match="port is already allocated"):
        service.start("postgresql")


def test_start_surfaces_spawn_failure(tmp_path):
    service = _service(tmp_path, FakeRunner(error=ProcessSpawnError("docker not found")))

    with pytest.raises(ProcessSpawnError):
        service.start("postgresql")


def test_start_reports_compose_write_failure(tmp_path):
    runner = FakeRunner()
    service = _service(tmp_path, runner)
    service.compose_dir = str(tmp_path / "does-not-exist")

    with pytest.raises(FileWriteError):
        service.start("redis")

    assert runner.commands == []


def test_stop_reuses_compose_file_and_deletes_it(tmp_path):
    runner = FakeRunner()
    service = _service(tmp_path, runner)
    service.start("mongodb")
    compose_file = tmp_path / "compose" / "dbrunner-mongodb.yml"

    message = service.stop("mongodb")

    assert message == "MongoDB stopped successfully"
    assert runner.commands[-1] == ["docker", "compose", "-f", str(compose_file), "down"]
    assert not compose_file.exists()


def test_stop_keeps_compose_file_when_engine_fails(tmp_path):
    runner = FakeRunner()
    service = _service(tmp_path, runner)
    service.start("mongodb")
    runner.returncode = 1
    runner.stderr = "daemon not running"

    with pytest.raises(EngineInvocationError, match="daemon not running"):
        service.stop("mongodb")

    assert (tmp_path / "compose" / "dbrunner-mongodb.yml").exists()


def test_stop_falls_back_to_legacy_template(tmp_path):
    runner = FakeRunner(returncode=1, stderr="open docker-templates/postgres.yml: no such file")
    legacy_dir = tmp_path / "docker-templates"
    service = _service(tmp_path, runner, legacy_dir=str(legacy_dir))

    with pytest.raises(EngineInvocationError) as exc_info:
        service.stop("postgresql")

    assert not isinstance(exc_info.value, UnsupportedDatabase)
    assert runner.commands == [
        ["docker", "compose", "-f", str(legacy_dir / "postgres.yml"), "down"]
    ]


def test_stop_rejects_unknown_database(tmp_path):
    runner = FakeRunner()

    with pytest.raises(UnsupportedDatabase):
        _service(tmp_path, runner).stop("oracle")

    assert runner.commands == []


def test_status_queries_container_by_name(tmp_path):
    runner = FakeRunner(stdout="Up 2 minutes\n")
    service = _service(tmp_path, runner)

    assert service.status("Redis") is ContainerStatus.RUNNING
    assert runner.commands == [
        ["docker", "ps", "--filter", "name=dbrunner-redis", "--format", "{{.Status}}"]
    ]


def test_status_maps_engine_failure_to_error(tmp_path):
    assert _service(tmp_path, FakeRunner(returncode=1)).status("redis") is ContainerStatus.ERROR


def test_status_maps_spawn_failure_to_error(tmp_path):
    runner = FakeRunner(error=ProcessSpawnError("docker not found"))

    assert _service(tmp_path, runner).status("redis") is ContainerStatus.ERROR


def test_status_of_unknown_kind_is_unknown(tmp_path):
    runner = FakeRunner()

    assert _service(tmp_path, runner).status("oracle") is ContainerStatus.UNKNOWN
    assert runner.commands == []


def test_logs_combine_streams_with_tail(tmp_path):
    runner = FakeRunner(stdout="ready to accept connections", stderr="LOG: starting")
    service = _service(tmp_path, runner)

    text = service.logs("postgresql", tail_lines=20)

    assert text == "LOG: starting\nready to accept connections"
    assert runner.commands == [["docker", "logs", "--tail", "20", "dbrunner-postgres"]]


def test_logs_default_tail_and_placeholder(tmp_path):
    runner = FakeRunner()
    service = _service(tmp_path, runner)

    assert service.logs("mysql") == "No logs available"
    assert runner.commands[0][3] == "100"


def test_logs_raise_when_container_missing(tmp_path):
    service = _service(tmp_path, FakeRunner(returncode=1, stderr="No such container"))

    with pytest.raises(EngineInvocationError, match="Container not running or not found: No such"):
        service.logs("redis")


def test_logs_reject_unknown_database(tmp_path):
    with pytest.raises(UnsupportedDatabase):
        _service(tmp_path, FakeRunner()).logs("oracle")


class BlockingRunner:
    """Holds every engine call open until released."""

    def __init__(self):
        self.entered = threading.Event()
        self.release = threading.Event()
        self.commands = []
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def run(self, cmd, check=True, timeout=None):
        with self._lock:
            self.commands.append(cmd)
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        self.entered.set()
        self.release.wait(5)
        with self._lock:
            self.active -= 1
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")


def test_start_and_stop_of_same_kind_do_not_overlap(tmp_path):
    runner = BlockingRunner()
    service = _service(tmp_path, runner)

    starter = threading.Thread(target=service.start, args=("redis",))
    starter.start()
    assert runner.entered.wait(5)

    stopper = threading.Thread(target=service.stop, args=("redis",))
    stopper.start()
    stopper.join(0.2)

    assert stopper.is_alive()
    assert len(runner.commands) == 1

    runner.release.set()
    starter.join(5)
    stopper.join(5)

    assert not starter.is_alive() and not stopper.is_alive()
    assert [cmd[-1] for cmd in runner.commands] == ["-d", "down"]
    assert runner.max_active == 1
    assert not (tmp_path / "compose" / "dbrunner-redis.yml").exists()


def test_different_kinds_are_not_serialized(tmp_path):
    runner = BlockingRunner()
    service = _service(tmp_path, runner)

    threads = [
        threading.Thread(target=service.start, args=(kind,)) for kind in ("redis", "mysql")
    ]
    for thread in threads:
        thread.start()
    for _ in range(50):
        if len(runner.commands) == 2:
            break
        time.sleep(0.05)

    assert runner.max_active == 2

    runner.release.set()
    for thread in threads:
        thread.join(5)
