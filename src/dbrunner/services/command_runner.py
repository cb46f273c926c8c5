"""Subprocess execution service for dbrunner."""

import subprocess
from typing import List, Optional

from dbrunner.errors import EngineInvocationError, ProcessSpawnError
from dbrunner.errors_catalog import actionable_error


class CommandRunner:
    """Runs container engine commands with consistent error handling."""

    def __init__(
        self,
        logger,
        default_timeout: Optional[float] = None,
        subprocess_module=subprocess,
    ):
        self.logger = logger
        self.default_timeout = default_timeout
        self.subprocess = subprocess_module

    def run(
        self,
        cmd: List[str],
        check: bool = True,
        timeout: Optional[float] = None,
    ) -> subprocess.CompletedProcess:
        """Runs ``cmd`` capturing both streams as text.

        Raises ProcessSpawnError when the binary cannot be launched, and
        EngineInvocationError on a non-zero exit when ``check`` is set.
        """
        cmd_str = " ".join(cmd)
        self.logger.debug("Executing: %s", cmd_str)

        effective_timeout = timeout if timeout is not None else self.default_timeout

        try:
            result = self.subprocess.run(
                cmd,
                text=True,
                capture_output=True,
                timeout=effective_timeout,
            )
        except FileNotFoundError as exc:
            raise ProcessSpawnError(actionable_error("engine_not_found", engine=cmd[0])) from exc
        except subprocess.TimeoutExpired as exc:
            raise EngineInvocationError(
                f"Command timed out after {effective_timeout}s: {cmd_str}"
            ) from exc
        except OSError as exc:
            raise ProcessSpawnError(f"Failed to execute command: {cmd_str}. {exc}") from exc

        if result.stdout:
            self.logger.debug("Command output: %s", result.stdout.strip())

        if result.returncode == 0 or not check:
            return result

        stderr = result.stderr or ""
        self.logger.warning("Command failed (%s): %s", result.returncode, cmd_str)
        message = stderr or f"Command failed ({result.returncode}): {cmd_str}"
        raise EngineInvocationError(message, stderr=stderr)
