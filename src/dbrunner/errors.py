"""Domain errors for dbrunner."""


class DBRunnerError(RuntimeError):
    """Raised when a database operation cannot be completed."""


class ValidationError(DBRunnerError):
    """Raised for bad user input such as a missing path or malformed tag."""


class UnsupportedDatabase(DBRunnerError):
    """Raised when a database name is not one of the cataloged kinds."""


class PersistError(DBRunnerError):
    """Raised when the configuration file cannot be written."""


class FileWriteError(DBRunnerError):
    """Raised when the compose file cannot be written."""


class ProcessSpawnError(DBRunnerError):
    """Raised when the container engine binary cannot be launched."""


class EngineInvocationError(DBRunnerError):
    """Raised when the container engine exits with a non-zero status."""

    def __init__(self, message: str, stderr: str = ""):
        super().__init__(message)
        self.stderr = stderr
