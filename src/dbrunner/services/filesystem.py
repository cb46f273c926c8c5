"""Filesystem helpers for dbrunner."""

import logging
import os

from dbrunner.errors import FileWriteError


class FileSystemService:
    """Encapsulates compose file side effects."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def write_text(self, path: str, content: str):
        try:
            with open(path, "w", encoding="utf-8", newline="\n") as file_obj:
                file_obj.write(content)
        except OSError as exc:
            raise FileWriteError(f"Failed to create compose file: {exc}") from exc
        self.logger.debug("Wrote compose file: %s", path)

    def remove_file(self, path: str) -> bool:
        if not os.path.exists(path):
            return False

        try:
            os.remove(path)
            self.logger.debug("Removed file: %s", path)
            return True
        except OSError as exc:
            self.logger.warning("Could not remove %s: %s", path, exc)
            return False
