"""Persisted user overrides for volume paths and image tags."""

import json
import os
import tempfile
import threading
from typing import Any, Dict, Optional

from platformdirs import user_config_dir

from dbrunner.errors import PersistError, ValidationError
from dbrunner.errors_catalog import actionable_error
from dbrunner.models import Config

APP_NAME = "dbrunner"
CONFIG_FILE_NAME = "config.json"
MAX_TAG_LENGTH = 100


def default_config_dir() -> str:
    return os.getenv("DBRUNNER_CONFIG_DIR") or user_config_dir(APP_NAME, appauthor=False)


class ConfigRepository:
    """Reads and writes the JSON configuration document."""

    def __init__(self, config_file: Optional[str] = None, logger=None):
        self.config_file = config_file or os.path.join(default_config_dir(), CONFIG_FILE_NAME)
        self.logger = logger

    def load(self) -> Config:
        if not os.path.exists(self.config_file):
            return Config()

        try:
            with open(self.config_file, "r", encoding="utf-8") as file_obj:
                data = json.load(file_obj)
        except (OSError, ValueError) as exc:
            if self.logger:
                self.logger.debug("Ignoring unreadable config file %s: %s", self.config_file, exc)
            return Config()

        if not isinstance(data, dict):
            return Config()

        return Config(
            volume_paths=self._string_mapping(data.get("volume_paths")),
            image_tags=self._string_mapping(data.get("image_tags")),
        )

    def save(self, config: Config):
        directory = os.path.dirname(self.config_file) or "."
        os.makedirs(directory, exist_ok=True)

        fd, temp_path = tempfile.mkstemp(prefix="config-", suffix=".json", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as file_obj:
                json.dump(config.to_dict(), file_obj, indent=2, sort_keys=True)
                file_obj.write("\n")
            os.replace(temp_path, self.config_file)
        finally:
            if os.path.exists(temp_path):
                try:
                    os.remove(temp_path)
                except OSError:
                    pass

    @staticmethod
    def _string_mapping(value: Any) -> Dict[str, str]:
        if not isinstance(value, dict):
            return {}
        return {str(key).lower(): str(item) for key, item in value.items()}


class ConfigStore:
    """Lazily loaded, lock-guarded cache over a ConfigRepository.

    Mutations run read-modify-persist-update inside one critical section, and
    the cache is only replaced after the file write succeeded.
    """

    def __init__(self, repository: ConfigRepository, logger):
        self.repository = repository
        self.logger = logger
        self._lock = threading.Lock()
        self._config: Optional[Config] = None

    def get(self) -> Config:
        with self._lock:
            return self._loaded().copy()

    def get_volume_path(self, kind: str) -> Optional[str]:
        return self.get().volume_paths.get(kind.lower())

    def get_image_tag(self, kind: str) -> Optional[str]:
        return self.get().image_tags.get(kind.lower())

    def set_volume_path(self, kind: str, path: str) -> str:
        if not os.path.exists(path):
            raise ValidationError(actionable_error("path_not_found", path=path))

        absolute_path = os.path.abspath(path)
        with self._lock:
            config = self._loaded().copy()
            config.volume_paths[kind.lower()] = absolute_path
            self._persist(config)

        self.logger.info("Volume path for %s set to %s", kind.lower(), absolute_path)
        return absolute_path

    def set_image_tag(self, kind: str, tag: str) -> Optional[str]:
        """Stores a tag override, or removes it when the trimmed tag is empty."""
        trimmed_tag = tag.strip()
        key = kind.lower()

        if trimmed_tag and (
            ":" in trimmed_tag or "/" in trimmed_tag or len(trimmed_tag) > MAX_TAG_LENGTH
        ):
            raise ValidationError(actionable_error("invalid_tag"))

        with self._lock:
            config = self._loaded().copy()
            if trimmed_tag:
                config.image_tags[key] = trimmed_tag
            else:
                config.image_tags.pop(key, None)
            self._persist(config)

        if trimmed_tag:
            self.logger.info("Image tag for %s set to %s", key, trimmed_tag)
            return trimmed_tag
        self.logger.info("Image tag for %s reset to default", key)
        return None

    def _loaded(self) -> Config:
        if self._config is None:
            self._config = self.repository.load()
        return self._config

    def _persist(self, config: Config):
        try:
            self.repository.save(config)
        except OSError as exc:
            raise PersistError(
                actionable_error(
                    "config_not_saved",
                    reason=str(exc),
                    path=self.repository.config_file,
                )
            ) from exc
        self._config = config
