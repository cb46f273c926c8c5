"""Runtime settings loader for dbrunner."""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from dbrunner.errors import DBRunnerError


class SettingsLoader:
    """Loads YAML settings files for CLI and runtime defaults.

    Values are type-checked on load so callers can use them as-is:
    ``engine_timeout`` comes back as a float (or None) and ``tail_lines`` as
    an int.
    """

    DEFAULT_FILE_NAME = ".dbrunner.yml"

    PATH_KEYS = {"config_dir", "compose_dir", "legacy_template_dir", "log_file"}

    SUPPORTED_KEYS = PATH_KEYS | {
        "engine",
        "engine_timeout",
        "verbose",
        "tail_lines",
    }

    def load(self, settings_path: Optional[str]) -> Dict[str, Any]:
        if not settings_path:
            return {}

        path = Path(settings_path)
        if not path.exists():
            raise DBRunnerError(f"Settings file not found: {settings_path}")

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise DBRunnerError(f"Invalid settings file '{settings_path}': {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise DBRunnerError("Settings file must contain a YAML mapping at the root.")

        unknown = sorted(set(parsed.keys()) - self.SUPPORTED_KEYS)
        if unknown:
            unknown_list = ", ".join(unknown)
            raise DBRunnerError(f"Unknown settings keys: {unknown_list}")

        return self._check_types(parsed)

    def _check_types(self, settings: Dict[str, Any]) -> Dict[str, Any]:
        checked = dict(settings)

        for key in self.PATH_KEYS & set(settings):
            if settings[key] is not None and not isinstance(settings[key], str):
                raise DBRunnerError(f"Setting '{key}' must be a path string.")

        if "engine" in settings:
            engine = settings["engine"]
            if not isinstance(engine, str) or not engine.strip():
                raise DBRunnerError("Setting 'engine' must name the container engine binary.")
            checked["engine"] = engine.strip()

        if "verbose" in settings and not isinstance(settings["verbose"], bool):
            raise DBRunnerError("Setting 'verbose' must be true or false.")

        if settings.get("engine_timeout") is not None:
            timeout = settings["engine_timeout"]
            if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
                raise DBRunnerError(
                    "Setting 'engine_timeout' must be a positive number of seconds."
                )
            checked["engine_timeout"] = float(timeout)

        if "tail_lines" in settings:
            tail_lines = settings["tail_lines"]
            if isinstance(tail_lines, bool) or not isinstance(tail_lines, int) or tail_lines < 0:
                raise DBRunnerError("Setting 'tail_lines' must be a non-negative integer.")

        return checked
