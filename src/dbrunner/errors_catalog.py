"""Actionable error catalog for dbrunner."""

from typing import Dict

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "unknown_database": {
        "what": "Unknown database: {name}",
        "next": "Use one of: postgresql, mysql, mongodb, redis.",
    },
    "path_not_found": {
        "what": "Path does not exist: {path}",
        "next": "Create the directory first or choose an existing one.",
    },
    "invalid_tag": {
        "what": "Invalid tag format. Tag should be version/variant only (e.g., '16-alpine').",
        "next": "Pass only the tag part, without the image name or registry.",
    },
    "engine_not_found": {
        "what": "Required command not found: {engine}.",
        "next": "Install Docker with the Compose v2 plugin and make sure it is on PATH.",
    },
    "config_not_saved": {
        "what": "Failed to save config: {reason}",
        "next": "Check that {path} is writable.",
    },
}


def actionable_error(code: str, **kwargs: str) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"
