"""Compose document rendering for dbrunner containers."""

import json
from typing import Optional

from dbrunner.models import Config
from dbrunner.services.catalog import CATALOG, find_kind, resolve_image


class ComposeService:
    """Renders a single-service compose document for a cataloged database."""

    HEALTHCHECK_INTERVAL = "10s"
    HEALTHCHECK_TIMEOUT = "5s"
    HEALTHCHECK_RETRIES = 5

    def render(self, kind: str, custom_path: Optional[str], config: Config) -> Optional[str]:
        database_kind = find_kind(kind)
        if database_kind is None:
            return None

        descriptor = CATALOG[database_kind]
        image = resolve_image(database_kind, config)

        if custom_path:
            volume_line = f"{custom_path}:{descriptor.data_path}"
        else:
            volume_line = f"{descriptor.volume_name}:{descriptor.data_path}"

        env_section = ""
        if descriptor.environment:
            env_lines = "\n".join(f"      {key}: {value}" for key, value in descriptor.environment)
            env_section = f"    environment:\n{env_lines}\n"

        content = f"""version: '3.8'

services:
  {database_kind.value}:
    image: {json.dumps(image)}
    container_name: {descriptor.container_name}
{env_section}    ports:
      - "{descriptor.port}:{descriptor.port}"
    volumes:
      - {json.dumps(volume_line)}
    restart: unless-stopped
    healthcheck:
      test: {json.dumps(list(descriptor.health_check))}
      interval: {self.HEALTHCHECK_INTERVAL}
      timeout: {self.HEALTHCHECK_TIMEOUT}
      retries: {self.HEALTHCHECK_RETRIES}
"""

        # Bind-mounted data must not also declare a managed volume.
        if not custom_path:
            content += f"""
volumes:
  {descriptor.volume_name}:
    driver: local
"""
        return content
