"""Connection string generation for running databases."""

from typing import Dict

from dbrunner.models import DatabaseKind
from dbrunner.services.catalog import CATALOG, normalize_kind

HOST = "localhost"


def generate_connection_strings(name: str, port: int) -> Dict[str, str]:
    """Builds ready-to-use connection details for ``name`` bound on ``port``.

    The port is trusted as given; no container is inspected.
    """
    kind = normalize_kind(name)
    credentials = CATALOG[kind].credentials
    user, password, database = credentials.user, credentials.password, credentials.database

    if kind is DatabaseKind.POSTGRESQL:
        standard_uri = f"postgresql://{user}:{password}@{HOST}:{port}/{database}"
        jdbc = f"jdbc:postgresql://{HOST}:{port}/{database}"
    elif kind is DatabaseKind.MYSQL:
        standard_uri = f"mysql://{user}:{password}@{HOST}:{port}/{database}"
        jdbc = f"jdbc:mysql://{HOST}:{port}/{database}"
    elif kind is DatabaseKind.MONGODB:
        standard_uri = f"mongodb://{user}:{password}@{HOST}:{port}/{database}"
        jdbc = "N/A (MongoDB uses native driver)"
    else:
        standard_uri = f"redis://{HOST}:{port}"
        jdbc = "N/A (Redis uses native driver)"

    return {
        "standard_uri": standard_uri,
        "jdbc": jdbc,
        "host": HOST,
        "port": str(port),
        "user": user,
        "password": password,
        "database": database,
    }
