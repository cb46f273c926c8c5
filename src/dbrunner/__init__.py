"""
dbrunner - local development database containers on Docker
"""

__version__ = "0.1.0"

from .core import DBRunner
from .errors import DBRunnerError

__all__ = ["DBRunner", "DBRunnerError"]
