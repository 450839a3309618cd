"""
Reveri configuration
"""
from pathlib import Path
import os

# Key under which the whole collection is stored
STORAGE_KEY = "reveri_memories"

DEFAULT_BACKEND = "sqlite"
DEFAULT_LOG_LEVEL = "WARNING"


def project_root() -> Path:
    """Project root - can be overridden with REVERI_ROOT."""
    return Path(os.environ.get('REVERI_ROOT', Path.home() / 'Reveri'))


def data_dir() -> Path:
    return project_root() / ".reveri"


def db_path() -> str:
    return str(data_dir() / "reveri.db")


def json_path() -> str:
    return str(data_dir() / "memories.json")


def backend() -> str:
    return os.environ.get('REVERI_BACKEND', DEFAULT_BACKEND).lower()


def log_level() -> str:
    return os.environ.get('REVERI_LOG_LEVEL', DEFAULT_LOG_LEVEL).upper()
