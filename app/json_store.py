"""
JSON File Store
Reads and writes whole JSON documents on disk
"""
import json
import os
import logging

from exceptions import StorageException
from utils import safe_write_json

logger = logging.getLogger("main")


def ensure_json_file(path: str, default) -> bool:
    """
    Create the parent directory and seed the file with ``default`` if missing

    Args:
        path: Location of the JSON document
        default: Document written when the file does not exist yet

    Returns:
        True if the file was created, False if it already existed
    """
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    if os.path.exists(path):
        return False

    safe_write_json(path, default)
    logger.info(f"Seeded {os.path.basename(path)} with default content")
    return True


def read_json(path: str):
    """
    Load and parse a JSON document

    Raises:
        StorageException: if the file cannot be read or does not hold valid JSON
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except OSError as e:
        raise StorageException(f"Cannot read {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise StorageException(f"Invalid JSON in {path}: {e}") from e


def write_json(path: str, document) -> None:
    """
    Replace the document on disk. The write goes to a temporary file first, so
    readers never see a partially written document.
    """
    try:
        safe_write_json(path, document)
    except (OSError, TypeError, ValueError) as e:
        raise StorageException(f"Cannot write {path}: {e}") from e


def get_mtime(path: str) -> float:
    try:
        return os.path.getmtime(path)
    except OSError as e:
        raise StorageException(f"Cannot stat {path}: {e}") from e
