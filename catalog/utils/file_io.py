import json
import os
from typing import Any

from catalog.logging import logger


def write_json_file(file_path: str, content: dict[str, Any]) -> None:
    """
    Writes `content` as pretty-printed JSON to `file_path`.

    The parent directory is created when missing and the file is replaced
    atomically, so readers never see a half-written document.

    Parameters:
    - `file_path` (str): Destination path.
    - `content` (dict[str, Any]): JSON-serializable document.

    Raises:
    - OSError: If the directory or file cannot be written.
    """
    directory = os.path.dirname(file_path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    tmp_path = f"{file_path}.tmp"
    try:
        with open(tmp_path, mode="w", encoding="utf-8") as f:
            json.dump(content, f, indent=2, ensure_ascii=False, default=str)
        os.replace(tmp_path, file_path)
    except OSError as ex:
        logger.error(f"Failed to write {file_path}: {ex}")
        raise


def remove_file(file_path: str) -> bool:
    """
    Removes `file_path` if it exists.

    Returns:
    - bool: True when a file was removed.
    """
    try:
        os.remove(file_path)
        return True
    except FileNotFoundError:
        return False
