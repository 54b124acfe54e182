from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from config.loader import load_config
from config.models import NaryaConfig, Repo
from config.settings import EXPECTED_PROJECT, MARKER_FILE_NAME
from utils.errors import (
    ConfigError,
    InvalidMarkerFileError,
    MarkerNotFoundError,
    UnexpectedProjectError,
)
from utils.logger import logger


def find_marker_file(start_dir: Optional[Path] = None, search_parents: bool = True) -> Optional[Path]:
    """
    Looks for the marker file in start_dir and, optionally, each of its parents.

    Args:
        start_dir: Directory to start from. Defaults to the current directory.
        search_parents: Whether to keep walking up towards the filesystem root.

    Returns:
        The path of the marker file, or None if it was not found.
    """
    current = Path(start_dir if start_dir is not None else Path.cwd()).resolve()
    while True:
        marker_path = current / MARKER_FILE_NAME
        if marker_path.is_file():
            logger.debug(f"Found marker file at {marker_path}")
            return marker_path

        if not search_parents or current.parent == current:
            break
        current = current.parent

    logger.debug(f"No {MARKER_FILE_NAME} found")
    return None


def load_marker_config(marker_path: Path) -> NaryaConfig:
    """
    Reads and validates a marker file.

    Raises:
        InvalidMarkerFileError: If the file cannot be read, parsed or validated.
    """
    try:
        contents = Path(marker_path).read_text(encoding="utf-8")
    except OSError as e:
        raise InvalidMarkerFileError(f"Could not read file: {e}") from e

    try:
        return NaryaConfig(**load_config(contents))
    except ConfigError as e:
        raise InvalidMarkerFileError(f"Could not parse YAML: {e}") from e
    except ValidationError as e:
        raise InvalidMarkerFileError(f"Could not parse YAML: {e}") from e


def require_valid_repo(start_dir: Optional[Path] = None) -> Repo:
    """
    Ensures we are inside a firefox-ios checkout and returns its root and config.

    Raises:
        MarkerNotFoundError: If no marker file exists here or above.
        InvalidMarkerFileError: If the marker file is malformed.
        UnexpectedProjectError: If the marker names another project.
    """
    marker_path = find_marker_file(start_dir)
    if marker_path is None:
        raise MarkerNotFoundError()

    config = load_marker_config(marker_path)
    if config.project != EXPECTED_PROJECT:
        raise UnexpectedProjectError(expected=EXPECTED_PROJECT, found=config.project)

    logger.debug(f"Using repository root {marker_path.parent}")
    return Repo(root=marker_path.parent, config=config)
