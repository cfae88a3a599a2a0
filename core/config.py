"""
Configuration loading.

Settings live in ``config.yaml`` at the project root. They are read once
and cached at module level; every component also has built-in defaults,
so a missing section only matters to the helpers that ask for it.

Usage:
    from core.config import get_config, get_section
    feed_interval_ms = get_section("feed")["interval_ms"]
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

CONFIG_FILENAME = "config.yaml"

# Cached result of load_config(); reset with get_config(reload=True)
_config_instance: Optional[Dict[str, Any]] = None


def get_project_root() -> Path:
    """
    Locate the directory holding config.yaml.

    Starts next to this module and walks towards the filesystem root.

    Raises:
        FileNotFoundError: No ancestor directory contains config.yaml.
    """
    for directory in Path(__file__).resolve().parents:
        if (directory / CONFIG_FILENAME).exists():
            return directory

    raise FileNotFoundError(
        f"No {CONFIG_FILENAME} found above {Path(__file__).resolve().parent}; "
        "run from inside the project checkout."
    )


def load_config(config_path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """
    Parse a YAML configuration file.

    Args:
        config_path: File to read. Defaults to the project's config.yaml.

    Returns:
        The parsed mapping; an empty file gives an empty dict.

    Raises:
        FileNotFoundError: The file does not exist.
        yaml.YAMLError: The file is not valid YAML.
    """
    path = Path(config_path) if config_path is not None else get_project_root() / CONFIG_FILENAME
    if not path.is_file():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def get_config(reload: bool = False) -> Dict[str, Any]:
    """Return the cached project configuration, reading it on first use."""
    global _config_instance

    if reload or _config_instance is None:
        _config_instance = load_config()
    return _config_instance


def get_section(section_name: str) -> Dict[str, Any]:
    """
    Return one top-level section of the configuration.

    Raises:
        KeyError: The section is missing; the message lists those present.
    """
    config = get_config()
    try:
        return config[section_name]
    except KeyError:
        raise KeyError(
            f"Configuration section '{section_name}' not found "
            f"(have: {', '.join(config) or 'none'})"
        ) from None


# ==================== Section helpers ====================

def get_camera_config() -> Dict[str, Any]:
    return get_section("camera")


def get_feed_config() -> Dict[str, Any]:
    return get_section("feed")


def get_enrollment_config() -> Dict[str, Any]:
    return get_section("enrollment")


def get_detector_config() -> Dict[str, Any]:
    return get_section("detector")


def get_matching_config() -> Dict[str, Any]:
    """Distance threshold used by the development identity server."""
    return get_section("matching")


def get_storage_config() -> Dict[str, Any]:
    return get_section("storage")


def get_api_config() -> Dict[str, Any]:
    """Identity service location and client timeout."""
    return get_section("api")


def get_server_config() -> Dict[str, Any]:
    """
    Bind address for the development identity server.

    Returns:
        Dict with ``host`` (str) and ``port`` (int).
    """
    api_config = get_api_config()
    return {
        "host": api_config.get("host", "0.0.0.0"),
        "port": int(api_config.get("port", 3000)),
    }


def configure_logging(level: Optional[str] = None) -> None:
    """
    Set up root logging for an entry point.

    Uses the ``logging`` section for level and format; ``level`` overrides
    the configured level. Library modules never call this, they only hold a
    ``logging.getLogger(__name__)``.
    """
    try:
        log_config = get_section("logging")
    except (FileNotFoundError, KeyError):
        log_config = {}

    level_name = (level or log_config.get("level", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=log_config.get(
            "format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        ),
    )
