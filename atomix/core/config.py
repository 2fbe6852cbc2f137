"""
Configuration management for atomix.

Provides utilities for loading and validating YAML/JSON configuration files
that control how atomic data catalogs are located and loaded.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
import logging

import yaml

logger = logging.getLogger(__name__)

# Extra data directories, separated by os.pathsep
DATA_DIR_ENV = "ATOMIX_DATA_DIR"


def load_config(config_path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load configuration from YAML or JSON file.

    Parameters
    ----------
    config_path : str or Path
        Path to configuration file (.yaml, .yml, or .json)

    Returns
    -------
    dict
        Configuration dictionary

    Raises
    ------
    FileNotFoundError
        If config file does not exist
    ValueError
        If file format is not supported
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    suffix = config_path.suffix.lower()

    with open(config_path, "r") as f:
        if suffix in [".yaml", ".yml"]:
            config = yaml.safe_load(f)
        elif suffix == ".json":
            config = json.load(f)
        else:
            raise ValueError(
                f"Unsupported config file format: {suffix}. " "Use .yaml, .yml, or .json"
            )

    if config is None:
        config = {}

    logger.info(f"Loaded configuration from {config_path}")
    return config


def validate_loader_config(config: Dict[str, Any]) -> bool:
    """
    Validate the optional ``loader`` section of a configuration.

    Parameters
    ----------
    config : dict
        Configuration dictionary

    Returns
    -------
    bool
        True if valid

    Raises
    ------
    ValueError
        If configuration is invalid
    """
    if not isinstance(config, dict):
        raise ValueError("Configuration must be a mapping")

    loader = config.get("loader", {})
    if not isinstance(loader, dict):
        raise ValueError("'loader' section must be a mapping")

    unknown = set(loader) - {"data_dirs", "validate"}
    if unknown:
        raise ValueError(f"Unknown loader settings: {sorted(unknown)}")

    if "data_dirs" in loader:
        dirs = loader["data_dirs"]
        if not isinstance(dirs, list) or not all(isinstance(d, str) for d in dirs):
            raise ValueError("'data_dirs' must be a list of paths")

    if "validate" in loader and not isinstance(loader["validate"], bool):
        raise ValueError("'validate' must be true or false")

    return True


@dataclass(frozen=True)
class LoaderSettings:
    """
    Settings consumed by the catalog loader.

    Attributes
    ----------
    data_dirs : List[Path]
        Directories searched for master and sub-files after the master
        file's own directory
    validate : bool
        Run the consistency checks at the end of a load
    """

    data_dirs: List[Path] = field(default_factory=list)
    validate: bool = True

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None) -> "LoaderSettings":
        """Build settings from a configuration dict and the environment."""
        config = config or {}
        validate_loader_config(config)
        loader = config.get("loader", {})

        data_dirs = [Path(d).expanduser() for d in loader.get("data_dirs", [])]
        env_dirs = os.environ.get(DATA_DIR_ENV, "")
        data_dirs.extend(Path(d).expanduser() for d in env_dirs.split(os.pathsep) if d)

        return cls(data_dirs=data_dirs, validate=loader.get("validate", True))

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> "LoaderSettings":
        """Build settings from a YAML/JSON configuration file."""
        return cls.from_config(load_config(config_path))
