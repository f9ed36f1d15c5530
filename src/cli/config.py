"""Configuration loading."""

from pathlib import Path
from typing import Optional

import yaml

from .config_models import TinyWinsConfig

DEFAULT_CONFIG = TinyWinsConfig().to_dict()


def find_config() -> Optional[Path]:
    """Find config file in standard locations."""
    locations = [
        Path.cwd() / "config.yaml",
        Path.home() / ".tinywins" / "config.yaml",
        Path.home() / "tinywins" / "config.yaml",
    ]
    for loc in locations:
        if loc.exists():
            return loc
    return None


def load_config(config_path: Optional[Path] = None) -> dict:
    """Load configuration as a plain dict. Use load_config_model() for typed access."""
    return load_config_model(config_path).to_dict()


def load_config_model(config_path: Optional[Path] = None) -> TinyWinsConfig:
    """Load configuration as Pydantic model with validation."""
    base_config = {}

    path = config_path or find_config()
    if path and path.exists():
        try:
            with open(path) as f:
                base_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in config file: {e}")

    try:
        return TinyWinsConfig.from_dict(base_config)
    except Exception as e:
        raise ValueError(f"Config validation failed: {e}")


def get_paths(config: dict) -> dict:
    """Get expanded paths from config."""
    paths = config.get("paths", DEFAULT_CONFIG["paths"])
    return {
        "data_db": Path(paths["data_db"]).expanduser(),
        "export_dir": Path(paths["export_dir"]).expanduser(),
        "log_file": Path(paths.get("log_file", "~/tinywins/tinywins.log")).expanduser(),
    }
