#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# ******************************************************************************
# Project: TPQ to GeoTIFF Converter (TPQ2TIFF)
# Author: TPQ2TIFF contributors
#
# Copyright (c) 2025, TPQ2TIFF contributors
# Licensed under the MIT License
# ******************************************************************************
"""
Configuration Management for the TPQ to GeoTIFF converter.

This module provides a singleton configuration manager (`Config`) that loads,
parses, and provides access to settings from the `config.toml` file shipped
with the package. Values are loaded only once and are available throughout
the application; command-line arguments override them per run.

Classes:
    Config: A singleton class for managing application-wide configuration.
"""
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config.toml"

class Config:
    """Singleton configuration manager"""
    _instance = None
    _config: Dict[str, Any] = {}
    _path: Path = DEFAULT_CONFIG_PATH

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._load_config()
        return cls._instance

    def _load_config(self):
        """Load configuration from config.toml, layered over the defaults."""
        self._config = self._default_config()
        if not self._path.exists():
            return
        try:
            with open(self._path, "rb") as f:
                loaded = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            logger.warning(f"Could not load {self._path}: {e}")
            return
        for section, values in loaded.items():
            if isinstance(values, dict):
                self._config.setdefault(section, {}).update(values)
            else:
                self._config[section] = values

    def _default_config(self) -> Dict[str, Any]:
        """Default configuration if config.toml doesn't exist"""
        return {
            "conversion": {
                "workers": 4
            },
            "geotiff": {
                "compression": "deflate",
                "layout": "strip",
                "tile_size": 256
            },
            "georeference": {
                "target": "source",
                "pixel_anchor": "corner"
            },
            "logging": {
                "level": "INFO",
                "file": ""
            }
        }

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value using dot notation

        Args:
            key: Configuration key in dot notation (e.g., "geotiff.compression")
            default: Default value if key is not found

        Returns:
            Configuration value or default

        Example:
            >>> config.get("geotiff.compression")
            'deflate'
            >>> config.get("conversion.workers")
            4
        """
        keys = key.split(".")
        value = self._config
        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value

    def get_section(self, section: str) -> Dict[str, Any]:
        """Get entire configuration section

        Args:
            section: Section name (e.g., "geotiff", "georeference")

        Returns:
            Dictionary containing the section configuration
        """
        return self._config.get(section, {})

    def set(self, key: str, value: Any):
        """Set configuration value using dot notation

        Note:
            This only modifies the in-memory configuration.
            Changes are not persisted to config.toml.
        """
        keys = key.split(".")
        config = self._config
        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]
        config[keys[-1]] = value

    def reload(self, path: Optional[Path] = None):
        """Reload configuration, optionally from a different TOML file."""
        if path is not None:
            self._path = Path(path)
        self._load_config()

# Singleton instance
config = Config()
