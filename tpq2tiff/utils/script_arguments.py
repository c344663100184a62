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
Dataclass-based Argument Models for TPQ2TIFF.

This module defines strongly-typed dataclasses for the conversion options and
for the command-line arguments of each tool (`convert`, `info`). Unset
options are resolved from config.toml in `__post_init__` and validated there,
so the core pipeline receives clean inputs.

Classes:
    ConversionOptions: Settings of one conversion (workers, output layout, georeference).
    BaseArguments: A base dataclass for common script arguments.
    ConvertArguments: Arguments for the convert tool.
    InfoArguments: Arguments for the info tool.
"""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from tpq2tiff.utils.config_loader import config
from tpq2tiff.utils.geotiff_writer import COMPRESSIONS, LAYOUTS
from tpq2tiff.utils.geotransform import PIXEL_ANCHORS, TARGETS

logger = logging.getLogger(__name__)

@dataclass
class ConversionOptions:
    """Settings of one conversion; None means 'take the config.toml value'."""
    workers: Optional[int] = None
    compression: Optional[str] = None
    layout: Optional[str] = None
    tile_size: Optional[int] = None
    target: Optional[str] = None
    pixel_anchor: Optional[str] = None

    def __post_init__(self):
        self._resolve_defaults()
        self._validate()

    def _resolve_defaults(self):
        """Fill unset options from the configuration."""
        if self.workers is None:
            self.workers = int(config.get("conversion.workers", 4))
        if self.compression is None:
            self.compression = str(config.get("geotiff.compression", "deflate"))
        if self.layout is None:
            self.layout = str(config.get("geotiff.layout", "strip"))
        if self.tile_size is None:
            self.tile_size = int(config.get("geotiff.tile_size", 256))
        if self.target is None:
            self.target = str(config.get("georeference.target", "source"))
        if self.pixel_anchor is None:
            self.pixel_anchor = str(config.get("georeference.pixel_anchor", "corner"))
        self.compression = self.compression.lower()
        self.layout = self.layout.lower()
        self.target = self.target.lower()
        self.pixel_anchor = self.pixel_anchor.lower()

    def _validate(self):
        if self.workers < 1:
            raise ValueError(f"Worker count must be at least 1, got {self.workers}")
        if self.compression not in COMPRESSIONS:
            raise ValueError(f"Compression must be one of {sorted(COMPRESSIONS)}, got '{self.compression}'")
        if self.layout not in LAYOUTS:
            raise ValueError(f"Layout must be one of {list(LAYOUTS)}, got '{self.layout}'")
        if self.tile_size < 16 or self.tile_size % 16:
            raise ValueError(f"Tile size must be a positive multiple of 16, got {self.tile_size}")
        if self.target not in TARGETS:
            raise ValueError(f"Target must be one of {list(TARGETS)}, got '{self.target}'")
        if self.pixel_anchor not in PIXEL_ANCHORS:
            raise ValueError(f"Pixel anchor must be one of {list(PIXEL_ANCHORS)}, got '{self.pixel_anchor}'")

@dataclass
class BaseArguments:
    """A base dataclass for common script arguments."""
    input_path: Optional[Path] = None
    verbose: bool = False
    log_file: Optional[Path] = None

    def __post_init__(self):
        """Coerce path-like arguments to Path objects ('-' stays as the stdin marker)."""
        if self.input_path and isinstance(self.input_path, str) and self.input_path != '-':
            self.input_path = Path(self.input_path)
        if self.log_file and isinstance(self.log_file, str):
            self.log_file = Path(self.log_file)

    def handle_error(self, message: str):
        """Logs an error and raises ValueError."""
        logger.error(message)
        raise ValueError(message)

    def _validate_input(self):
        if self.input_path is None:
            raise ValueError("An input TPQ file (or '-' for stdin) is required")
        if isinstance(self.input_path, Path) and not self.input_path.is_file():
            raise ValueError(f"Input file not found: {self.input_path}")

@dataclass
class ConvertArguments(BaseArguments):
    """Arguments for the convert tool."""
    output_path: Optional[Path] = None
    workers: Optional[int] = None
    compression: Optional[str] = None
    layout: Optional[str] = None
    tile_size: Optional[int] = None
    target: Optional[str] = None
    pixel_anchor: Optional[str] = None

    def __post_init__(self):
        """Validation and default resolution for conversion arguments."""
        super().__post_init__()
        if self.output_path and isinstance(self.output_path, str):
            self.output_path = Path(self.output_path)
        try:
            self._validate_input()
            self.options = self.to_options()
        except ValueError as e:
            self.handle_error(str(e))

    def to_options(self) -> ConversionOptions:
        return ConversionOptions(
            workers=self.workers,
            compression=self.compression,
            layout=self.layout,
            tile_size=self.tile_size,
            target=self.target,
            pixel_anchor=self.pixel_anchor,
        )

@dataclass
class InfoArguments(BaseArguments):
    """Arguments for the info tool."""

    def __post_init__(self):
        super().__post_init__()
        try:
            self._validate_input()
        except ValueError as e:
            self.handle_error(str(e))
