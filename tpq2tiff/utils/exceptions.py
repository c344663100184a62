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
Custom Exceptions Module.

A centralized module for the exceptions raised by the TPQ to GeoTIFF conversion
pipeline. Every stage raises a subclass of `TpqConversionError`, so callers can
catch one type and still tell the failure kinds apart. Each exception records
the header field or the tile grid position that caused it.
"""
from typing import Optional, Tuple


class TpqConversionError(RuntimeError):
    """Base exception for every failure of a TPQ conversion."""

    def __init__(self, message: str, field: Optional[str] = None,
                 position: Optional[Tuple[int, int]] = None):
        self.field = field
        self.position = position
        context = []
        if field is not None:
            context.append(f"field '{field}'")
        if position is not None:
            context.append(f"tile (row={position[0]}, col={position[1]})")
        if context:
            message = f"{message} [{', '.join(context)}]"
        super().__init__(message)

class MalformedHeaderError(TpqConversionError):
    """Unrecognized version, unsupported field value, or a buffer too short to hold the header."""
    pass

class InvalidTileDirectoryError(TpqConversionError):
    """Tile directory entries out of bounds, overlapping, missing, or duplicated."""
    pass

class MissingGeoreferenceError(TpqConversionError):
    """Corner coordinates absent, non-finite, or out of range for the declared CRS."""
    pass

class TileDecodeError(TpqConversionError):
    """A tile payload could not be decoded to the declared tile dimensions."""
    pass

class InvalidPixelIndexError(TpqConversionError):
    """An indexed tile sample has no entry in the palette."""

    def __init__(self, message: str, position: Optional[Tuple[int, int]] = None,
                 index: Optional[int] = None):
        self.index = index
        super().__init__(message, position=position)

class IncompleteRasterError(TpqConversionError):
    """Raster regions left unwritten after assembly."""
    pass

class DegenerateExtentError(TpqConversionError):
    """Pixel scale is zero, inverted, or non-finite along an axis."""
    pass

class UnsupportedProjectionError(TpqConversionError):
    """The requested output projection cannot be derived from the source CRS."""
    pass

class GeoTiffWriteError(TpqConversionError):
    """The output sink rejected a write."""
    pass
