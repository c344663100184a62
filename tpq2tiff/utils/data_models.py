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
Data Models for the TPQ to GeoTIFF converter.

This module defines strongly-typed data classes for the values that flow
through the conversion pipeline. Everything produced by the parser is frozen;
downstream stages only read it.

Container classes:
    ContainerHeader: The fixed 1024-byte TPQ header
    TileDirectoryEntry: Location and grid position of one tile payload
    PaletteTable: RGB colors for palette-indexed containers
    TpqContainer: A parsed container (header, directory, palette, source view)

Pipeline classes:
    PixelBlock: The decoded samples of one tile
    Raster: The assembled full-resolution image
    Geotransform: Affine pixel-to-map transform and CRS identifier
    ConversionResult: GeoTIFF bytes plus what was derived on the way
"""

import math
import numpy as np
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

NAD27_GEOGRAPHIC_EPSG = 4267


class ColorMode(Enum):
    """How tile samples map to colors, decided once from the header's color depth."""
    INDEXED = 8
    DIRECT = 24

    @property
    def channels(self) -> int:
        """Channels of a decoded tile block (before palette resolution)."""
        return 1 if self is ColorMode.INDEXED else 3


class TileCodec(Enum):
    """Image codec of the tile payloads, named by the header's extension field."""
    JPEG = 'JPEG'
    PNG = 'PNG'

    @property
    def is_lossless(self) -> bool:
        return self is TileCodec.PNG


# ============================================================================
# Container classes
# ============================================================================

@dataclass(frozen=True)
class ContainerHeader:
    """
    The fixed-layout TPQ header.

    Attributes:
        version: Format version; doubles as the file signature.
        west_longitude: Western edge of the map in the source CRS.
        north_latitude: Northern edge of the map in the source CRS.
        east_longitude: Eastern edge of the map in the source CRS.
        south_latitude: Southern edge of the map in the source CRS.
        topo: Map series description.
        quad_name: Quadrangle name.
        state_name: State name.
        source: Source agency.
        year1: First edition year.
        year2: Revision year.
        contour: Contour interval description.
        extension: Tile codec name ('jpg', 'png').
        color_depth: 24 for direct RGB tiles, 8 for palette-indexed tiles.
        long_count: Number of tile columns.
        lat_count: Number of tile rows.
        maplet_width: Width of one tile in pixels.
        maplet_height: Height of one tile in pixels.
        crs_code: EPSG code of the corner coordinates (0 means NAD27 geographic).
    """
    version: int
    west_longitude: float
    north_latitude: float
    east_longitude: float
    south_latitude: float
    topo: str
    quad_name: str
    state_name: str
    source: str
    year1: str
    year2: str
    contour: str
    extension: str
    color_depth: int
    long_count: int
    lat_count: int
    maplet_width: int
    maplet_height: int
    crs_code: int = 0

    @property
    def color_mode(self) -> ColorMode:
        return ColorMode(self.color_depth)

    @property
    def codec(self) -> TileCodec:
        ext = self.extension.strip().lower() or 'jpg'
        return TileCodec.PNG if ext == 'png' else TileCodec.JPEG

    @property
    def tile_count(self) -> int:
        return self.long_count * self.lat_count

    @property
    def raster_width(self) -> int:
        return self.long_count * self.maplet_width

    @property
    def raster_height(self) -> int:
        return self.lat_count * self.maplet_height

    @property
    def epsg_code(self) -> int:
        return self.crs_code or NAD27_GEOGRAPHIC_EPSG

    @property
    def corners(self) -> Tuple[float, float, float, float]:
        """(west, north, east, south) corner coordinates."""
        return (self.west_longitude, self.north_latitude, self.east_longitude, self.south_latitude)


@dataclass(frozen=True)
class TileDirectoryEntry:
    """Byte range of one tile payload and the grid cell it fills."""
    offset: int
    length: int
    row: int
    col: int

    @property
    def position(self) -> Tuple[int, int]:
        return (self.row, self.col)

    @property
    def end(self) -> int:
        return self.offset + self.length


@dataclass(frozen=True, eq=False)
class PaletteTable:
    """
    Ordered RGB colors indexed by tile sample value.

    Attributes:
        colors: uint8 array of shape (count, 3).
    """
    colors: np.ndarray

    def __len__(self) -> int:
        return int(self.colors.shape[0])

    def resolve(self, indices: np.ndarray) -> np.ndarray:
        """Map an index array of shape (h, w) to RGB samples of shape (h, w, 3)."""
        return self.colors[indices]


@dataclass(frozen=True, eq=False)
class TpqContainer:
    """
    A parsed and validated TPQ container.

    The source buffer is kept as a read-only memoryview so every tile decode
    addresses it by its own (offset, length) pair.
    """
    header: ContainerHeader
    entries: List[TileDirectoryEntry]
    palette: Optional[PaletteTable]
    source: memoryview

    def payload(self, entry: TileDirectoryEntry) -> memoryview:
        return self.source[entry.offset:entry.end]


# ============================================================================
# Pipeline classes
# ============================================================================

@dataclass(eq=False)
class PixelBlock:
    """
    Decoded samples of one tile, row-major, top to bottom.

    Attributes:
        position: (row, col) of the tile in the grid.
        samples: uint8 array, (h, w) for indexed tiles or (h, w, 3) for direct tiles.
        color_mode: The container's color mode.
    """
    position: Tuple[int, int]
    samples: np.ndarray
    color_mode: ColorMode

    @property
    def width(self) -> int:
        return int(self.samples.shape[1])

    @property
    def height(self) -> int:
        return int(self.samples.shape[0])

    @property
    def channels(self) -> int:
        return 1 if self.samples.ndim == 2 else int(self.samples.shape[2])


@dataclass(eq=False)
class Raster:
    """The assembled image: uint8 pixels of shape (height, width, channels)."""
    width: int
    height: int
    channels: int
    pixels: np.ndarray


@dataclass(frozen=True)
class Geotransform:
    """
    Affine mapping from (pixel column, pixel row) to map (X, Y).

    Attributes:
        coefficients: GDAL ordered (origin_x, scale_x, rot_x, origin_y, rot_y, scale_y).
        epsg_code: EPSG identifier of the map coordinates.
        is_geographic: True for a geographic CRS, False for a projected one.
        crs_name: Human readable CRS name.
        pixel_is_point: True when the origin refers to the center of pixel (0, 0).
        linear_units_code: EPSG unit code of a projected CRS (9001 = metre).
    """
    coefficients: Tuple[float, float, float, float, float, float]
    epsg_code: int
    is_geographic: bool
    crs_name: str = ''
    pixel_is_point: bool = False
    linear_units_code: int = 9001

    @property
    def origin(self) -> Tuple[float, float]:
        return (self.coefficients[0], self.coefficients[3])

    @property
    def pixel_scale(self) -> Tuple[float, float]:
        """Signed (scale_x, scale_y); scale_y is negative for north-up rasters."""
        return (self.coefficients[1], self.coefficients[5])

    def apply(self, col: float, row: float) -> Tuple[float, float]:
        """Transform a pixel coordinate to map coordinates."""
        gt = self.coefficients
        return (gt[0] + col * gt[1] + row * gt[2],
                gt[3] + col * gt[4] + row * gt[5])

    def is_finite(self) -> bool:
        return all(math.isfinite(c) for c in self.coefficients)


@dataclass(eq=False)
class ConversionResult:
    """GeoTIFF output of one conversion and the metadata derived for it."""
    geotiff: bytes
    header: ContainerHeader
    geotransform: Geotransform
    width: int
    height: int
    timings: dict = field(default_factory=dict)
