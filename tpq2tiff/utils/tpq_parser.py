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
TPQ Container Parser.

Decodes and validates the parts of a TPQ container that precede the tile
payloads:

- the fixed 1024-byte header (version, corner coordinates, map labels,
  color depth, tile grid geometry, CRS code),
- the tile directory, an array of `lat_count * long_count + 1` little-endian
  u32 offsets starting at byte 1024, where tile k spans
  `[offset[k], offset[k + 1])` in row-major grid order,
- the palette (indexed containers only): a u32 entry count followed by that
  many RGB triples, right after the directory.

Parsing never mutates or copies the input buffer; the parsed container holds
a read-only view of it so that each tile can be addressed by its own
(offset, length) pair.
"""

import logging
import math
import struct
import numpy as np
from typing import List, Optional, Tuple, Union
from tpq2tiff.utils.data_models import (
    ColorMode,
    ContainerHeader,
    PaletteTable,
    TileCodec,
    TileDirectoryEntry,
    TpqContainer,
)
from tpq2tiff.utils.exceptions import (
    InvalidTileDirectoryError,
    MalformedHeaderError,
    MissingGeoreferenceError,
)
from tpq2tiff.utils.srs_logic import get_srs_from_epsg

logger = logging.getLogger(__name__)

HEADER_SIZE = 1024
DIRECTORY_OFFSET = HEADER_SIZE
SUPPORTED_VERSIONS = frozenset({1})
SUPPORTED_EXTENSIONS = {'': TileCodec.JPEG, 'jpg': TileCodec.JPEG, 'jpeg': TileCodec.JPEG, 'png': TileCodec.PNG}
MAX_TILE_EDGE = 65535
MAX_PALETTE_ENTRIES = 256
# 1 Gpx is 3 GiB of RGB samples
MAX_RASTER_PIXELS = 1 << 30

# version, W/N/E/S corners, eight fixed-width strings, then seven u32:
# color_depth, reserved, long_count, lat_count, maplet_width, maplet_height, crs_code
HEADER_STRUCT = struct.Struct('<I4d220s128s32s32s4s4s24s4s7I')

BufferLike = Union[bytes, bytearray, memoryview]

def _read_string(raw: bytes) -> str:
    """Decode a fixed-width, NUL-terminated string field."""
    return raw.split(b'\x00', 1)[0].decode('utf-8', 'replace')

def parse_header(data: BufferLike) -> ContainerHeader:
    """
    Decode and validate the fixed TPQ header.

    Args:
        data: The complete container buffer.

    Returns:
        ContainerHeader: The decoded header.

    Raises:
        MalformedHeaderError: If the buffer is too short, the version is not
            supported, or a grid/color/codec field holds an unsupported value.
    """
    if len(data) < HEADER_SIZE:
        raise MalformedHeaderError(
            f"Buffer holds {len(data)} bytes but the TPQ header needs {HEADER_SIZE}", field='header'
        )

    (version, west, north, east, south,
     topo, quad_name, state_name, source, year1, year2, contour, extension,
     color_depth, _reserved, long_count, lat_count,
     maplet_width, maplet_height, crs_code) = HEADER_STRUCT.unpack_from(data, 0)

    if version not in SUPPORTED_VERSIONS:
        raise MalformedHeaderError(
            f"Unsupported TPQ version {version} (supported: {sorted(SUPPORTED_VERSIONS)})", field='version'
        )

    header = ContainerHeader(
        version=version,
        west_longitude=west,
        north_latitude=north,
        east_longitude=east,
        south_latitude=south,
        topo=_read_string(topo),
        quad_name=_read_string(quad_name),
        state_name=_read_string(state_name),
        source=_read_string(source),
        year1=_read_string(year1),
        year2=_read_string(year2),
        contour=_read_string(contour),
        extension=_read_string(extension),
        color_depth=color_depth,
        long_count=long_count,
        lat_count=lat_count,
        maplet_width=maplet_width,
        maplet_height=maplet_height,
        crs_code=crs_code,
    )
    _validate_header_fields(header)
    return header

def _validate_header_fields(header: ContainerHeader) -> None:
    if header.color_depth not in {mode.value for mode in ColorMode}:
        raise MalformedHeaderError(
            f"Unsupported color depth {header.color_depth} (expected 8 or 24)", field='color_depth'
        )

    for name in ('long_count', 'lat_count'):
        if getattr(header, name) <= 0:
            raise MalformedHeaderError("Tile grid dimension must be positive", field=name)

    for name in ('maplet_width', 'maplet_height'):
        edge = getattr(header, name)
        if edge <= 0 or edge > MAX_TILE_EDGE:
            raise MalformedHeaderError(
                f"Tile dimension {edge} outside 1..{MAX_TILE_EDGE}", field=name
            )

    pixels = header.raster_width * header.raster_height
    if pixels > MAX_RASTER_PIXELS:
        raise MalformedHeaderError(
            f"Declared raster of {header.raster_width}x{header.raster_height} pixels exceeds "
            f"the {MAX_RASTER_PIXELS}-pixel limit", field='lat_count'
        )

    ext = header.extension.strip().lower()
    if ext not in SUPPORTED_EXTENSIONS:
        raise MalformedHeaderError(f"Unsupported tile codec '{header.extension}'", field='extension')
    if header.color_mode is ColorMode.INDEXED and not SUPPORTED_EXTENSIONS[ext].is_lossless:
        raise MalformedHeaderError(
            f"Palette-indexed tiles require a lossless codec, got '{header.extension or 'jpg'}'",
            field='extension'
        )

def directory_end(header: ContainerHeader) -> int:
    """Byte offset just past the tile directory (including its end sentinel)."""
    return DIRECTORY_OFFSET + 4 * (header.tile_count + 1)

def parse_directory(data: BufferLike, header: ContainerHeader) -> List[TileDirectoryEntry]:
    """
    Decode the tile offset table into one entry per grid cell.

    The entries are returned unvalidated; see `validate_directory`.

    Raises:
        InvalidTileDirectoryError: If the buffer ends before the declared
            number of offsets.
    """
    count = header.tile_count + 1
    end = directory_end(header)
    if len(data) < end:
        raise InvalidTileDirectoryError(
            f"Directory for a {header.lat_count}x{header.long_count} grid needs {count} offsets "
            f"(bytes {DIRECTORY_OFFSET}..{end}) but the buffer holds {len(data)} bytes",
            field='directory'
        )

    offsets = struct.unpack_from(f'<{count}I', data, DIRECTORY_OFFSET)
    entries = []
    for k in range(header.tile_count):
        row, col = divmod(k, header.long_count)
        entries.append(TileDirectoryEntry(
            offset=offsets[k],
            length=offsets[k + 1] - offsets[k],
            row=row,
            col=col,
        ))
    return entries

def parse_palette(data: BufferLike, header: ContainerHeader, offset: int) -> Tuple[Optional[PaletteTable], int]:
    """
    Decode the palette that follows the directory of an indexed container.

    Returns:
        Tuple[palette, end]: The palette (None for direct-color containers)
        and the byte offset just past it.

    Raises:
        MalformedHeaderError: If the palette is truncated or its entry count
            is outside 1..256.
    """
    if header.color_mode is ColorMode.DIRECT:
        return None, offset

    if len(data) < offset + 4:
        raise MalformedHeaderError("Buffer ends before the palette entry count", field='palette')
    (count,) = struct.unpack_from('<I', data, offset)
    if not 1 <= count <= MAX_PALETTE_ENTRIES:
        raise MalformedHeaderError(
            f"Palette declares {count} entries (expected 1..{MAX_PALETTE_ENTRIES})", field='palette'
        )
    start = offset + 4
    end = start + count * 3
    if len(data) < end:
        raise MalformedHeaderError(
            f"Palette of {count} entries needs bytes {start}..{end} but the buffer holds {len(data)}",
            field='palette'
        )
    colors = np.frombuffer(data, dtype=np.uint8, count=count * 3, offset=start).reshape(count, 3).copy()
    return PaletteTable(colors=colors), end

def validate_directory(entries: List[TileDirectoryEntry], header: ContainerHeader,
                       buffer_length: int, data_start: int) -> None:
    """
    Check that the directory covers the tile grid exactly once, in bounds.

    Args:
        entries: Directory entries in any order.
        header: The container header declaring the grid.
        buffer_length: Length of the complete container buffer.
        data_start: First byte available for tile payloads (end of the
            directory and palette).

    Raises:
        InvalidTileDirectoryError: On a count mismatch, an entry outside the
            grid, an empty payload, a payload overlapping the container
            metadata or running past the buffer, or a grid cell covered zero
            or several times.
    """
    if len(entries) != header.tile_count:
        raise InvalidTileDirectoryError(
            f"Directory lists {len(entries)} tiles but the grid declares {header.tile_count}",
            field='directory'
        )

    coverage = np.zeros((header.lat_count, header.long_count), dtype=np.int32)
    for entry in entries:
        if not (0 <= entry.row < header.lat_count and 0 <= entry.col < header.long_count):
            raise InvalidTileDirectoryError(
                f"Position outside the {header.lat_count}x{header.long_count} grid", position=entry.position
            )
        if entry.length <= 0:
            raise InvalidTileDirectoryError(
                f"Empty or negative payload length {entry.length}", position=entry.position
            )
        if entry.offset < data_start:
            raise InvalidTileDirectoryError(
                f"Payload offset {entry.offset} overlaps the container metadata ending at {data_start}",
                position=entry.position
            )
        if entry.end > buffer_length:
            raise InvalidTileDirectoryError(
                f"Payload {entry.offset}+{entry.length} runs past the end of the {buffer_length}-byte buffer",
                position=entry.position
            )
        coverage[entry.row, entry.col] += 1

    duplicated = np.argwhere(coverage > 1)
    if duplicated.size:
        row, col = (int(v) for v in duplicated[0])
        raise InvalidTileDirectoryError("Grid cell listed more than once", position=(row, col))

    missing = np.argwhere(coverage == 0)
    if missing.size:
        row, col = (int(v) for v in missing[0])
        raise InvalidTileDirectoryError("Grid cell has no directory entry", position=(row, col))

def validate_georeference(header: ContainerHeader) -> None:
    """
    Check the corner coordinates and CRS code.

    Raises:
        MissingGeoreferenceError: If a corner is non-finite, all corners are
            zero, the CRS code is unknown, or a geographic corner lies outside
            the valid longitude/latitude range.
    """
    corners = {
        'west_longitude': header.west_longitude,
        'north_latitude': header.north_latitude,
        'east_longitude': header.east_longitude,
        'south_latitude': header.south_latitude,
    }
    for name, value in corners.items():
        if not math.isfinite(value):
            raise MissingGeoreferenceError(f"Corner coordinate is {value}", field=name)
    if all(value == 0.0 for value in corners.values()):
        raise MissingGeoreferenceError("All corner coordinates are zero", field='corners')

    srs = get_srs_from_epsg(header.epsg_code)
    if srs is None:
        raise MissingGeoreferenceError(f"Unknown CRS code EPSG:{header.epsg_code}", field='crs_code')

    if srs.IsGeographic():
        for name in ('west_longitude', 'east_longitude'):
            if not -180.0 <= corners[name] <= 180.0:
                raise MissingGeoreferenceError(f"Longitude {corners[name]} outside [-180, 180]", field=name)
        for name in ('north_latitude', 'south_latitude'):
            if not -90.0 <= corners[name] <= 90.0:
                raise MissingGeoreferenceError(f"Latitude {corners[name]} outside [-90, 90]", field=name)

def log_header(header: ContainerHeader) -> None:
    """Log every header field at DEBUG level."""
    for name, value in vars(header).items():
        logger.debug(f"  {name}: {value!r}")

def parse_container(data: BufferLike) -> TpqContainer:
    """
    Parse and validate a complete TPQ container.

    Validation runs in stream order: header, directory, palette, directory
    coverage, georeference. No tile payload is touched.

    Args:
        data: The complete container buffer.

    Returns:
        TpqContainer: Header, directory, palette and a read-only view of data.
    """
    view = memoryview(data).toreadonly()
    header = parse_header(view)
    logger.debug(f"TPQ header (version {header.version}):")
    log_header(header)

    entries = parse_directory(view, header)
    palette, data_start = parse_palette(view, header, directory_end(header))
    validate_directory(entries, header, len(view), data_start)
    validate_georeference(header)

    logger.debug(
        f"Directory: {len(entries)} tiles of {header.maplet_width}x{header.maplet_height}, "
        f"{header.color_mode.name.lower()} color"
        + (f", {len(palette)} palette entries" if palette is not None else "")
    )
    return TpqContainer(header=header, entries=entries, palette=palette, source=view)
