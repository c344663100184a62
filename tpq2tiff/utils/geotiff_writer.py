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
GeoTIFF Writer.

Serializes an assembled raster and its geotransform into a GeoTIFF byte
stream using tifffile. Georeferencing is carried by three TIFF tags:

- 33550 ModelPixelScaleTag: (scale_x, scale_y, 0) with scale_y positive,
- 33922 ModelTiepointTag: raster (0, 0, 0) tied to the map origin,
- 34735 GeoKeyDirectoryTag (+ 34737 GeoAsciiParamsTag for the citation).

GeoTIFF Standard v1.1: https://docs.ogc.org/is/19-008r4/19-008r4.html
"""

import io
import logging
import tifffile
from typing import BinaryIO, List, Optional, Tuple
from tpq2tiff.utils.data_models import Geotransform, Raster
from tpq2tiff.utils.exceptions import GeoTiffWriteError
from tpq2tiff.utils.srs_logic import DEGREE_UNIT_CODE

logger = logging.getLogger(__name__)

# --- TIFF tags ---
MODEL_PIXEL_SCALE_TAG = 33550
MODEL_TIEPOINT_TAG = 33922
GEO_KEY_DIRECTORY_TAG = 34735
GEO_ASCII_PARAMS_TAG = 34737

# --- GeoKeys ---
GT_MODEL_TYPE_GEOKEY = 1024
GT_RASTER_TYPE_GEOKEY = 1025
GT_CITATION_GEOKEY = 1026
GEODETIC_CRS_GEOKEY = 2048
GEOG_ANGULAR_UNITS_GEOKEY = 2054
PROJECTED_CRS_GEOKEY = 3072
PROJ_LINEAR_UNITS_GEOKEY = 3076

MODEL_TYPE_PROJECTED = 1
MODEL_TYPE_GEOGRAPHIC = 2
RASTER_PIXEL_IS_AREA = 1
RASTER_PIXEL_IS_POINT = 2

# KeyDirectoryVersion, KeyRevision, MinorRevision (GeoTIFF 1.1)
GEOKEY_DIRECTORY_VERSION = (1, 1, 1)

COMPRESSIONS = {
    'deflate': 'zlib',
    'none': None,
}
LAYOUTS = ('strip', 'tiled')
STRIP_TARGET_BYTES = 65536

def build_geokey_directory(geotransform: Geotransform, citation: str = '') -> Tuple[List[int], str]:
    """
    Build the GeoKeyDirectoryTag values and the GeoAsciiParamsTag string.

    Args:
        geotransform: Supplies the CRS code, model type and raster type.
        citation: Free text stored in GTCitationGeoKey (omitted when empty);
            characters outside 7-bit ASCII are written as '?'.

    Returns:
        Tuple[directory, ascii_params]: Flat list of unsigned shorts (header
        followed by sorted key entries) and the pipe-terminated ASCII params.
    """
    keys = [
        (GT_MODEL_TYPE_GEOKEY, 0, 1,
         MODEL_TYPE_GEOGRAPHIC if geotransform.is_geographic else MODEL_TYPE_PROJECTED),
        (GT_RASTER_TYPE_GEOKEY, 0, 1,
         RASTER_PIXEL_IS_POINT if geotransform.pixel_is_point else RASTER_PIXEL_IS_AREA),
    ]

    ascii_params = ''
    if citation:
        # TIFF ASCII is 7-bit; '|' terminates each string in GeoAsciiParamsTag and is counted
        citation = citation.encode('ascii', 'replace').decode('ascii').replace('|', '/')
        ascii_params = f"{citation}|"
        keys.append((GT_CITATION_GEOKEY, GEO_ASCII_PARAMS_TAG, len(ascii_params), 0))

    if geotransform.is_geographic:
        keys.append((GEODETIC_CRS_GEOKEY, 0, 1, geotransform.epsg_code))
        keys.append((GEOG_ANGULAR_UNITS_GEOKEY, 0, 1, DEGREE_UNIT_CODE))
    else:
        keys.append((PROJECTED_CRS_GEOKEY, 0, 1, geotransform.epsg_code))
        keys.append((PROJ_LINEAR_UNITS_GEOKEY, 0, 1, geotransform.linear_units_code))

    keys.sort(key=lambda k: k[0])
    directory = [*GEOKEY_DIRECTORY_VERSION, len(keys)]
    for key in keys:
        directory.extend(key)
    return directory, ascii_params

def build_geotiff_tags(geotransform: Geotransform, citation: str = '') -> List[tuple]:
    """
    Build the tifffile `extratags` carrying the georeferencing.

    Returns:
        List of (code, dtype, count, value, writeonce) tuples.
    """
    scale_x, scale_y = geotransform.pixel_scale
    if geotransform.pixel_is_point:
        tie_x, tie_y = geotransform.apply(0.5, 0.5)
    else:
        tie_x, tie_y = geotransform.origin
    scale = (float(scale_x), float(-scale_y), 0.0)
    tie = (0.0, 0.0, 0.0, float(tie_x), float(tie_y), 0.0)
    directory, ascii_params = build_geokey_directory(geotransform, citation)

    tags = [
        (MODEL_PIXEL_SCALE_TAG, 'd', 3, scale, False),
        (MODEL_TIEPOINT_TAG, 'd', 6, tie, False),
        (GEO_KEY_DIRECTORY_TAG, 'H', len(directory), directory, False),
    ]
    if ascii_params:
        tags.append((GEO_ASCII_PARAMS_TAG, 's', 0, ascii_params, False))
    return tags

def _layout_options(raster: Raster, layout: str, tile_size: int) -> dict:
    if layout == 'tiled':
        return {'tile': (tile_size, tile_size)}
    row_bytes = raster.width * raster.channels
    return {'rowsperstrip': max(1, min(raster.height, STRIP_TARGET_BYTES // max(1, row_bytes)))}

def write_geotiff(raster: Raster, geotransform: Geotransform, sink: BinaryIO,
                  compression: str = 'deflate', layout: str = 'strip', tile_size: int = 256,
                  citation: str = '', software: Optional[str] = None) -> int:
    """
    Write a raster as a GeoTIFF to a binary sink.

    The image is encoded in memory first, so the sink receives either the
    complete file or (on a failed write) an error.

    Args:
        raster: The assembled raster.
        geotransform: Georeferencing of the raster.
        sink: A writable binary file-like object.
        compression: 'deflate' or 'none'.
        layout: 'strip' or 'tiled'.
        tile_size: Tile edge in pixels for the tiled layout (multiple of 16).
        citation: Text for GTCitationGeoKey.
        software: Value of the TIFF Software tag.

    Returns:
        int: Number of bytes written.

    Raises:
        ValueError: On an unknown compression or layout.
        GeoTiffWriteError: If the sink rejects the write.
    """
    if compression not in COMPRESSIONS:
        raise ValueError(f"Unknown compression '{compression}' (expected one of {sorted(COMPRESSIONS)})")
    if layout not in LAYOUTS:
        raise ValueError(f"Unknown layout '{layout}' (expected one of {LAYOUTS})")

    buffer = io.BytesIO()
    tifffile.imwrite(
        buffer,
        raster.pixels,
        photometric='rgb' if raster.channels == 3 else 'minisblack',
        planarconfig='contig',
        compression=COMPRESSIONS[compression],
        metadata=None,
        software=software,
        extratags=build_geotiff_tags(geotransform, citation),
        **_layout_options(raster, layout, tile_size),
    )
    payload = buffer.getvalue()
    logger.debug(
        f"Encoded {raster.width}x{raster.height} GeoTIFF ({compression}, {layout}): {len(payload)} bytes"
    )

    try:
        written = sink.write(payload)
        if written is not None and written != len(payload):
            raise GeoTiffWriteError(f"Short write: {written} of {len(payload)} bytes accepted", field='output')
        flush = getattr(sink, 'flush', None)
        if flush is not None:
            flush()
    except OSError as e:
        raise GeoTiffWriteError(f"Output sink rejected the GeoTIFF: {e}", field='output') from e
    return len(payload)

def encode_geotiff(raster: Raster, geotransform: Geotransform, **options) -> bytes:
    """Encode a raster as GeoTIFF bytes (see `write_geotiff` for options)."""
    sink = io.BytesIO()
    write_geotiff(raster, geotransform, sink, **options)
    return sink.getvalue()
