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
Geotransform Calculator.

Derives the affine pixel-to-map transform of the assembled raster from the
header's corner coordinates. The corners describe the extent of the full
raster, not of a single tile. The north-west corner anchors pixel (0, 0) and
the scale along each axis is the coordinate span over the pixel span:

    scale_x = (east - west) / width
    scale_y = (south - north) / height     (negative for north-up maps)

The source CRS identifier is kept as-is. The optional "utm" target projects
NAD27 geographic corners to the NAD27 UTM zone of the west edge instead.
"""

import logging
import math
from typing import Tuple
from osgeo import osr
from tpq2tiff.utils.data_models import NAD27_GEOGRAPHIC_EPSG, ContainerHeader, Geotransform
from tpq2tiff.utils.exceptions import (
    DegenerateExtentError,
    MissingGeoreferenceError,
    UnsupportedProjectionError,
)
from tpq2tiff.utils.srs_logic import (
    NAD27_UTM_ZONES,
    describe_srs,
    get_srs_from_epsg,
    nad27_utm_epsg,
    transform_point,
    utm_zone_for_longitude,
)

logger = logging.getLogger(__name__)

TARGETS = ('source', 'utm')
PIXEL_ANCHORS = ('corner', 'center')

Extent = Tuple[float, float, float, float]

def compute_geotransform(header: ContainerHeader, width: int, height: int,
                         target: str = 'source', pixel_anchor: str = 'corner') -> Geotransform:
    """
    Compute the geotransform of a raster covering the header's extent.

    Args:
        header: Container header with corner coordinates and CRS code.
        width: Raster width in pixels.
        height: Raster height in pixels.
        target: 'source' keeps the header CRS, 'utm' projects to NAD27 UTM.
        pixel_anchor: 'corner' puts the corner coordinates on the outer pixel
            edges. 'center' puts the north-west corner on the center of pixel
            (0, 0) and keeps the edge-to-edge scale, so the grid moves half a
            pixel north-west and is written as PixelIsPoint.

    Returns:
        Geotransform: GDAL-ordered coefficients plus CRS identification.

    Raises:
        DegenerateExtentError: If the scale along an axis is zero, inverted or
            non-finite.
        UnsupportedProjectionError: If the UTM target is requested for a
            source that is not NAD27 geographic.
    """
    if target not in TARGETS:
        raise ValueError(f"Unknown geotransform target '{target}' (expected one of {TARGETS})")
    if pixel_anchor not in PIXEL_ANCHORS:
        raise ValueError(f"Unknown pixel anchor '{pixel_anchor}' (expected one of {PIXEL_ANCHORS})")

    srs = get_srs_from_epsg(header.epsg_code)
    if srs is None:
        raise MissingGeoreferenceError(f"Unknown CRS code EPSG:{header.epsg_code}", field='crs_code')
    epsg_code = header.epsg_code
    west, north, east, south = header.corners

    if target == 'utm':
        epsg_code, srs, (west, north, east, south) = _project_to_nad27_utm(header, srs)
    elif srs.IsGeographic() and east < west:
        logger.debug(f"Extent {west} -> {east} crosses the antimeridian; unwrapping east edge")
        east += 360.0

    if width <= 0:
        raise DegenerateExtentError(f"Raster width {width} is not positive", field='x')
    if height <= 0:
        raise DegenerateExtentError(f"Raster height {height} is not positive", field='y')

    scale_x = (east - west) / width
    scale_y = (south - north) / height
    if not math.isfinite(scale_x) or scale_x <= 0.0:
        raise DegenerateExtentError(
            f"Horizontal pixel scale {scale_x} from west={west}, east={east}", field='x'
        )
    if not math.isfinite(scale_y) or scale_y >= 0.0:
        raise DegenerateExtentError(
            f"Vertical pixel scale {scale_y} from north={north}, south={south}", field='y'
        )

    origin_x, origin_y = west, north
    if pixel_anchor == 'center':
        origin_x -= scale_x / 2.0
        origin_y -= scale_y / 2.0

    name, is_geographic, units_code = describe_srs(srs)
    geotransform = Geotransform(
        coefficients=(origin_x, scale_x, 0.0, origin_y, 0.0, scale_y),
        epsg_code=epsg_code,
        is_geographic=is_geographic,
        crs_name=name,
        pixel_is_point=pixel_anchor == 'center',
        linear_units_code=units_code,
    )
    logger.debug(f"Geotransform: {geotransform.coefficients} in EPSG:{epsg_code} ({name})")
    return geotransform

def _project_to_nad27_utm(header: ContainerHeader, srs: osr.SpatialReference) -> Tuple[int, osr.SpatialReference, Extent]:
    """Project the north-west and south-east corners to the NAD27 UTM zone of the west edge."""
    if header.epsg_code != NAD27_GEOGRAPHIC_EPSG:
        raise UnsupportedProjectionError(
            f"UTM output needs NAD27 geographic corners (EPSG:{NAD27_GEOGRAPHIC_EPSG}), "
            f"container uses EPSG:{header.epsg_code}",
            field='crs_code'
        )

    zone = utm_zone_for_longitude(header.west_longitude)
    if zone not in NAD27_UTM_ZONES:
        raise UnsupportedProjectionError(
            f"West edge {header.west_longitude} lies in UTM zone {zone}; NAD27 UTM covers zones "
            f"{NAD27_UTM_ZONES.start}-{NAD27_UTM_ZONES.stop - 1} only",
            field='west_longitude'
        )
    epsg_code = nad27_utm_epsg(zone)
    utm = get_srs_from_epsg(epsg_code)
    if utm is None or utm.GetUTMZone() != zone:
        raise UnsupportedProjectionError(f"No NAD27 UTM CRS for zone {zone} (EPSG:{epsg_code})", field='crs_code')

    try:
        left, top = transform_point(srs, utm, header.west_longitude, header.north_latitude)
        right, bottom = transform_point(srs, utm, header.east_longitude, header.south_latitude)
    except RuntimeError as e:
        raise UnsupportedProjectionError(f"Cannot project corners to EPSG:{epsg_code}: {e}", field='crs_code') from e

    logger.info(f"Projecting corners to NAD27 / UTM zone {zone}N (EPSG:{epsg_code})")
    return epsg_code, utm, (left, top, right, bottom)
