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
Spatial Reference Helpers.

Thin wrappers around GDAL/OSR used to resolve the container's CRS code,
describe it for the GeoKey directory, and derive the NAD27 UTM zone used by
the optional UTM output.
"""
import logging
import os
from osgeo import gdal, osr
from typing import Optional, Tuple

os.environ.setdefault('PROJ_NETWORK', 'OFF')  # Disable PROJ network access
osr.UseExceptions()

logger = logging.getLogger(__name__)

NAD27_UTM_EPSG_BASE = 26700
# EPSG defines NAD27 / UTM only for zones 1N-22N; 26729 and up are State Plane zones
NAD27_UTM_ZONES = range(1, 23)
METRE_UNIT_CODE = 9001
DEGREE_UNIT_CODE = 9102

def _use_traditional_axis_order(srs: osr.SpatialReference) -> osr.SpatialReference:
    """Force (x=longitude/easting, y=latitude/northing) ordering on GDAL 3+."""
    if int(gdal.VersionInfo('VERSION_NUM')[0]) >= 3:
        srs.SetAxisMappingStrategy(osr.OAMS_TRADITIONAL_GIS_ORDER)
    return srs

def get_srs_from_epsg(epsg_code: int) -> Optional[osr.SpatialReference]:
    """
    Creates an osr.SpatialReference for an EPSG code.

    Args:
        epsg_code (int): The EPSG code, e.g. 4267 for NAD27.

    Returns:
        Optional[osr.SpatialReference]: The spatial reference, or None if the
        code is unknown to the PROJ database.
    """
    if epsg_code <= 0:
        return None
    srs = osr.SpatialReference()
    try:
        if srs.ImportFromEPSG(int(epsg_code)) != 0:
            return None
    except (RuntimeError, TypeError, ValueError):
        logger.debug(f"EPSG:{epsg_code} is not a known CRS")
        return None
    if not (srs.IsGeographic() or srs.IsProjected()):
        logger.debug(f"EPSG:{epsg_code} is neither geographic nor projected")
        return None
    return _use_traditional_axis_order(srs)

def describe_srs(srs: osr.SpatialReference) -> Tuple[str, bool, int]:
    """
    Summarizes a CRS for the GeoKey directory.

    Returns:
        Tuple[name, is_geographic, linear_units_code]. The unit code is the EPSG
        code of the projected linear unit (metre when not declared).
    """
    name = srs.GetName() or ''
    is_geographic = bool(srs.IsGeographic())
    units_code = METRE_UNIT_CODE
    if not is_geographic:
        code = srs.GetAuthorityCode('PROJCS|UNIT')
        if code and code.isdigit():
            units_code = int(code)
    return name, is_geographic, units_code

def utm_zone_for_longitude(longitude: float) -> int:
    """UTM zone number (1-60) containing a longitude in degrees."""
    return int((longitude + 186.0) // 6.0)

def nad27_utm_epsg(zone: int) -> int:
    """EPSG code of the NAD27 / UTM zone N (northern hemisphere) CRS."""
    return NAD27_UTM_EPSG_BASE + zone

def transform_point(source: osr.SpatialReference, target: osr.SpatialReference,
                    x: float, y: float) -> Tuple[float, float]:
    """Transforms one (x, y) point between two CRSs."""
    transform = osr.CoordinateTransformation(source, target)
    tx, ty, _ = transform.TransformPoint(x, y)
    return tx, ty
