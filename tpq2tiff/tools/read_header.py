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
Read TPQ Header (CLI).

Parses and validates a TPQ container without decoding any tiles, and reports
its header, tile grid, color mode and georeference.
"""

import logging
from tpq2tiff.utils.data_models import TpqContainer
from tpq2tiff.utils.path_helpers import read_input
from tpq2tiff.utils.script_arguments import InfoArguments
from tpq2tiff.utils.tpq_parser import parse_container

logger = logging.getLogger('read_header')

def format_container(container: TpqContainer) -> str:
    """Render the container summary as aligned 'label: value' lines."""
    header = container.header
    rows = [
        ("Version", header.version),
        ("Quad name", header.quad_name),
        ("State", header.state_name),
        ("Series", header.topo),
        ("Source", header.source),
        ("Years", ' / '.join(y for y in (header.year1, header.year2) if y)),
        ("Contour interval", header.contour),
        ("West", header.west_longitude),
        ("North", header.north_latitude),
        ("East", header.east_longitude),
        ("South", header.south_latitude),
        ("CRS", f"EPSG:{header.epsg_code}"),
        ("Tile grid", f"{header.lat_count} rows x {header.long_count} columns"),
        ("Tile size", f"{header.maplet_width}x{header.maplet_height}"),
        ("Raster size", f"{header.raster_width}x{header.raster_height}"),
        ("Tile codec", header.codec.value),
        ("Color mode", header.color_mode.name.lower()),
    ]
    if container.palette is not None:
        rows.append(("Palette entries", len(container.palette)))
    width = max(len(label) for label, _ in rows)
    return '\n'.join(f"{label:<{width}} : {value}" for label, value in rows)

def read_header(args: InfoArguments) -> TpqContainer:
    """Parse the input container and log its summary."""
    container = parse_container(read_input(args.input_path))
    logger.info(format_container(container))
    return container
