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
Convert TPQ (CLI).

Converts a TPQ tiled topographic map container into a GeoTIFF. The pipeline
runs strictly forward:

    parse container -> decode + assemble tiles -> geotransform -> write GeoTIFF

`convert_tpq_bytes` is the in-memory entry point: it takes the complete
container buffer and returns the GeoTIFF bytes, or raises a single
`TpqConversionError` subclass. The writer is only reached after every
earlier stage succeeded. `convert_tpq` wraps it for the command line with
file/stdin input and an atomic output write.
"""

import io
import logging
from pathlib import Path
from typing import Optional
from tpq2tiff import __version__
from tpq2tiff.utils.data_models import ContainerHeader, ConversionResult
from tpq2tiff.utils.geotiff_writer import write_geotiff
from tpq2tiff.utils.geotransform import compute_geotransform
from tpq2tiff.utils.path_helpers import read_input, resolve_output_path, write_output
from tpq2tiff.utils.performance_tracker import PerformanceTracker
from tpq2tiff.utils.raster_assembler import assemble_raster
from tpq2tiff.utils.script_arguments import ConversionOptions, ConvertArguments
from tpq2tiff.utils.tpq_parser import parse_container

logger = logging.getLogger('convert_tpq')

def build_citation(header: ContainerHeader) -> str:
    """Citation text for the GeoTIFF: quad name, state and edition year(s)."""
    parts = [p for p in (header.quad_name, header.state_name) if p]
    years = '/'.join(y for y in (header.year1, header.year2) if y.strip())
    if years:
        parts.append(years)
    return ', '.join(parts)

def convert_tpq_bytes(data: bytes, options: Optional[ConversionOptions] = None,
                      tracker: Optional[PerformanceTracker] = None) -> ConversionResult:
    """
    Convert a complete TPQ container to GeoTIFF bytes.

    Args:
        data: The whole container.
        options: Conversion settings (config.toml defaults when omitted).
        tracker: Optional tracker receiving per-stage timings.

    Returns:
        ConversionResult: The GeoTIFF bytes plus header and geotransform.

    Raises:
        TpqConversionError: The first failure of any stage.
    """
    options = options or ConversionOptions()
    tracker = tracker or PerformanceTracker()

    with tracker.track("parse"):
        container = parse_container(data)
    header = container.header

    with tracker.track("assemble"):
        raster = assemble_raster(container, workers=options.workers)

    with tracker.track("geotransform"):
        geotransform = compute_geotransform(
            header, raster.width, raster.height,
            target=options.target, pixel_anchor=options.pixel_anchor,
        )

    with tracker.track("write"):
        sink = io.BytesIO()
        write_geotiff(
            raster, geotransform, sink,
            compression=options.compression,
            layout=options.layout,
            tile_size=options.tile_size,
            citation=build_citation(header),
            software=f"tpq2tiff {__version__}",
        )

    return ConversionResult(
        geotiff=sink.getvalue(),
        header=header,
        geotransform=geotransform,
        width=raster.width,
        height=raster.height,
        timings=tracker.get_timings(),
    )

def convert_tpq(args: ConvertArguments) -> Path:
    """
    Convert the TPQ file named by the arguments and write the GeoTIFF.

    Returns:
        Path: The written GeoTIFF.
    """
    tracker = PerformanceTracker()
    with tracker.track("read"):
        data = read_input(args.input_path)

    result = convert_tpq_bytes(data, args.options, tracker)
    output_path = resolve_output_path(args.input_path, args.output_path, result.header)

    with tracker.track("save"):
        write_output(result.geotiff, output_path)

    header = result.header
    logger.info(
        f"Converted '{header.quad_name or args.input_path}': "
        f"{header.lat_count}x{header.long_count} tiles -> {result.width}x{result.height} pixels, "
        f"EPSG:{result.geotransform.epsg_code}"
    )
    logger.info(f"GeoTIFF written to {output_path}")
    tracker.log_summary()
    return output_path
