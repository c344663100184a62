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
File and Stream Utilities for TPQ2TIFF.

Helpers for the command-line tools: reading the whole container from a path
or stdin, naming the default output file, and writing the GeoTIFF so that a
failed run never leaves a partial output file behind.
"""
import logging
import os
import sys
import tempfile
from pathlib import Path
from typing import Optional, Union
from tpq2tiff.utils.data_models import ContainerHeader
from tpq2tiff.utils.exceptions import GeoTiffWriteError

logger = logging.getLogger(__name__)

STDIN_MARKER = '-'

def read_input(input_path: Union[str, Path]) -> bytes:
    """
    Read a complete TPQ container.

    Args:
        input_path: A file path, or '-' for standard input.

    Returns:
        bytes: The container contents.
    """
    if str(input_path) == STDIN_MARKER:
        data = sys.stdin.buffer.read()
        logger.debug(f"Read {len(data)} bytes from stdin")
        return data
    data = Path(input_path).read_bytes()
    logger.debug(f"Read {len(data)} bytes from {input_path}")
    return data

def _format_coordinate(value: float) -> str:
    """Shortest plain decimal form: -120.0 -> '-120', -120.125 -> '-120.125'."""
    text = f"{value:.10f}".rstrip('0').rstrip('.')
    return '0' if text in ('', '-0') else text

def default_output_name(header: ContainerHeader) -> str:
    """Output file name derived from the map's north-west corner."""
    return f"map_{_format_coordinate(header.west_longitude)}_{_format_coordinate(header.north_latitude)}.tif"

def resolve_output_path(input_path: Union[str, Path], output_path: Optional[Path],
                        header: ContainerHeader) -> Path:
    """
    Pick the output path: the explicit one, or the default name placed beside
    the input file (the working directory when reading stdin).
    """
    if output_path is not None:
        return Path(output_path)
    if str(input_path) == STDIN_MARKER:
        return Path.cwd() / default_output_name(header)
    return Path(input_path).parent / default_output_name(header)

def write_output(payload: bytes, output_path: Path) -> None:
    """
    Write bytes to output_path through a temporary file in the same directory.

    The temporary file is renamed over the target only after a complete
    write, and removed on failure.

    Raises:
        GeoTiffWriteError: If the directory or file cannot be written.
    """
    output_path = Path(output_path)
    tmp_name = None
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(dir=output_path.parent, prefix=f".{output_path.stem}.",
                                         suffix='.tmp', delete=False) as tmp:
            tmp_name = tmp.name
            tmp.write(payload)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp_name, output_path)
    except OSError as e:
        if tmp_name and os.path.exists(tmp_name):
            os.remove(tmp_name)
        raise GeoTiffWriteError(f"Cannot write {output_path}: {e}", field='output') from e
    logger.debug(f"Wrote {len(payload)} bytes to {output_path}")
