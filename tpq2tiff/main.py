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
Command-line interface for the TPQ to GeoTIFF converter.

This script provides the main entry point for the `tpq2tiff` command,
parsing user arguments and dispatching them to the appropriate tool.
"""
import argparse
import logging
import sys
from pathlib import Path
from tpq2tiff.utils.config_loader import config
from tpq2tiff.utils.exceptions import TpqConversionError
from tpq2tiff.utils.log_helpers import level_from_name, setup_logger, shutdown_logger
from tpq2tiff.utils.script_arguments import ConvertArguments, InfoArguments

def positive_int(value: str) -> int:
    """Validate that the value is an integer of at least 1."""
    try:
        ivalue = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected a positive integer, got '{value}'")
    if ivalue < 1:
        raise argparse.ArgumentTypeError(f"Expected a positive integer, got {ivalue}")
    return ivalue

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='tpq2tiff',
        description='Convert TPQ topographic map containers to GeoTIFF.',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    subparsers = parser.add_subparsers(dest='tool', help='Available tools')
    subparsers.required = True

    # --- Convert Tool ---
    convert_parser = subparsers.add_parser(
        'convert',
        help='Convert a TPQ file to a georeferenced GeoTIFF.',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    convert_parser.add_argument('-i', '--input', required=True, dest='input_path', help="Input TPQ file, or '-' to read stdin.")
    convert_parser.add_argument('-o', '--output', type=Path, dest='output_path', help='Output GeoTIFF path. Default: map_<west>_<north>.tif beside the input.')
    convert_parser.add_argument('-c', '--compression', type=str.lower, choices=['deflate', 'none'], dest='compression', help='GeoTIFF compression (config default when omitted).')
    convert_parser.add_argument('-l', '--layout', type=str.lower, choices=['strip', 'tiled'], dest='layout', help='GeoTIFF strip or tile layout (config default when omitted).')
    convert_parser.add_argument('--tile-size', type=positive_int, dest='tile_size', help='Internal tile size for the tiled layout, a multiple of 16.')
    convert_parser.add_argument('-t', '--target', type=str.lower, choices=['source', 'utm'], dest='target', help="'source' keeps the container CRS, 'utm' projects NAD27 corners to NAD27 UTM.")
    convert_parser.add_argument('-a', '--pixel-anchor', type=str.lower, choices=['corner', 'center'], dest='pixel_anchor', help='Whether the corner coordinates are pixel edges or the center of the north-west pixel.')
    convert_parser.add_argument('-w', '--workers', type=positive_int, dest='workers', help='Number of tile decoding threads.')
    convert_parser.add_argument('--log-file', type=Path, dest='log_file', help='Path to a log file for debugging.')
    convert_parser.add_argument('-v', '--verbose', action='store_true', dest='verbose', help='Enable verbose logging.')

    # --- Info Tool ---
    info_parser = subparsers.add_parser(
        'info',
        help='Validate a TPQ file and print its header without converting it.',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    info_parser.add_argument('-i', '--input', required=True, dest='input_path', help="Input TPQ file, or '-' to read stdin.")
    info_parser.add_argument('--log-file', type=Path, dest='log_file', help='Path to a log file for debugging.')
    info_parser.add_argument('-v', '--verbose', action='store_true', dest='verbose', help='Enable verbose logging.')
    return parser

def main(argv=None):
    """
    Main function to parse arguments and call the appropriate tool.
    """
    args = build_parser().parse_args(argv)
    tool = args.tool
    args_dict = vars(args)
    args_dict.pop('tool', None)

    # --- Logger Setup ---
    if args.verbose:
        log_level = logging.DEBUG
    else:
        log_level = level_from_name(config.get("logging.level"))
    log_file = args.log_file or config.get("logging.file") or None
    logger = setup_logger(log_file=str(log_file) if log_file else None, level=log_level)

    try:
        # validation errors are logged by handle_error
        script_args = ConvertArguments(**args_dict) if tool == 'convert' else InfoArguments(**args_dict)
    except ValueError:
        shutdown_logger(logger)
        sys.exit(2)

    exit_code = 0
    try:
        if tool == 'convert':
            from tpq2tiff.tools.convert_tpq import convert_tpq
            convert_tpq(script_args)
        elif tool == 'info':
            from tpq2tiff.tools.read_header import read_header
            read_header(script_args)
    except TpqConversionError as e:
        logger.error(f"Conversion failed ({type(e).__name__}): {e}")
        exit_code = 1
    except Exception as e:
        logger.error(f"An unexpected error occurred: {e}", exc_info=True)
        exit_code = 1
    finally:
        shutdown_logger(logger)
    if exit_code:
        sys.exit(exit_code)

if __name__ == "__main__":
    main()
