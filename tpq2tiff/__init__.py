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
TPQ to GeoTIFF Converter.

Converts TPQ tiled topographic map containers into georeferenced GeoTIFFs.
"""
from importlib import metadata

try:
    __version__ = metadata.version("tpq2tiff")
except metadata.PackageNotFoundError:
    __version__ = "0.0.0-dev"
