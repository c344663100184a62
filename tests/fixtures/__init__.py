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
Test fixtures and mock data factories for TPQ2TIFF tests.

This package contains:
- MockTPQ: Factory for building in-memory TPQ containers
- GeoTIFF readers used to check conversion output
"""

from tests.fixtures.mock_tpq_factory import MockTPQ
from tests.fixtures.geotiff_readers import read_geotiff, gdal_geotransform

__all__ = ['MockTPQ', 'read_geotiff', 'gdal_geotransform']
