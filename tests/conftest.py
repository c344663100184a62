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
Pytest configuration and shared fixtures for the TPQ2TIFF test suite.

This module provides:
- Shared fixtures for synthetic TPQ containers
- Fixtures writing containers to disk for CLI tests

Fixtures are organized by scope:
- session: Created once per test session (expensive setup)
- function: Created for each test function (default)

Example:
    >>> def test_using_fixture(mock_tpq_direct):
    ...     '''Test using the mock_tpq_direct fixture.'''
    ...     assert mock_tpq_direct.width == 32
"""

import pytest
import numpy as np

# pythonpath is configured in pyproject.toml to include the project root
from tests.fixtures.mock_tpq_factory import MockTPQ


# =============================================================================
# Session-scope Fixtures (Created once per test session)
# =============================================================================

@pytest.fixture(scope="session")
def temp_dir(tmp_path_factory):
    """
    Create a temporary directory for the entire test session.

    Returns:
        Path: Path to temporary directory
    """
    return tmp_path_factory.mktemp("tpq2tiff_tests")


@pytest.fixture(scope="session")
def quad_2x2_indexed():
    """
    The reference scenario: a 2x2 grid of 256x256 palette-indexed tiles with a
    3-entry palette, projected corners (0, 512) - (512, 0) in EPSG:32610.

    Returns:
        MockTPQ: The mock container
    """
    return MockTPQ(
        lat_count=2,
        long_count=2,
        maplet_width=256,
        maplet_height=256,
        color_depth=8,
        extension='png',
        corners=(0.0, 512.0, 512.0, 0.0),
        crs_code=32610,
        palette=np.array([[255, 255, 255], [0, 0, 255], [255, 0, 0]], dtype=np.uint8),
    )


# =============================================================================
# Function-scope Fixtures (Created for each test)
# =============================================================================

@pytest.fixture
def mock_tpq_direct():
    """
    Small direct-color container: 2x2 grid of 16x16 lossless RGB tiles in
    NAD27 geographic coordinates.

    Returns:
        MockTPQ: The mock container
    """
    return MockTPQ(lat_count=2, long_count=2, color_depth=24, extension='png')


@pytest.fixture
def mock_tpq_indexed():
    """
    Small palette-indexed container: 2x3 grid of 16x16 tiles, 3-entry palette.

    Returns:
        MockTPQ: The mock container
    """
    return MockTPQ(lat_count=2, long_count=3, color_depth=8, extension='png')


@pytest.fixture
def tpq_file(tmp_path, mock_tpq_direct):
    """
    Write the direct-color mock container to disk.

    Returns:
        Path: Path to the .tpq file
    """
    path = tmp_path / "mock_quad.tpq"
    path.write_bytes(mock_tpq_direct.to_bytes())
    return path
