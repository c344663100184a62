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
TPQ2TIFF Test Suite.

This package contains tests for the converter including:
- Unit tests for individual pipeline stages
- Integration tests running the whole conversion in memory
- End-to-end tests for the CLI commands
"""
