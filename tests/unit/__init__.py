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
Unit tests for TPQ2TIFF components.

This package contains unit tests that verify individual functions and classes
in isolation. Unit tests should be fast, focused, and independent.
"""
