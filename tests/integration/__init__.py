#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# ******************************************************************************
# Project: TPQ to GeoTIFF Converter (TPQ2TIFF)
# Author: TPQ2TIFF contributors
#
# Copyright (c) 2025, TPQ2TIFF contributors
# Licensed under the MIT License
# ******************************************************************************
