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
Performance Tracker for Conversion Stages.

This module provides the `PerformanceTracker` class, which times the named
stages of a conversion (parse, assemble, geotransform, write) so they can be
logged together at the end of a run.

Classes:
    PerformanceTracker: A class to manage named timers for performance analysis.
"""
import logging
import time
from contextlib import contextmanager
from typing import Dict, Iterator

logger = logging.getLogger(__name__)

class PerformanceTracker:
    """A class to track the duration of conversion stages."""

    def __init__(self):
        self.timings: Dict[str, float] = {}
        self._start_times: Dict[str, float] = {}

    def start(self, step_name: str):
        """Starts the timer for a given step."""
        self._start_times[step_name] = time.perf_counter()

    def stop(self, step_name: str):
        """Stops the timer for a given step and records the duration."""
        if step_name in self._start_times:
            self.timings[step_name] = time.perf_counter() - self._start_times.pop(step_name)

    @contextmanager
    def track(self, step_name: str) -> Iterator[None]:
        """Time the enclosed block, recording it even if the block raises."""
        self.start(step_name)
        try:
            yield
        finally:
            self.stop(step_name)

    def get_timings(self) -> Dict[str, float]:
        """Returns all recorded timings."""
        return dict(self.timings)

    def get_total_time(self) -> float:
        """Returns the total time for all recorded steps."""
        return sum(self.timings.values())

    def log_summary(self, level: int = logging.DEBUG):
        """Logs one line per recorded step plus the total."""
        for step, duration in self.timings.items():
            logger.log(level, f"- {step}: {self.format_time(duration)}")
        logger.log(level, f"- total: {self.format_time(self.get_total_time())}")

    @staticmethod
    def format_time(seconds: float) -> str:
        """Formats seconds into a human-readable string."""
        if seconds < 1:
            return f"{seconds * 1000:.1f}ms"
        if seconds < 60:
            return f"{seconds:.2f}s"
        minutes = int(seconds // 60)
        return f"{minutes}m {seconds % 60:.1f}s"
