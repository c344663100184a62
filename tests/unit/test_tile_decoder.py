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
Unit tests for the tile decoder.
"""

import io
import numpy as np
import pytest
from PIL import Image
from tests.fixtures.mock_tpq_factory import MockTPQ
from tpq2tiff.utils.data_models import ColorMode, TileDirectoryEntry
from tpq2tiff.utils.exceptions import InvalidPixelIndexError, TileDecodeError
from tpq2tiff.utils.tile_decoder import decode_tile
from tpq2tiff.utils.tpq_parser import parse_header


def _entry(payload: bytes, row: int = 0, col: int = 0) -> TileDirectoryEntry:
    return TileDirectoryEntry(offset=2048, length=len(payload), row=row, col=col)


def _encode(array: np.ndarray, fmt: str) -> bytes:
    buffer = io.BytesIO()
    Image.fromarray(array).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.mark.unit
class TestDirectTiles:
    """Test decoding of RGB tiles."""

    def test_png_tile_is_exact(self, mock_tpq_direct):
        """Test a PNG tile decodes to exactly its samples."""
        header = parse_header(mock_tpq_direct.header_bytes())
        samples = mock_tpq_direct.tiles[(1, 0)]
        payload = mock_tpq_direct.encode_tile(samples)

        block = decode_tile(memoryview(payload), _entry(payload, 1, 0), header)

        assert block.position == (1, 0)
        assert block.color_mode is ColorMode.DIRECT
        assert block.samples.shape == (16, 16, 3)
        np.testing.assert_array_equal(block.samples, samples)

    def test_jpeg_tile_is_close(self):
        """Test a JPEG tile of a smooth gradient decodes within lossy tolerance."""
        ramp = np.tile(np.linspace(0, 255, 16, dtype=np.uint8), (16, 1))
        samples = np.stack([ramp, ramp.T, np.full((16, 16), 128, dtype=np.uint8)], axis=-1)
        mock = MockTPQ(extension='jpg', tiles={(r, c): samples for r in range(2) for c in range(2)})
        header = parse_header(mock.header_bytes())
        payload = mock.encode_tile(samples)

        block = decode_tile(memoryview(payload), _entry(payload), header)

        diff = np.abs(block.samples.astype(np.int16) - samples.astype(np.int16))
        assert block.samples.shape == (16, 16, 3)
        assert diff.mean() < 6

    def test_grayscale_jpeg_expanded_to_rgb(self):
        """Test a single-channel JPEG in a direct container becomes three channels."""
        header = parse_header(MockTPQ(extension='jpg').header_bytes())
        payload = _encode(np.full((16, 16), 200, dtype=np.uint8), 'JPEG')

        block = decode_tile(memoryview(payload), _entry(payload), header)

        assert block.samples.shape == (16, 16, 3)
        assert np.all(np.abs(block.samples.astype(np.int16) - 200) <= 2)

    def test_block_does_not_reference_source(self, mock_tpq_direct):
        """Test the decoded block is independent of the container buffer."""
        header = parse_header(mock_tpq_direct.header_bytes())
        samples = mock_tpq_direct.tiles[(0, 0)]
        source = bytearray(mock_tpq_direct.encode_tile(samples))

        block = decode_tile(memoryview(source), _entry(bytes(source)), header)
        source[:] = b'\x00' * len(source)

        np.testing.assert_array_equal(block.samples, samples)


@pytest.mark.unit
class TestDecodeFailures:
    """Test that undecodable payloads name their tile."""

    @pytest.fixture
    def header(self, mock_tpq_direct):
        return parse_header(mock_tpq_direct.header_bytes())

    def test_garbage_payload(self, header):
        """Test bytes that are no image at all."""
        payload = b'definitely not a png'
        with pytest.raises(TileDecodeError) as exc_info:
            decode_tile(memoryview(payload), _entry(payload, 1, 1), header)
        assert exc_info.value.position == (1, 1)

    def test_truncated_payload(self, header, mock_tpq_direct):
        """Test a PNG cut off halfway through its data."""
        full = mock_tpq_direct.encode_tile(mock_tpq_direct.tiles[(0, 1)])
        payload = full[:len(full) // 2]
        with pytest.raises(TileDecodeError) as exc_info:
            decode_tile(memoryview(payload), _entry(payload, 0, 1), header)
        assert exc_info.value.position == (0, 1)

    def test_payload_in_other_codec(self, header):
        """Test a JPEG payload inside a container declaring PNG tiles."""
        payload = _encode(np.zeros((16, 16, 3), dtype=np.uint8), 'JPEG')
        with pytest.raises(TileDecodeError):
            decode_tile(memoryview(payload), _entry(payload), header)

    @pytest.mark.parametrize("shape", [(8, 16, 3), (16, 8, 3), (32, 32, 3)])
    def test_wrong_tile_size(self, header, shape):
        """Test a tile whose pixel size differs from the header's tile size."""
        payload = _encode(np.zeros(shape, dtype=np.uint8), 'PNG')
        with pytest.raises(TileDecodeError) as exc_info:
            decode_tile(memoryview(payload), _entry(payload, 1, 0), header)
        assert exc_info.value.position == (1, 0)
        assert 'expected 16x16' in str(exc_info.value)


@pytest.mark.unit
class TestIndexedTiles:
    """Test decoding of palette-indexed tiles."""

    def test_indices_preserved(self, mock_tpq_indexed):
        """Test index samples are returned unresolved."""
        header = parse_header(mock_tpq_indexed.header_bytes())
        samples = mock_tpq_indexed.tiles[(1, 2)]
        payload = mock_tpq_indexed.encode_tile(samples)

        block = decode_tile(memoryview(payload), _entry(payload, 1, 2), header, palette_size=3)

        assert block.color_mode is ColorMode.INDEXED
        assert block.samples.shape == (16, 16)
        np.testing.assert_array_equal(block.samples, samples)

    def test_index_beyond_palette(self):
        """Test a sample without a palette entry is reported with its value."""
        samples = np.zeros((16, 16), dtype=np.uint8)
        samples[3, 5] = 5
        mock = MockTPQ(color_depth=8, tiles={(r, c): samples for r in range(2) for c in range(2)})
        header = parse_header(mock.header_bytes())
        payload = mock.encode_tile(samples)

        with pytest.raises(InvalidPixelIndexError) as exc_info:
            decode_tile(memoryview(payload), _entry(payload, 0, 1), header, palette_size=3)

        assert exc_info.value.position == (0, 1)
        assert exc_info.value.index == 5
        assert 'x=5, y=3' in str(exc_info.value)

    def test_missing_palette(self, mock_tpq_indexed):
        """Test indexed samples cannot be validated without a palette."""
        header = parse_header(mock_tpq_indexed.header_bytes())
        payload = mock_tpq_indexed.encode_tile(mock_tpq_indexed.tiles[(0, 0)])
        with pytest.raises(InvalidPixelIndexError):
            decode_tile(memoryview(payload), _entry(payload), header, palette_size=None)

    def test_rgb_tile_in_indexed_container(self, mock_tpq_indexed):
        """Test an RGB payload cannot stand in for index samples."""
        header = parse_header(mock_tpq_indexed.header_bytes())
        payload = _encode(np.zeros((16, 16, 3), dtype=np.uint8), 'PNG')
        with pytest.raises(TileDecodeError) as exc_info:
            decode_tile(memoryview(payload), _entry(payload, 1, 1), header, palette_size=3)
        assert "'RGB'" in str(exc_info.value)
