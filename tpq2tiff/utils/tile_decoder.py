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
Tile Decoder.

Decodes one tile payload (a JPEG or PNG image, as named by the header's
extension field) into a PixelBlock of exactly the header's tile dimensions.
Direct-color tiles become RGB blocks; palette-indexed tiles stay as raw index
samples, validated against the palette size, and are resolved to colors later
during assembly.

Tiles are independent of each other, so `decode_tile` is safe to call from
several worker threads at once.
"""

import io
import logging
import numpy as np
from PIL import Image
from typing import Optional
from tpq2tiff.utils.data_models import ColorMode, ContainerHeader, PixelBlock, TileDirectoryEntry
from tpq2tiff.utils.exceptions import InvalidPixelIndexError, TileDecodeError

logger = logging.getLogger(__name__)

INDEXED_MODES = ('P', 'L')

def decode_tile(payload: memoryview, entry: TileDirectoryEntry, header: ContainerHeader,
                palette_size: Optional[int] = None) -> PixelBlock:
    """
    Decode one tile payload.

    The payload is copied before decoding, so the returned block holds no
    reference to the container buffer.

    Args:
        payload: The tile's compressed bytes.
        entry: The directory entry the payload came from.
        header: Container header declaring tile size, color mode and codec.
        palette_size: Number of palette entries (indexed containers only).

    Returns:
        PixelBlock: (h, w) index samples or (h, w, 3) RGB samples.

    Raises:
        TileDecodeError: If the payload is not a decodable image of the
            declared codec, or decodes to the wrong size or pixel mode.
        InvalidPixelIndexError: If an indexed sample has no palette entry.
    """
    position = entry.position
    mode = header.color_mode
    codec = header.codec

    try:
        with Image.open(io.BytesIO(bytes(payload)), formats=[codec.value]) as img:
            img.load()
            if mode is ColorMode.INDEXED:
                if img.mode not in INDEXED_MODES:
                    raise TileDecodeError(
                        f"Indexed tile decoded to pixel mode '{img.mode}', expected one of {INDEXED_MODES}",
                        position=position
                    )
                samples = np.array(img, dtype=np.uint8)
            else:
                if img.mode != 'RGB':
                    img = img.convert('RGB')
                samples = np.array(img, dtype=np.uint8)
    except (OSError, SyntaxError, ValueError, EOFError, Image.DecompressionBombError) as e:
        raise TileDecodeError(f"Cannot decode {codec.value} payload: {e}", position=position) from e

    expected = (header.maplet_height, header.maplet_width)
    if samples.shape[:2] != expected:
        raise TileDecodeError(
            f"Decoded {samples.shape[1]}x{samples.shape[0]} pixels, "
            f"expected {header.maplet_width}x{header.maplet_height}",
            position=position
        )

    if mode is ColorMode.INDEXED:
        _check_indices(samples, position, palette_size)

    return PixelBlock(position=position, samples=samples, color_mode=mode)

def _check_indices(samples: np.ndarray, position, palette_size: Optional[int]) -> None:
    """Reject any sample value that does not address a palette entry."""
    if palette_size is None:
        raise InvalidPixelIndexError("Indexed tile without a palette", position=position)
    out_of_range = np.argwhere(samples >= palette_size)
    if out_of_range.size:
        y, x = (int(v) for v in out_of_range[0])
        value = int(samples[y, x])
        raise InvalidPixelIndexError(
            f"Sample value {value} at pixel (x={x}, y={y}) exceeds the {palette_size}-entry palette",
            position=position,
            index=value,
        )
