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
Raster Assembler.

Stitches decoded tiles into one contiguous RGB raster. The raster buffer is an
arena: before any decoding starts, each grid cell is given its own view onto a
disjoint region of the buffer, and only the worker handling that tile writes
there. Palette-indexed samples are resolved to RGB while they are copied.

`assemble_raster` drives decoding on a bounded thread pool and aborts on the
first failing tile; `assemble_blocks` assembles blocks that are already
decoded.
"""

import logging
import numpy as np
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Dict, Iterable, Optional, Tuple
from tpq2tiff.utils.data_models import (
    ColorMode,
    ContainerHeader,
    PaletteTable,
    PixelBlock,
    Raster,
    TileDirectoryEntry,
    TpqContainer,
)
from tpq2tiff.utils.exceptions import IncompleteRasterError, TileDecodeError
from tpq2tiff.utils.tile_decoder import decode_tile

logger = logging.getLogger(__name__)

RASTER_CHANNELS = 3

Position = Tuple[int, int]


class RasterArena:
    """
    The full raster buffer plus a per-tile record of which regions were written.

    Attributes:
        header: Container header declaring the grid geometry.
        palette: Palette for indexed containers, None for direct color.
        pixels: uint8 array of shape (height, width, 3).
    """

    def __init__(self, header: ContainerHeader, palette: Optional[PaletteTable] = None):
        self.header = header
        self.palette = palette
        try:
            self.pixels = np.zeros((header.raster_height, header.raster_width, RASTER_CHANNELS), dtype=np.uint8)
        except MemoryError as e:
            raise IncompleteRasterError(
                f"Cannot allocate a {header.raster_width}x{header.raster_height} raster: {e}"
            ) from e
        self._written = np.zeros((header.lat_count, header.long_count), dtype=bool)

    def region(self, position: Position) -> np.ndarray:
        """View of the pixels covered by the tile at (row, col)."""
        row, col = position
        h, w = self.header.maplet_height, self.header.maplet_width
        return self.pixels[row * h:(row + 1) * h, col * w:(col + 1) * w]

    def partition(self, positions: Iterable[Position]) -> Dict[Position, np.ndarray]:
        """Hand out one disjoint region per grid position."""
        return {position: self.region(position) for position in positions}

    def place(self, block: PixelBlock, region: np.ndarray) -> None:
        """Copy a decoded block into its region, resolving palette indices."""
        if block.samples.shape[:2] != region.shape[:2]:
            raise TileDecodeError(
                f"Block of {block.width}x{block.height} does not fit a "
                f"{region.shape[1]}x{region.shape[0]} tile region",
                position=block.position
            )
        if block.color_mode is ColorMode.INDEXED:
            region[...] = self.palette.resolve(block.samples)
        else:
            region[...] = block.samples
        self._written[block.position] = True

    def finish(self) -> Raster:
        """
        Return the assembled raster.

        Raises:
            IncompleteRasterError: If any tile region was never written.
        """
        missing = np.argwhere(~self._written)
        if missing.size:
            row, col = (int(v) for v in missing[0])
            raise IncompleteRasterError(
                f"{len(missing)} tile region(s) were never written", position=(row, col)
            )
        return Raster(
            width=self.header.raster_width,
            height=self.header.raster_height,
            channels=RASTER_CHANNELS,
            pixels=self.pixels,
        )


def assemble_blocks(header: ContainerHeader, blocks: Iterable[PixelBlock],
                    palette: Optional[PaletteTable] = None) -> Raster:
    """
    Assemble already decoded blocks into a raster.

    Args:
        header: Container header declaring the grid geometry.
        blocks: One decoded block per grid cell.
        palette: Palette for indexed containers.

    Returns:
        Raster: The assembled (R * tile_height) x (C * tile_width) RGB raster.
    """
    arena = RasterArena(header, palette)
    for block in blocks:
        arena.place(block, arena.region(block.position))
    return arena.finish()


def assemble_raster(container: TpqContainer, workers: int = 4,
                    decoder: Callable[..., PixelBlock] = decode_tile) -> Raster:
    """
    Decode every tile of a parsed container and assemble the full raster.

    Tiles are decoded on a pool of at most `workers` threads. Each worker
    writes only into the region partitioned to its tile. The first tile
    failure cancels the tiles still queued and is re-raised, so a partially
    decoded raster is never returned.

    Args:
        container: A parsed and validated container.
        workers: Maximum number of decode threads (1 decodes serially).
        decoder: Tile decoding function, `decode_tile` by default.

    Returns:
        Raster: The assembled RGB raster.
    """
    header = container.header
    arena = RasterArena(header, container.palette)
    regions = arena.partition(entry.position for entry in container.entries)
    palette_size = len(container.palette) if container.palette is not None else None

    def _decode_and_place(entry: TileDirectoryEntry) -> Position:
        block = decoder(container.payload(entry), entry, header, palette_size)
        arena.place(block, regions[entry.position])
        return entry.position

    workers = max(1, min(workers, len(container.entries)))
    if workers == 1:
        for entry in container.entries:
            _decode_and_place(entry)
    else:
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix='tpq-tile') as executor:
            futures = {executor.submit(_decode_and_place, entry): entry for entry in container.entries}
            try:
                for done, future in enumerate(as_completed(futures), start=1):
                    position = future.result()
                    logger.debug(f"Tile {position} placed ({done}/{len(futures)})")
            except Exception:
                for future in futures:
                    future.cancel()
                raise

    logger.debug(f"Assembled {header.raster_width}x{header.raster_height} raster from {len(container.entries)} tiles")
    return arena.finish()
