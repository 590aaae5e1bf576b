"""Reader for block-compressed OGT texture files with a full mip chain."""

from __future__ import annotations

import os
import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import BinaryIO

_MAGIC = b"OGT1"
_HEADER = struct.Struct("<4s4I")
_BLOCK_DIM = 4


class TextureFormat(IntEnum):
    """Block compression formats an OGT file may hold."""

    BC4 = 4
    BC5 = 5
    BC7 = 7

    @property
    def bytes_per_block(self) -> int:
        return 8 if self is TextureFormat.BC4 else 16


class TextureError(ValueError):
    """Raised when texture data is malformed or truncated."""


def _is_power_of_two(value: int) -> bool:
    return value > 0 and value & (value - 1) == 0


def _mip_extent(width: int, height: int, level: int) -> tuple[int, int]:
    return max(1, width >> level), max(1, height >> level)


def mip_layout(
    width: int, height: int, mip_count: int, texture_format: TextureFormat
) -> list[tuple[int, int]]:
    """Return ``(offset, size)`` in bytes of each mip level, packed back to back."""
    bytes_per_block = TextureFormat(texture_format).bytes_per_block
    layout = []
    offset = 0
    for level in range(mip_count):
        mip_w, mip_h = _mip_extent(width, height, level)
        blocks_x = (mip_w + _BLOCK_DIM - 1) // _BLOCK_DIM
        blocks_y = (mip_h + _BLOCK_DIM - 1) // _BLOCK_DIM
        size = blocks_x * blocks_y * bytes_per_block
        layout.append((offset, size))
        offset += size
    return layout


@dataclass(frozen=True)
class TextureData:
    """A decoded OGT texture: header fields plus the compressed mip chain."""

    width: int
    height: int
    mip_count: int
    format: TextureFormat
    data: bytes
    mip_offsets: tuple[int, ...]

    @property
    def byte_size(self) -> int:
        return len(self.data)

    def mip_extent(self, level: int) -> tuple[int, int]:
        if not 0 <= level < self.mip_count:
            raise IndexError(f"mip level {level} out of range")
        return _mip_extent(self.width, self.height, level)

    def mip_data(self, level: int) -> bytes:
        if not 0 <= level < self.mip_count:
            raise IndexError(f"mip level {level} out of range")
        start = self.mip_offsets[level]
        end = self.mip_offsets[level + 1] if level + 1 < self.mip_count else len(self.data)
        return self.data[start:end]


def read_texture(stream: BinaryIO) -> TextureData:
    """Parse an OGT texture from a binary stream."""
    header = stream.read(_HEADER.size)
    if len(header) != _HEADER.size:
        raise TextureError("texture header is truncated")
    magic, width, height, mip_count, format_code = _HEADER.unpack(header)

    if (
        magic != _MAGIC
        or not _is_power_of_two(width)
        or not _is_power_of_two(height)
        or mip_count < 1
    ):
        raise TextureError("invalid OGT texture header")

    try:
        texture_format = TextureFormat(format_code)
    except ValueError:
        raise TextureError(f"unsupported texture format {format_code}") from None

    layout = mip_layout(width, height, mip_count, texture_format)
    total = sum(size for _, size in layout)
    data = stream.read(total)
    if len(data) != total:
        raise TextureError("texture data is truncated")

    return TextureData(
        width=width,
        height=height,
        mip_count=mip_count,
        format=texture_format,
        data=bytes(data),
        mip_offsets=tuple(offset for offset, _ in layout),
    )


def load_texture(path: str | os.PathLike[str]) -> TextureData:
    """Read an OGT texture file from disk."""
    with open(path, "rb") as handle:
        return read_texture(handle)