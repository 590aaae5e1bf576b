import io
import struct

import pytest

from tpsengine.texture import (
    TextureData,
    TextureError,
    TextureFormat,
    load_texture,
    mip_layout,
    read_texture,
)


def _header(width, height, mips, fmt, magic=b"OGT1"):
    return magic + struct.pack("<4I", width, height, mips, fmt)


def _texture_bytes(width, height, mips, fmt):
    layout = mip_layout(width, height, mips, TextureFormat(fmt))
    total = sum(size for _, size in layout)
    payload = bytes(i % 251 for i in range(total))
    return _header(width, height, mips, fmt) + payload, payload


@pytest.mark.parametrize(
    ("fmt", "block_bytes"),
    [(TextureFormat.BC4, 8), (TextureFormat.BC5, 16), (TextureFormat.BC7, 16)],
)
def test_block_size_fixed_by_format(fmt, block_bytes):
    assert mip_layout(4, 4, 1, fmt) == [(0, block_bytes)]
    assert mip_layout(8, 8, 1, fmt) == [(0, 4 * block_bytes)]


def test_single_block_mip():
    assert mip_layout(4, 4, 1, TextureFormat.BC7) == [(0, 16)]


@pytest.mark.parametrize("fmt", list(TextureFormat))
def test_mip_layout_is_contiguous_and_shrinks(fmt):
    layout = mip_layout(64, 32, 7, fmt)
    assert len(layout) == 7
    assert layout[0][0] == 0
    for (offset, size), (next_offset, next_size) in zip(layout, layout[1:]):
        assert next_offset == offset + size
        assert next_size <= size
    assert layout[-1][1] == fmt.bytes_per_block


def test_round_trip_preserves_payload():
    raw, payload = _texture_bytes(16, 8, 3, 5)
    texture = read_texture(io.BytesIO(raw))
    assert isinstance(texture, TextureData)
    assert (texture.width, texture.height, texture.mip_count) == (16, 8, 3)
    assert texture.format is TextureFormat.BC5
    assert texture.data == payload
    assert b"".join(texture.mip_data(level) for level in range(3)) == payload
    assert texture.mip_extent(2) == (4, 2)


def test_mip_extent_out_of_range():
    raw, _ = _texture_bytes(8, 8, 1, 4)
    texture = read_texture(io.BytesIO(raw))
    with pytest.raises(IndexError):
        texture.mip_data(1)


@pytest.mark.parametrize(
    "raw",
    [
        _header(8, 8, 1, 7, magic=b"XGT1"),
        _header(0, 8, 1, 7),
        _header(12, 8, 1, 7),
        _header(8, 6, 1, 7),
        _header(8, 8, 0, 7),
        _header(8, 8, 1, 3),
        b"OGT1\x00",
    ],
)
def test_invalid_headers_raise(raw):
    with pytest.raises(TextureError):
        read_texture(io.BytesIO(raw + bytes(1024)))


def test_truncated_payload_raises():
    raw, _ = _texture_bytes(8, 8, 2, 7)
    with pytest.raises(TextureError):
        read_texture(io.BytesIO(raw[:-1]))


def test_load_texture_from_file(tmp_path):
    raw, payload = _texture_bytes(32, 32, 4, 4)
    path = tmp_path / "tex.ogt"
    path.write_bytes(raw)
    texture = load_texture(path)
    assert texture.data == payload
    assert texture.byte_size == len(payload)


def test_load_texture_missing_file(tmp_path):
    with pytest.raises(OSError):
        load_texture(tmp_path / "missing.ogt")