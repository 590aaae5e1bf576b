"""Mesh vertex types, tangent generation and glTF triangle mesh loading."""

from __future__ import annotations

import json
import logging
import os
import struct
from dataclasses import dataclass, field
from typing import Any, NamedTuple, Optional, Sequence

from tpsengine.vecmath import Vec3, cross, dot, normalized_or_zero

_log = logging.getLogger(__name__)

_MODE_TRIANGLES = 4
_COMPONENT_UNSIGNED_SHORT = 5123
_COMPONENT_UNSIGNED_INT = 5125


@dataclass(frozen=True)
class Vec2:
    x: float = 0.0
    y: float = 0.0


@dataclass(frozen=True)
class Vec4:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    w: float = 0.0


@dataclass(frozen=True, eq=False)
class Vertex:
    """A mesh vertex; equality ignores the tangent."""

    position: Vec3 = field(default_factory=Vec3)
    normal: Vec3 = field(default_factory=Vec3)
    texcoord: Vec2 = field(default_factory=Vec2)
    tangent: Vec4 = field(default_factory=Vec4)

    def _identity(self) -> tuple[Vec3, Vec3, Vec2]:
        return (self.position, self.normal, self.texcoord)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vertex):
            return NotImplemented
        return self._identity() == other._identity()

    def __hash__(self) -> int:
        return hash(self._identity())


@dataclass
class MeshData:
    vertices: list[Vertex] = field(default_factory=list)
    indices: list[int] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.vertices or not self.indices


def compute_tangents(vertices: Sequence[Vertex], indices: Sequence[int]) -> list[Vertex]:
    """Return ``vertices`` with per-vertex tangents and handedness derived from UVs."""
    tan1 = [Vec3() for _ in vertices]
    tan2 = [Vec3() for _ in vertices]

    for i1, i2, i3 in zip(*[iter(indices)] * 3):
        v1, v2, v3 = vertices[i1].position, vertices[i2].position, vertices[i3].position
        w1, w2, w3 = vertices[i1].texcoord, vertices[i2].texcoord, vertices[i3].texcoord

        x1, x2 = v2.x - v1.x, v3.x - v1.x
        y1, y2 = v2.y - v1.y, v3.y - v1.y
        z1, z2 = v2.z - v1.z, v3.z - v1.z
        s1, s2 = w2.x - w1.x, w3.x - w1.x
        t1, t2 = w2.y - w1.y, w3.y - w1.y

        det = s1 * t2 - s2 * t1
        r = 1.0 / det if det != 0.0 else 1.0
        if r != r or r in (float("inf"), float("-inf")):
            r = 1.0

        sdir = Vec3((t2 * x1 - t1 * x2) * r, (t2 * y1 - t1 * y2) * r, (t2 * z1 - t1 * z2) * r)
        tdir = Vec3((s1 * x2 - s2 * x1) * r, (s1 * y2 - s2 * y1) * r, (s1 * z2 - s2 * z1) * r)

        for index in (i1, i2, i3):
            tan1[index] = tan1[index] + sdir
            tan2[index] = tan2[index] + tdir

    result = []
    for vertex, t, bitangent in zip(vertices, tan1, tan2):
        n = vertex.normal
        tangent = normalized_or_zero(t - n * dot(n, t))
        handedness = -1.0 if dot(cross(n, t), bitangent) < 0.0 else 1.0
        result.append(
            Vertex(
                vertex.position,
                vertex.normal,
                vertex.texcoord,
                Vec4(tangent.x, tangent.y, tangent.z, handedness),
            )
        )
    return result


class _Accessor(NamedTuple):
    offset: int
    count: int
    stride: int
    component_type: int


def _accessor(gltf: dict[str, Any], index: int) -> Optional[_Accessor]:
    if index < 0:
        return None
    accessor = gltf["accessors"][index]
    view_index = accessor.get("bufferView", -1)
    if view_index < 0:
        return None
    view = gltf["bufferViews"][view_index]
    return _Accessor(
        view.get("byteOffset", 0) + accessor.get("byteOffset", 0),
        accessor.get("count", 0),
        view.get("byteStride", 0),
        accessor.get("componentType", 0),
    )


def _read_floats(data: bytes, accessor: _Accessor, stride: int, i: int, count: int) -> tuple:
    return struct.unpack_from(f"<{count}f", data, accessor.offset + i * stride)


def _read_index(data: bytes, accessor: _Accessor, i: int) -> int:
    if accessor.component_type == _COMPONENT_UNSIGNED_SHORT:
        return struct.unpack_from("<H", data, accessor.offset + i * 2)[0]
    if accessor.component_type == _COMPONENT_UNSIGNED_INT:
        return struct.unpack_from("<I", data, accessor.offset + i * 4)[0]
    return 0


def _load_gltf(path: str) -> MeshData:
    with open(path, encoding="utf-8") as handle:
        gltf = json.load(handle)

    buffers = gltf.get("buffers")
    if not buffers:
        return MeshData()
    uri = buffers[0].get("uri", "")
    if not uri:
        return MeshData()

    slash = max(path.rfind("/"), path.rfind("\\"))
    directory = path[: slash + 1] if slash >= 0 else ""
    with open(directory + uri, "rb") as handle:
        data = handle.read()

    out = MeshData()
    unique: dict[Vertex, int] = {}
    meshes = gltf.get("meshes")
    if meshes is None:
        return out

    for mesh in meshes:
        primitives = mesh.get("primitives")
        if primitives is None:
            continue
        for prim in primitives:
            if prim.get("mode", _MODE_TRIANGLES) != _MODE_TRIANGLES:
                _log.warning("Skipping glTF primitive with mode != 4 (TRIANGLES)")
                continue

            attributes = prim["attributes"]
            indices_index = prim.get("indices", -1)
            pos_index = attributes.get("POSITION", -1)
            norm_index = attributes.get("NORMAL", -1)
            uv_index = attributes.get("TEXCOORD_0", -1)
            tan_index = attributes.get("TANGENT", -1)
            if min(pos_index, norm_index, uv_index, indices_index) < 0:
                continue

            pos = _accessor(gltf, pos_index)
            norm = pos and _accessor(gltf, norm_index)
            uv = norm and _accessor(gltf, uv_index)
            ind = uv and _accessor(gltf, indices_index)
            if ind is None:
                continue
            tan = _accessor(gltf, tan_index)

            vertex_count = (tan or uv).count
            pos_stride = pos.stride or 12
            norm_stride = norm.stride or 12
            uv_stride = uv.stride or 8
            tan_stride = (tan.stride or 16) if tan else 0

            temp_vertices = []
            for i in range(vertex_count):
                tangent = Vec4(*_read_floats(data, tan, tan_stride, i, 4)) if tan else Vec4()
                temp_vertices.append(
                    Vertex(
                        Vec3(*_read_floats(data, pos, pos_stride, i, 3)),
                        Vec3(*_read_floats(data, norm, norm_stride, i, 3)),
                        Vec2(*_read_floats(data, uv, uv_stride, i, 2)),
                        tangent,
                    )
                )

            temp_indices = [_read_index(data, ind, i) for i in range(ind.count)]

            if tan is None:
                temp_vertices = compute_tangents(temp_vertices, temp_indices)

            for index in temp_indices:
                if index >= len(temp_vertices):
                    continue
                vertex = temp_vertices[index]
                if vertex not in unique:
                    unique[vertex] = len(out.vertices)
                    out.vertices.append(vertex)
                out.indices.append(unique[vertex])

    return out


def load_mesh_gltf(path: str | os.PathLike[str]) -> MeshData:
    """Load all triangle primitives of a glTF file into one deduplicated mesh.

    A file that cannot be read or parsed yields an empty :class:`MeshData`.
    """
    try:
        return _load_gltf(os.fspath(path))
    except (OSError, ValueError, KeyError, IndexError, TypeError, AttributeError, struct.error):
        return MeshData()