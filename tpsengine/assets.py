"""Path-keyed cache of loaded textures and meshes with memory statistics."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

from tpsengine.mesh import MeshData, load_mesh_gltf
from tpsengine.texture import TextureData, load_texture

# Size of one packed vertex (position, normal, texcoord, tangent) and one index.
VERTEX_SIZE_BYTES = 48
INDEX_SIZE_BYTES = 4


@dataclass
class AssetStats:
    texture_vram_bytes: int = 0
    mesh_vram_bytes: int = 0
    staging_peak_bytes: int = 0


class AssetManager:
    """Loads assets once per path and hands out integer handles for them."""

    def __init__(self) -> None:
        self.stats = AssetStats()
        self._textures: list[Any] = []
        self._texture_cache: dict[str, int] = {}
        self._meshes: list[Any] = []
        self._mesh_cache: dict[str, int] = {}

    def load_texture(self, path: str | os.PathLike[str]) -> int:
        """Return the handle of the texture at ``path``, loading it on first use."""
        key = os.fspath(path)
        cached = self._texture_cache.get(key)
        if cached is not None:
            return cached

        texture: TextureData = load_texture(key)
        self.stats.texture_vram_bytes += texture.byte_size
        self.stats.staging_peak_bytes = max(self.stats.staging_peak_bytes, texture.byte_size)
        return self.register_texture(key, texture)

    def load_mesh(self, path: str | os.PathLike[str]) -> int:
        """Return the handle of the mesh at ``path``, loading it on first use.

        Only ``.gltf`` files are understood; anything that yields no triangles
        raises :class:`ValueError`.
        """
        key = os.fspath(path)
        cached = self._mesh_cache.get(key)
        if cached is not None:
            return cached

        mesh = load_mesh_gltf(key) if key.endswith(".gltf") else MeshData()
        if mesh.is_empty:
            raise ValueError(f"no mesh data could be loaded from {key!r}")

        total = len(mesh.vertices) * VERTEX_SIZE_BYTES + len(mesh.indices) * INDEX_SIZE_BYTES
        self.stats.mesh_vram_bytes += total
        self.stats.staging_peak_bytes = max(self.stats.staging_peak_bytes, total)
        return self.register_mesh(key, mesh)

    def register_texture(self, path: str | os.PathLike[str], resource: Any) -> int:
        handle = len(self._textures)
        self._textures.append(resource)
        self._texture_cache[os.fspath(path)] = handle
        return handle

    def register_mesh(self, path: str | os.PathLike[str], resource: Any) -> int:
        handle = len(self._meshes)
        self._meshes.append(resource)
        self._mesh_cache[os.fspath(path)] = handle
        return handle

    def texture(self, handle: int) -> Any:
        if not 0 <= handle < len(self._textures):
            raise KeyError(handle)
        return self._textures[handle]

    def mesh(self, handle: int) -> Any:
        if not 0 <= handle < len(self._meshes):
            raise KeyError(handle)
        return self._meshes[handle]

    def shutdown(self) -> None:
        """Release every loaded asset and forget all handles."""
        self._meshes.clear()
        self._mesh_cache.clear()
        self._textures.clear()
        self._texture_cache.clear()