# tpsengine

Building blocks for a small third-person shooter, plus a playable top-down demo.

## What is inside

- `tpsengine.vecmath` holds `Vec3`, `Mat4`, dot and cross products, `lerp`, `look_at` and `perspective`.
- `tpsengine.profiler` has a `Profiler` that records named timing sections. It can be used through `start`/`stop` or the `section` context manager, and `report` prints and clears the averages.
- `tpsengine.render_graph` holds a `RenderGraph`. It orders `PassNode`s by their dependencies, rejects cycles and resource hazards by raising `RenderGraphError`, synthesizes state-transition `Barrier`s for each `CompiledPass`, and exports Graphviz through `to_graphviz`.
- `tpsengine.camera` has a smoothed `ThirdPersonCamera` with an aim mode and arm collision against `AABB` boxes.
- `tpsengine.input` has an `InputManager`. It reads keys from a raw terminal, or follows a deterministic scripted pattern when no terminal is attached.
- `tpsengine.mesh` loads glTF triangle meshes with `load_mesh_gltf`, removes duplicate vertices and computes tangents.
- `tpsengine.texture` reads `OGT1` block-compressed textures (BC4, BC5 and BC7) with `read_texture` and `load_texture`.
- `tpsengine.assets` has an `AssetManager` that caches loaded meshes and textures by path and tracks memory in `AssetStats`.
- `tpsengine.demo_sim` holds the playable demo's world simulation (`DemoWorld`) and its sound synthesizer (`SoundSynth`). Neither needs a window.

## Install

```
pip install .
```

## Playing the demo

```
tps-demo
```

| Action | Controls |
|--------|----------|
| Move | WASD |
| Shoot | Mouse button or SPACE |
| Restart after game over | R |
| Quit | ESC |

Set `TPS_RANDOM_SEED` to change where enemies spawn.

## Using the render graph

```python
from tpsengine.render_graph import (
    RenderGraph, PassNode, ResourceUsage, ResourceAccess, ResourceState,
)

graph = RenderGraph()
graph.build([
    PassNode("depth", resources=[
        ResourceUsage("depth", ResourceAccess.WRITE, ResourceState.DEPTH_STENCIL_TARGET),
    ]),
    PassNode("lighting", dependencies=["depth"], resources=[
        ResourceUsage("depth", ResourceAccess.READ, ResourceState.DEPTH_STENCIL_READ),
    ]),
])
print(graph.to_graphviz())
```

## Tests

```
pip install .[test]
pytest
```