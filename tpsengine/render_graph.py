"""Render pass dependency graph: ordering, hazard checks and barrier synthesis."""

from __future__ import annotations

from collections import defaultdict, deque
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from itertools import combinations
from typing import Iterable, Optional, Sequence


class ResourceAccess(Enum):
    READ = 0
    WRITE = 1
    READ_WRITE = 2

    @property
    def is_write(self) -> bool:
        return self is not ResourceAccess.READ


class ResourceState(IntEnum):
    UNDEFINED = 0
    RENDER_TARGET = 1
    DEPTH_STENCIL_TARGET = 2
    DEPTH_STENCIL_READ = 3
    SHADER_RESOURCE = 4
    UNORDERED_ACCESS = 5
    TRANSFER_SRC = 6
    TRANSFER_DST = 7
    PRESENT = 8


@dataclass(frozen=True)
class ResourceUsage:
    name: Optional[str] = ""
    access: ResourceAccess = ResourceAccess.READ
    required_state: ResourceState = ResourceState.UNDEFINED
    persistent: bool = False


@dataclass(frozen=True)
class PassNode:
    name: Optional[str] = ""
    enabled: bool = True
    dependencies: Sequence[Optional[str]] = ()
    resources: Sequence[ResourceUsage] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "dependencies", tuple(self.dependencies))
        object.__setattr__(self, "resources", tuple(self.resources))


@dataclass(frozen=True)
class Barrier:
    resource_name: str
    state_before: ResourceState
    state_after: ResourceState


@dataclass
class CompiledPass:
    name: str
    original_index: int
    pre_pass_barriers: list[Barrier] = field(default_factory=list)


class RenderGraphError(ValueError):
    """Raised when a set of pass nodes cannot form a valid graph."""


class RenderGraph:
    """Builds an execution order for render passes and the barriers between them.

    Resource states of persistent usages carry over from one build to the next.
    """

    def __init__(self) -> None:
        self.nodes: list[PassNode] = []
        self.execution_order: list[int] = []
        self.compiled_passes: list[CompiledPass] = []
        self.last_error: str = ""
        self._adjacency: list[list[int]] = []
        self._persistent_states: dict[str, ResourceState] = {}

    def build(self, nodes: Iterable[PassNode]) -> list[CompiledPass]:
        """Compile ``nodes``; raise :class:`RenderGraphError` if they are invalid."""
        self.nodes = list(nodes)
        self._adjacency = []
        self.execution_order = []
        self.compiled_passes = []
        self.last_error = ""

        if not self.nodes:
            return self.compiled_passes

        try:
            self._validate_dependencies()
            self._compute_execution_order()
            self._validate_resource_hazards()
        except RenderGraphError as exc:
            self.last_error = str(exc)
            raise

        self._synthesize_barriers()
        return self.compiled_passes

    def _validate_dependencies(self) -> None:
        name_to_index: dict[str, int] = {}
        self._adjacency = [[] for _ in self.nodes]

        for index, node in enumerate(self.nodes):
            name = node.name or ""
            if not name:
                raise RenderGraphError("RenderGraph node has empty name.")
            if name in name_to_index:
                raise RenderGraphError(f"RenderGraph duplicate pass name: {name}")
            name_to_index[name] = index

        for pass_index, node in enumerate(self.nodes):
            for dependency in node.dependencies:
                dependency_name = dependency or ""
                if not dependency_name:
                    raise RenderGraphError("RenderGraph dependency name cannot be empty.")
                source = name_to_index.get(dependency_name)
                if source is None:
                    raise RenderGraphError(
                        f"RenderGraph missing dependency '{dependency_name}' "
                        f"for pass '{node.name or ''}'."
                    )
                self._adjacency[source].append(pass_index)

    def _compute_execution_order(self) -> None:
        indegree = [0] * len(self.nodes)
        for edges in self._adjacency:
            for target in edges:
                indegree[target] += 1

        ready = deque(index for index, degree in enumerate(indegree) if degree == 0)
        order: list[int] = []
        while ready:
            node = ready.popleft()
            order.append(node)
            for nxt in self._adjacency[node]:
                indegree[nxt] -= 1
                if indegree[nxt] == 0:
                    ready.append(nxt)

        self.execution_order = order
        if len(order) != len(self.nodes):
            raise RenderGraphError("RenderGraph dependency cycle detected.")

    def _validate_resource_hazards(self) -> None:
        for pass_i, pass_j in combinations(self.execution_order, 2):
            node_i, node_j = self.nodes[pass_i], self.nodes[pass_j]
            if not node_i.enabled or not node_j.enabled:
                continue
            for res_i in node_i.resources:
                name = res_i.name or ""
                if not name:
                    continue
                for res_j in node_j.resources:
                    if (res_j.name or "") != name:
                        continue
                    if not res_i.access.is_write and not res_j.access.is_write:
                        continue
                    if self._has_dependency_path(pass_i, pass_j):
                        continue
                    raise RenderGraphError(
                        f"RenderGraph resource hazard: '{node_i.name or ''}' and "
                        f"'{node_j.name or ''}' both access '{name}' without an "
                        "explicit dependency path."
                    )

    def _synthesize_barriers(self) -> None:
        current = dict(self._persistent_states)
        compiled_passes: list[CompiledPass] = []

        for pass_index in self.execution_order:
            node = self.nodes[pass_index]
            if not node.enabled:
                continue
            compiled = CompiledPass(node.name or "UnnamedPass", pass_index)
            for usage in node.resources:
                name = usage.name or ""
                if not name or usage.required_state == ResourceState.UNDEFINED:
                    continue
                before = current.get(name, ResourceState.UNDEFINED)
                if before == usage.required_state:
                    continue
                compiled.pre_pass_barriers.append(
                    Barrier(name, before, usage.required_state)
                )
                current[name] = usage.required_state
                if usage.persistent:
                    self._persistent_states[name] = usage.required_state
            compiled_passes.append(compiled)

        self.compiled_passes = compiled_passes

    def _has_dependency_path(self, start: int, end: int) -> bool:
        if start == end:
            return True
        visited = {start}
        queue = deque([start])
        while queue:
            for nxt in self._adjacency[queue.popleft()]:
                if nxt in visited:
                    continue
                if nxt == end:
                    return True
                visited.add(nxt)
                queue.append(nxt)
        return False

    def to_graphviz(self) -> str:
        """Return a DOT description of passes, dependencies and resource flow."""
        lines = [
            "digraph RenderGraph {",
            "  rankdir=LR;",
            '  node [shape=box, fontname="Courier"];',
        ]
        for index, node in enumerate(self.nodes):
            color = "black" if node.enabled else "gray"
            label = node.name if node.name is not None else "unnamed"
            lines.append(
                f'  pass{index} [label="{label}", color={color}, fontcolor={color}];'
            )

        for index, edges in enumerate(self._adjacency):
            lines.extend(f"  pass{index} -> pass{target};" for target in edges)

        readers: dict[str, list[int]] = defaultdict(list)
        writers: dict[str, list[int]] = defaultdict(list)
        for index, node in enumerate(self.nodes):
            for usage in node.resources:
                if usage.name:
                    target = writers if usage.access.is_write else readers
                    target[usage.name].append(index)

        for name, writer_indices in writers.items():
            lines.append(
                f'  res_{name} [label="{name}", shape=ellipse, color=blue, fontcolor=blue];'
            )
            lines.extend(
                f"  pass{writer} -> res_{name} [color=blue];" for writer in writer_indices
            )
            lines.extend(
                f"  res_{name} -> pass{reader} [color=green];"
                for reader in readers.get(name, ())
            )

        lines.append("}")
        return "\n".join(lines) + "\n"