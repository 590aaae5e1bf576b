import pytest

from tpsengine.render_graph import (
    Barrier,
    PassNode,
    RenderGraph,
    RenderGraphError,
    ResourceAccess,
    ResourceState,
    ResourceUsage,
)

W = ResourceAccess.WRITE
R = ResourceAccess.READ
RW = ResourceAccess.READ_WRITE


def frame_nodes(persistent=False):
    return [
        PassNode(
            "lighting",
            dependencies=["depth"],
            resources=[
                ResourceUsage("depthBuffer", R, ResourceState.DEPTH_STENCIL_READ),
                ResourceUsage("hdr", W, ResourceState.RENDER_TARGET, persistent),
            ],
        ),
        PassNode(
            "depth",
            resources=[ResourceUsage("depthBuffer", W, ResourceState.DEPTH_STENCIL_TARGET)],
        ),
        PassNode(
            "post",
            dependencies=["lighting"],
            resources=[ResourceUsage("hdr", R, ResourceState.SHADER_RESOURCE, persistent)],
        ),
    ]


def test_execution_order_respects_dependencies():
    graph = RenderGraph()
    compiled = graph.build(frame_nodes())
    assert graph.execution_order == [1, 0, 2]
    assert [p.name for p in compiled] == ["depth", "lighting", "post"]
    assert [p.original_index for p in compiled] == [1, 0, 2]
    assert graph.last_error == ""


def test_independent_passes_keep_input_order():
    graph = RenderGraph()
    graph.build([PassNode("a"), PassNode("b"), PassNode("c")])
    assert graph.execution_order == [0, 1, 2]


def test_empty_build_succeeds():
    graph = RenderGraph()
    assert graph.build([]) == []
    assert graph.execution_order == []


def test_barriers_track_state_transitions():
    graph = RenderGraph()
    compiled = graph.build(frame_nodes())
    depth, lighting, post = compiled
    assert depth.pre_pass_barriers == [
        Barrier("depthBuffer", ResourceState.UNDEFINED, ResourceState.DEPTH_STENCIL_TARGET)
    ]
    assert lighting.pre_pass_barriers == [
        Barrier("depthBuffer", ResourceState.DEPTH_STENCIL_TARGET, ResourceState.DEPTH_STENCIL_READ),
        Barrier("hdr", ResourceState.UNDEFINED, ResourceState.RENDER_TARGET),
    ]
    assert post.pre_pass_barriers == [
        Barrier("hdr", ResourceState.RENDER_TARGET, ResourceState.SHADER_RESOURCE)
    ]


def test_no_barrier_when_state_unchanged():
    graph = RenderGraph()
    compiled = graph.build([
        PassNode("a", resources=[ResourceUsage("tex", R, ResourceState.SHADER_RESOURCE)]),
        PassNode("b", resources=[ResourceUsage("tex", R, ResourceState.SHADER_RESOURCE)]),
    ])
    assert len(compiled[0].pre_pass_barriers) == 1
    assert compiled[1].pre_pass_barriers == []


def test_undefined_required_state_emits_no_barrier():
    graph = RenderGraph()
    compiled = graph.build([PassNode("a", resources=[ResourceUsage("tex", W)])])
    assert compiled[0].pre_pass_barriers == []


def test_persistent_state_carries_across_builds():
    graph = RenderGraph()
    graph.build(frame_nodes(persistent=True))
    compiled = graph.build(frame_nodes(persistent=True))
    lighting = compiled[1]
    hdr = [b for b in lighting.pre_pass_barriers if b.resource_name == "hdr"]
    assert hdr == [Barrier("hdr", ResourceState.SHADER_RESOURCE, ResourceState.RENDER_TARGET)]


def test_non_persistent_state_resets_between_builds():
    graph = RenderGraph()
    first = graph.build(frame_nodes())
    second = graph.build(frame_nodes())
    assert first == second


def test_disabled_pass_is_skipped():
    nodes = frame_nodes()
    nodes[2] = PassNode("post", enabled=False, dependencies=["lighting"])
    graph = RenderGraph()
    compiled = graph.build(nodes)
    assert [p.name for p in compiled] == ["depth", "lighting"]
    assert graph.execution_order == [1, 0, 2]


def test_empty_name_rejected():
    graph = RenderGraph()
    with pytest.raises(RenderGraphError, match="RenderGraph node has empty name."):
        graph.build([PassNode("")])
    assert graph.last_error == "RenderGraph node has empty name."


def test_duplicate_name_rejected():
    with pytest.raises(RenderGraphError, match="RenderGraph duplicate pass name: a"):
        RenderGraph().build([PassNode("a"), PassNode("a")])


def test_empty_dependency_rejected():
    with pytest.raises(RenderGraphError, match="dependency name cannot be empty"):
        RenderGraph().build([PassNode("a", dependencies=[""])])


def test_missing_dependency_message():
    graph = RenderGraph()
    with pytest.raises(RenderGraphError) as info:
        graph.build([PassNode("a", dependencies=["ghost"])])
    assert str(info.value) == "RenderGraph missing dependency 'ghost' for pass 'a'."


def test_cycle_detected():
    with pytest.raises(RenderGraphError, match="RenderGraph dependency cycle detected."):
        RenderGraph().build([
            PassNode("a", dependencies=["b"]),
            PassNode("b", dependencies=["a"]),
        ])


def test_write_hazard_without_path():
    graph = RenderGraph()
    with pytest.raises(RenderGraphError, match="resource hazard") as info:
        graph.build([
            PassNode("a", resources=[ResourceUsage("shadow", W)]),
            PassNode("b", resources=[ResourceUsage("shadow", R)]),
        ])
    assert "'a' and 'b' both access 'shadow'" in str(info.value)
    assert graph.compiled_passes == []


def test_shared_reads_are_not_hazards():
    compiled = RenderGraph().build([
        PassNode("a", resources=[ResourceUsage("tex", R)]),
        PassNode("b", resources=[ResourceUsage("tex", R)]),
    ])
    assert len(compiled) == 2


def test_transitive_dependency_resolves_hazard():
    compiled = RenderGraph().build([
        PassNode("a", resources=[ResourceUsage("buf", RW)]),
        PassNode("mid", dependencies=["a"]),
        PassNode("c", dependencies=["mid"], resources=[ResourceUsage("buf", W)]),
    ])
    assert [p.name for p in compiled] == ["a", "mid", "c"]


def test_hazard_with_disabled_pass_is_ignored():
    compiled = RenderGraph().build([
        PassNode("a", resources=[ResourceUsage("buf", W)]),
        PassNode("b", enabled=False, resources=[ResourceUsage("buf", W)]),
    ])
    assert [p.name for p in compiled] == ["a"]


def test_graphviz_output():
    graph = RenderGraph()
    graph.build(frame_nodes())
    dot = graph.to_graphviz()
    lines = dot.splitlines()
    assert lines[0] == "digraph RenderGraph {"
    assert lines[-1] == "}"
    assert '  node [shape=box, fontname="Courier"];' in lines
    assert '  pass1 [label="depth", color=black, fontcolor=black];' in lines
    assert "  pass1 -> pass0;" in lines
    assert "  pass0 -> pass2;" in lines
    assert "  pass1 -> res_depthBuffer [color=blue];" in lines
    assert "  res_depthBuffer -> pass0 [color=green];" in lines
    assert "  res_hdr -> pass2 [color=green];" in lines


def test_graphviz_marks_disabled_pass_gray():
    graph = RenderGraph()
    graph.build([PassNode("off", enabled=False)])
    assert '  pass0 [label="off", color=gray, fontcolor=gray];' in graph.to_graphviz()