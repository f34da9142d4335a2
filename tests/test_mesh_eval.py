"""Tests for mesh graph evaluation and scene snapshots."""

import numpy as np
import pytest

from grapho._eval_engine import NodeError, UpstreamError
from grapho._graph import Graph, NodeDefinition, PinDefinition, PinKind, PinType
from grapho._mesh import Aabb, Mesh
from grapho._mesh_eval import MeshEvalState, evaluate_mesh_graph
from grapho._nodes import BuiltinNodeKind, default_params, node_definition
from grapho._scene import DEFAULT_BASE_COLOR, SceneMesh, SceneSnapshot


def add(graph: Graph, kind: BuiltinNodeKind):
    node_id = graph.add_node(node_definition(kind))
    for key, value in default_params(kind).items():
        graph.set_param(node_id, key, value)
    return node_id


def link(graph: Graph, src, dst, to: str = "in") -> None:
    graph.add_link(
        graph.find_pin(src, "out", PinKind.OUTPUT).id,
        graph.find_pin(dst, to, PinKind.INPUT).id,
    )


@pytest.fixture
def box_transform_output() -> tuple[Graph, list]:
    graph = Graph()
    box = add(graph, BuiltinNodeKind.BOX)
    transform = add(graph, BuiltinNodeKind.TRANSFORM)
    output = add(graph, BuiltinNodeKind.OUTPUT)
    graph.set_param(box, "size", (1.0, 1.0, 1.0))
    graph.set_param(transform, "scale", (2.0, 2.0, 2.0))
    link(graph, box, transform)
    link(graph, transform, output)
    return graph, [box, transform, output]


class TestEvaluateMeshGraph:
    def test_box_transform_output(self, box_transform_output) -> None:
        graph, (box, transform, output) = box_transform_output
        state = MeshEvalState()

        result = evaluate_mesh_graph(graph, output, state)

        assert result.report.output_valid
        assert result.report.computed == (box, transform, output)
        assert result.output is not None
        assert result.output.bounds() == Aabb(min=(-1.0, -1.0, -1.0), max=(1.0, 1.0, 1.0))

    def test_scale_change_recomputes_transform_and_output(self, box_transform_output) -> None:
        graph, (box, transform, output) = box_transform_output
        state = MeshEvalState()
        evaluate_mesh_graph(graph, output, state)

        graph.set_param(transform, "scale", (3.0, 3.0, 3.0))
        result = evaluate_mesh_graph(graph, output, state)

        assert result.report.computed == (transform, output)
        assert result.report.nodes[box].cache_hit
        assert result.output.bounds() == Aabb(min=(-1.5, -1.5, -1.5), max=(1.5, 1.5, 1.5))

    def test_unchanged_graph_computes_nothing(self, box_transform_output) -> None:
        graph, (_, _, output) = box_transform_output
        state = MeshEvalState()
        evaluate_mesh_graph(graph, output, state)

        result = evaluate_mesh_graph(graph, output, state)

        assert result.report.computed == ()
        assert result.report.cache.hits == 3
        assert result.output is not None

    def test_output_is_decoupled_from_cache(self, box_transform_output) -> None:
        graph, (_, _, output) = box_transform_output
        state = MeshEvalState()
        result = evaluate_mesh_graph(graph, output, state)

        result.output.positions[:] = 0.0

        assert state.cache.result(output).bounds().max == (1.0, 1.0, 1.0)

    def test_merge_without_inputs_reports_node_error(self) -> None:
        graph = Graph()
        merge = add(graph, BuiltinNodeKind.MERGE)
        output = add(graph, BuiltinNodeKind.OUTPUT)
        link(graph, merge, output)

        result = evaluate_mesh_graph(graph, output, MeshEvalState())

        assert result.output is None
        assert result.report.errors == (
            NodeError(merge, "Merge requires at least one mesh input"),
            UpstreamError(output, (merge,)),
        )

    def test_merge_of_two_boxes(self) -> None:
        graph = Graph()
        left = add(graph, BuiltinNodeKind.BOX)
        right = add(graph, BuiltinNodeKind.SPHERE)
        merge = add(graph, BuiltinNodeKind.MERGE)
        link(graph, left, merge, "a")
        link(graph, right, merge, "b")

        result = evaluate_mesh_graph(graph, merge, MeshEvalState())

        sphere_vertices = 2 + 7 * 16
        assert result.output.vertex_count == 8 + sphere_vertices

    def test_same_box_on_both_merge_inputs_counts_once(self) -> None:
        graph = Graph()
        box = add(graph, BuiltinNodeKind.BOX)
        merge = add(graph, BuiltinNodeKind.MERGE)
        link(graph, box, merge, "a")
        link(graph, box, merge, "b")

        result = evaluate_mesh_graph(graph, merge, MeshEvalState())

        assert result.output.vertex_count == 8

    def test_unknown_kind_is_a_node_error(self) -> None:
        graph = Graph()
        teapot = graph.add_node(NodeDefinition(name="Teapot", outputs=(PinDefinition("out", PinType.MESH),)))

        result = evaluate_mesh_graph(graph, teapot, MeshEvalState())

        assert result.report.errors == (NodeError(teapot, "unknown node type Teapot"),)

    def test_wrong_param_type_is_a_node_error(self, box_transform_output) -> None:
        graph, (box, _, output) = box_transform_output
        graph.set_param(box, "size", 2.0)

        result = evaluate_mesh_graph(graph, output, MeshEvalState())

        assert not result.report.output_valid
        assert result.report.error_for(box).message == "Parameter 'size' expects vec3, got float"

    def test_copy_to_points_on_grid(self) -> None:
        graph = Graph()
        box = add(graph, BuiltinNodeKind.BOX)
        grid = add(graph, BuiltinNodeKind.GRID)
        graph.set_param(grid, "divisions", (1.0, 1.0))
        copy = add(graph, BuiltinNodeKind.COPY_TO_POINTS)
        link(graph, box, copy, "source")
        link(graph, grid, copy, "points")

        result = evaluate_mesh_graph(graph, copy, MeshEvalState())

        assert result.output.vertex_count == 4 * 8
        assert result.output.bounds() == Aabb(min=(-1.5, -0.5, -1.5), max=(1.5, 0.5, 1.5))


class TestSceneSnapshot:
    def test_uses_base_color_without_vertex_colors(self) -> None:
        mesh = Mesh(positions=[(0, 0, 0), (1, 0, 0), (0, 1, 0)], indices=[0, 1, 2])
        snapshot = SceneSnapshot.from_mesh(mesh)

        assert snapshot.base_color == DEFAULT_BASE_COLOR
        assert snapshot.mesh.positions.dtype == np.float32
        np.testing.assert_allclose(snapshot.mesh.normals, np.tile([0.0, 0.0, 1.0], (3, 1)))
        assert mesh.normals is None

    def test_vertex_colors_replace_base_tint(self) -> None:
        mesh = Mesh(positions=[(0, 0, 0)], colors=[(1, 0, 0)])
        snapshot = SceneSnapshot.from_mesh(mesh, base_color=(0.1, 0.2, 0.3))
        assert snapshot.base_color == (1.0, 1.0, 1.0)
        assert snapshot.mesh.colors is not None

    def test_snapshot_does_not_share_arrays(self) -> None:
        mesh = Mesh(positions=[(0, 0, 0), (1, 0, 0), (0, 1, 0)], indices=[0, 1, 2])
        scene = SceneMesh.from_mesh(mesh)
        mesh.positions[0, 0] = 5.0
        assert scene.positions[0, 0] == 0.0

    def test_fallback_normals_for_partial_triangles(self) -> None:
        mesh = Mesh(positions=[(0, 0, 0), (1, 0, 0)], indices=[0, 1])
        scene = SceneMesh.from_mesh(mesh)
        np.testing.assert_allclose(scene.normals, [[0.0, 1.0, 0.0], [0.0, 1.0, 0.0]])
