"""Tests for the builtin mesh node kinds."""

import numpy as np
import pytest

from grapho._eval_engine import ComputeError
from grapho._graph import NodeRole, PinType
from grapho._mesh import Aabb, Mesh, make_box
from grapho._nodes import (
    BuiltinNodeKind,
    builtin_definitions,
    builtin_kind_from_name,
    compute_mesh_node,
    default_params,
    node_definition,
    transform_matrix,
)
from grapho._params import BoolParam, FloatParam, IntParam, NodeParams, Vec2Param, Vec3Param


def unit_box() -> Mesh:
    return compute_mesh_node(BuiltinNodeKind.BOX, NodeParams(), [])


class TestDefinitions:
    def test_kind_lookup_by_name(self) -> None:
        assert builtin_kind_from_name("CopyToPoints") is BuiltinNodeKind.COPY_TO_POINTS
        assert builtin_kind_from_name("Teapot") is None

    def test_every_kind_has_a_definition(self) -> None:
        names = [d.name for d in builtin_definitions()]
        assert names == [kind.value for kind in BuiltinNodeKind]

    def test_sources_have_no_inputs(self) -> None:
        for kind in (BuiltinNodeKind.BOX, BuiltinNodeKind.GRID, BuiltinNodeKind.SPHERE):
            definition = node_definition(kind)
            assert definition.inputs == ()
            assert [p.name for p in definition.outputs] == ["out"]
            assert definition.category == "Sources"

    def test_merge_has_two_mesh_inputs(self) -> None:
        definition = node_definition(BuiltinNodeKind.MERGE)
        assert [(p.name, p.pin_type) for p in definition.inputs] == [("a", PinType.MESH), ("b", PinType.MESH)]

    def test_output_has_role_and_no_outputs(self) -> None:
        definition = node_definition(BuiltinNodeKind.OUTPUT)
        assert definition.role == NodeRole.OUTPUT
        assert definition.outputs == ()
        assert node_definition(BuiltinNodeKind.BOX).role == NodeRole.NORMAL

    def test_defaults_match_compute_defaults(self) -> None:
        for kind in (BuiltinNodeKind.BOX, BuiltinNodeKind.GRID, BuiltinNodeKind.SPHERE):
            with_defaults = compute_mesh_node(kind, default_params(kind), [])
            without = compute_mesh_node(kind, NodeParams(), [])
            np.testing.assert_array_equal(with_defaults.positions, without.positions)
            np.testing.assert_array_equal(with_defaults.indices, without.indices)


class TestSources:
    def test_box_defaults_to_unit_size(self) -> None:
        mesh = unit_box()
        assert mesh.bounds() == Aabb(min=(-0.5, -0.5, -0.5), max=(0.5, 0.5, 0.5))
        assert mesh.normals is not None

    def test_box_size_param(self) -> None:
        params = NodeParams({"size": Vec3Param(value=(2.0, 2.0, 2.0))})
        mesh = compute_mesh_node(BuiltinNodeKind.BOX, params, [])
        assert mesh.bounds() == Aabb(min=(-1.0, -1.0, -1.0), max=(1.0, 1.0, 1.0))

    def test_grid_divisions_are_truncated(self) -> None:
        params = NodeParams({"divisions": Vec2Param(value=(2.9, 1.0))})
        mesh = compute_mesh_node(BuiltinNodeKind.GRID, params, [])
        assert mesh.vertex_count == 3 * 2

    def test_sphere_accepts_int_radius(self) -> None:
        params = NodeParams({"radius": IntParam(value=2), "rows": IntParam(value=4), "columns": IntParam(value=6)})
        mesh = compute_mesh_node(BuiltinNodeKind.SPHERE, params, [])
        assert mesh.bounds().max[1] == pytest.approx(2.0)
        assert mesh.vertex_count == 2 + 3 * 6

    def test_wrong_param_type(self) -> None:
        params = NodeParams({"size": FloatParam(value=2.0)})
        with pytest.raises(ComputeError, match="Parameter 'size' expects vec3, got float"):
            compute_mesh_node(BuiltinNodeKind.BOX, params, [])

    def test_float_where_int_expected(self) -> None:
        params = NodeParams({"rows": FloatParam(value=4.0)})
        with pytest.raises(ComputeError, match="expects int"):
            compute_mesh_node(BuiltinNodeKind.SPHERE, params, [])


class TestTransform:
    def test_scale_from_unit_box(self) -> None:
        params = NodeParams({"scale": Vec3Param(value=(2.0, 2.0, 2.0))})
        mesh = compute_mesh_node(BuiltinNodeKind.TRANSFORM, params, [unit_box()])
        assert mesh.bounds() == Aabb(min=(-1.0, -1.0, -1.0), max=(1.0, 1.0, 1.0))

    def test_translate(self) -> None:
        params = NodeParams({"translate": Vec3Param(value=(1.0, 0.0, -2.0))})
        mesh = compute_mesh_node(BuiltinNodeKind.TRANSFORM, params, [unit_box()])
        bounds = mesh.bounds()
        assert bounds.min == pytest.approx((0.5, -0.5, -2.5))
        assert bounds.max == pytest.approx((1.5, 0.5, -1.5))

    def test_rotation_about_y(self) -> None:
        matrix = transform_matrix((0, 0, 0), (0, 90, 0), (1, 1, 1))
        rotated = matrix @ np.array([1.0, 0.0, 0.0, 1.0])
        np.testing.assert_allclose(rotated[:3], [0.0, 0.0, -1.0], atol=1e-12)

    def test_scale_applies_before_translate(self) -> None:
        matrix = transform_matrix((1, 0, 0), (0, 0, 0), (2, 2, 2))
        np.testing.assert_allclose(matrix @ np.array([1.0, 0.0, 0.0, 1.0]), [3.0, 0.0, 0.0, 1.0])

    def test_input_is_not_modified(self) -> None:
        source = unit_box()
        before = source.positions.copy()
        params = NodeParams({"scale": Vec3Param(value=(3.0, 3.0, 3.0))})
        compute_mesh_node(BuiltinNodeKind.TRANSFORM, params, [source])
        np.testing.assert_array_equal(source.positions, before)

    def test_requires_input(self) -> None:
        with pytest.raises(ComputeError, match="Transform requires a mesh input"):
            compute_mesh_node(BuiltinNodeKind.TRANSFORM, NodeParams(), [])


class TestMerge:
    def test_concatenates_inputs(self) -> None:
        mesh = compute_mesh_node(BuiltinNodeKind.MERGE, NodeParams(), [unit_box(), unit_box()])
        assert mesh.vertex_count == 16
        assert mesh.triangle_count == 24
        assert int(mesh.indices.max()) == 15

    def test_single_input_passes_through(self) -> None:
        mesh = compute_mesh_node(BuiltinNodeKind.MERGE, NodeParams(), [unit_box()])
        assert mesh.vertex_count == 8

    def test_no_inputs_is_an_error(self) -> None:
        with pytest.raises(ComputeError, match="Merge requires at least one mesh input"):
            compute_mesh_node(BuiltinNodeKind.MERGE, NodeParams(), [])


class TestCopyToPoints:
    def test_copies_source_to_every_point(self) -> None:
        points = Mesh(positions=[(0, 0, 0), (10, 0, 0), (0, 0, 10)])
        mesh = compute_mesh_node(BuiltinNodeKind.COPY_TO_POINTS, NodeParams(), [make_box((1, 1, 1)), points])
        assert mesh.vertex_count == 24
        assert mesh.triangle_count == 36
        assert mesh.bounds() == Aabb(min=(-0.5, -0.5, -0.5), max=(10.5, 0.5, 10.5))

    def test_empty_points_give_empty_mesh(self) -> None:
        mesh = compute_mesh_node(BuiltinNodeKind.COPY_TO_POINTS, NodeParams(), [unit_box(), Mesh()])
        assert mesh.vertex_count == 0

    def test_requires_two_inputs(self) -> None:
        with pytest.raises(ComputeError, match="CopyToPoints requires 2 mesh inputs"):
            compute_mesh_node(BuiltinNodeKind.COPY_TO_POINTS, NodeParams(), [unit_box()])


class TestColor:
    def test_assigns_uniform_vertex_color(self) -> None:
        params = NodeParams({"color": Vec3Param(value=(1.0, 0.0, 0.0))})
        mesh = compute_mesh_node(BuiltinNodeKind.COLOR, params, [unit_box()])
        np.testing.assert_array_equal(mesh.colors, np.tile([1.0, 0.0, 0.0], (8, 1)))

    def test_wrong_param_type(self) -> None:
        params = NodeParams({"color": BoolParam(value=True)})
        with pytest.raises(ComputeError, match="expects vec3, got bool"):
            compute_mesh_node(BuiltinNodeKind.COLOR, params, [unit_box()])


class TestOutput:
    def test_passes_copy_through(self) -> None:
        source = unit_box()
        mesh = compute_mesh_node(BuiltinNodeKind.OUTPUT, NodeParams(), [source])
        np.testing.assert_array_equal(mesh.positions, source.positions)
        assert mesh.positions is not source.positions

    def test_requires_input(self) -> None:
        with pytest.raises(ComputeError, match="Output requires a mesh input"):
            compute_mesh_node(BuiltinNodeKind.OUTPUT, NodeParams(), [])
