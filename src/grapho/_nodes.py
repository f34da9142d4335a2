"""Builtin mesh node kinds: definitions, default parameters and compute functions."""

from __future__ import annotations

import math
from enum import StrEnum
from typing import TYPE_CHECKING

import numpy as np

from grapho._eval_engine import ComputeError
from grapho._graph import NodeDefinition, NodeRole, PinDefinition, PinType
from grapho._mesh import Mesh, make_box, make_grid, make_sphere
from grapho._params import FloatParam, IntParam, NodeParams, Vec2Param, Vec3Param

if TYPE_CHECKING:
    from collections.abc import Sequence


class BuiltinNodeKind(StrEnum):
    """The closed set of node kinds the mesh evaluator knows how to compute."""

    BOX = "Box"
    GRID = "Grid"
    SPHERE = "Sphere"
    TRANSFORM = "Transform"
    MERGE = "Merge"
    COPY_TO_POINTS = "CopyToPoints"
    COLOR = "Color"
    OUTPUT = "Output"


_CATEGORIES = {
    BuiltinNodeKind.BOX: "Sources",
    BuiltinNodeKind.GRID: "Sources",
    BuiltinNodeKind.SPHERE: "Sources",
    BuiltinNodeKind.TRANSFORM: "Operators",
    BuiltinNodeKind.MERGE: "Operators",
    BuiltinNodeKind.COPY_TO_POINTS: "Operators",
    BuiltinNodeKind.COLOR: "Operators",
    BuiltinNodeKind.OUTPUT: "Outputs",
}

_INPUT_NAMES: dict[BuiltinNodeKind, tuple[str, ...]] = {
    BuiltinNodeKind.TRANSFORM: ("in",),
    BuiltinNodeKind.MERGE: ("a", "b"),
    BuiltinNodeKind.COPY_TO_POINTS: ("source", "points"),
    BuiltinNodeKind.COLOR: ("in",),
    BuiltinNodeKind.OUTPUT: ("in",),
}


def builtin_kind_from_name(name: str) -> BuiltinNodeKind | None:
    """Look up a builtin kind by its name, e.g. ``"Box"``."""
    try:
        return BuiltinNodeKind(name)
    except ValueError:
        return None


def node_definition(kind: BuiltinNodeKind) -> NodeDefinition:
    """Pin layout of a builtin kind. Every kind except Output has one mesh output."""
    inputs = tuple(PinDefinition(name, PinType.MESH) for name in _INPUT_NAMES.get(kind, ()))
    is_output = kind == BuiltinNodeKind.OUTPUT
    return NodeDefinition(
        name=kind.value,
        kind=kind.value,
        category=_CATEGORIES[kind],
        inputs=inputs,
        outputs=() if is_output else (PinDefinition("out", PinType.MESH),),
        role=NodeRole.OUTPUT if is_output else NodeRole.NORMAL,
    )


def builtin_definitions() -> list[NodeDefinition]:
    return [node_definition(kind) for kind in BuiltinNodeKind]


def default_params(kind: BuiltinNodeKind) -> NodeParams:
    """Parameters an editor pre-fills when creating a node of this kind.

    Compute functions apply the same defaults to missing keys, so a node
    with no stored parameters evaluates identically.
    """
    match kind:
        case BuiltinNodeKind.BOX:
            values = {"size": Vec3Param(value=(1.0, 1.0, 1.0))}
        case BuiltinNodeKind.GRID:
            values = {
                "size": Vec2Param(value=(2.0, 2.0)),
                "divisions": Vec2Param(value=(10.0, 10.0)),
            }
        case BuiltinNodeKind.SPHERE:
            values = {
                "radius": FloatParam(value=1.0),
                "rows": IntParam(value=8),
                "columns": IntParam(value=16),
            }
        case BuiltinNodeKind.TRANSFORM:
            values = {
                "translate": Vec3Param(value=(0.0, 0.0, 0.0)),
                "rotate_deg": Vec3Param(value=(0.0, 0.0, 0.0)),
                "scale": Vec3Param(value=(1.0, 1.0, 1.0)),
            }
        case BuiltinNodeKind.COLOR:
            values = {"color": Vec3Param(value=(1.0, 1.0, 1.0))}
        case BuiltinNodeKind.MERGE | BuiltinNodeKind.COPY_TO_POINTS | BuiltinNodeKind.OUTPUT:
            values = {}
    return NodeParams(values)


# ----------------------------------------------------------------------
# Parameter access
# ----------------------------------------------------------------------


def _wrong_type(key: str, expected: str, actual: str) -> ComputeError:
    return ComputeError(f"Parameter '{key}' expects {expected}, got {actual}")


def param_float(params: NodeParams, key: str, default: float) -> float:
    value = params.get(key)
    if value is None:
        return default
    if isinstance(value, FloatParam | IntParam):
        return float(value.value)
    raise _wrong_type(key, "float", value.type)


def param_int(params: NodeParams, key: str, default: int) -> int:
    value = params.get(key)
    if value is None:
        return default
    if isinstance(value, IntParam):
        return value.value
    raise _wrong_type(key, "int", value.type)


def param_vec2(params: NodeParams, key: str, default: tuple[float, float]) -> tuple[float, float]:
    value = params.get(key)
    if value is None:
        return default
    if isinstance(value, Vec2Param):
        return value.value
    raise _wrong_type(key, "vec2", value.type)


def param_vec3(
    params: NodeParams,
    key: str,
    default: tuple[float, float, float],
) -> tuple[float, float, float]:
    value = params.get(key)
    if value is None:
        return default
    if isinstance(value, Vec3Param):
        return value.value
    raise _wrong_type(key, "vec3", value.type)


def _require_inputs(kind: BuiltinNodeKind, inputs: Sequence[Mesh], count: int) -> None:
    if len(inputs) < count:
        noun = "a mesh input" if count == 1 else f"{count} mesh inputs"
        msg = f"{kind.value} requires {noun}"
        raise ComputeError(msg)


def transform_matrix(
    translate: Sequence[float],
    rotate_deg: Sequence[float],
    scale: Sequence[float],
) -> np.ndarray:
    """Compose translate * rotate(X, then Y, then Z intrinsic) * scale as a 4x4 matrix."""
    rx, ry, rz = (math.radians(a) for a in rotate_deg)
    cx, sx = math.cos(rx), math.sin(rx)
    cy, sy = math.cos(ry), math.sin(ry)
    cz, sz = math.cos(rz), math.sin(rz)
    rot_x = np.array([[1, 0, 0], [0, cx, -sx], [0, sx, cx]])
    rot_y = np.array([[cy, 0, sy], [0, 1, 0], [-sy, 0, cy]])
    rot_z = np.array([[cz, -sz, 0], [sz, cz, 0], [0, 0, 1]])

    matrix = np.eye(4)
    matrix[:3, :3] = rot_x @ rot_y @ rot_z @ np.diag(np.asarray(scale, dtype=np.float64))
    matrix[:3, 3] = np.asarray(translate, dtype=np.float64)
    return matrix


# ----------------------------------------------------------------------
# Compute
# ----------------------------------------------------------------------


def compute_mesh_node(kind: BuiltinNodeKind, params: NodeParams, inputs: Sequence[Mesh]) -> Mesh:
    """Compute the mesh produced by a builtin node.

    This is a pure function: inputs are never modified, and identical
    arguments give identical results.

    Args:
        kind: The node kind.
        params: The node's stored parameters; missing keys use the kind defaults.
        inputs: Upstream meshes in input-pin order (unconnected inputs are absent).

    Returns:
        The resulting mesh.

    Raises:
        ComputeError: On missing inputs or parameters of the wrong type.

    """
    match kind:
        case BuiltinNodeKind.BOX:
            mesh = make_box(param_vec3(params, "size", (1.0, 1.0, 1.0)))
            mesh.compute_normals()
            return mesh

        case BuiltinNodeKind.GRID:
            size = param_vec2(params, "size", (2.0, 2.0))
            div = param_vec2(params, "divisions", (10.0, 10.0))
            mesh = make_grid(size, (max(int(div[0]), 1), max(int(div[1]), 1)))
            mesh.compute_normals()
            return mesh

        case BuiltinNodeKind.SPHERE:
            radius = param_float(params, "radius", 1.0)
            rows = param_int(params, "rows", 8)
            columns = param_int(params, "columns", 16)
            return make_sphere(radius, rows, columns)

        case BuiltinNodeKind.TRANSFORM:
            _require_inputs(kind, inputs, 1)
            matrix = transform_matrix(
                param_vec3(params, "translate", (0.0, 0.0, 0.0)),
                param_vec3(params, "rotate_deg", (0.0, 0.0, 0.0)),
                param_vec3(params, "scale", (1.0, 1.0, 1.0)),
            )
            return inputs[0].transformed(matrix)

        case BuiltinNodeKind.MERGE:
            if not inputs:
                msg = "Merge requires at least one mesh input"
                raise ComputeError(msg)
            return Mesh.merge(inputs)

        case BuiltinNodeKind.COPY_TO_POINTS:
            _require_inputs(kind, inputs, 2)
            source, points = inputs[0], inputs[1]
            if points.vertex_count == 0:
                return Mesh()
            return Mesh.merge([source.translated(p) for p in points.positions])

        case BuiltinNodeKind.COLOR:
            _require_inputs(kind, inputs, 1)
            color = param_vec3(params, "color", (1.0, 1.0, 1.0))
            mesh = inputs[0].copy()
            mesh.colors = np.tile(np.asarray(color, dtype=np.float64), (mesh.vertex_count, 1))
            return mesh

        case BuiltinNodeKind.OUTPUT:
            _require_inputs(kind, inputs, 1)
            return inputs[0].copy()
