"""Procedural modeling engine with incremental node graph evaluation."""

__all__ = [
    "Aabb",
    "BoolParam",
    "BuiltinNodeKind",
    "ComputeError",
    "CycleDetectedError",
    "DuplicateIdError",
    "EvalCache",
    "EvalCacheStats",
    "EvalNodeReport",
    "EvalReport",
    "FloatParam",
    "Graph",
    "GraphError",
    "InputAlreadyConnectedError",
    "IntParam",
    "Link",
    "LinkId",
    "Mesh",
    "MeshEvalResult",
    "MeshEvalState",
    "Node",
    "NodeDefinition",
    "NodeError",
    "NodeId",
    "NodeParams",
    "NodeRole",
    "OutputNodeError",
    "Pin",
    "PinDefinition",
    "PinId",
    "PinKind",
    "PinType",
    "ProjectLoadError",
    "SceneMesh",
    "SceneSnapshot",
    "StringParam",
    "TypeMismatchError",
    "UnknownNodeError",
    "UnknownPinError",
    "UpstreamError",
    "Vec2Param",
    "Vec3Param",
    "WouldCreateCycleError",
    "WrongPinKindError",
    "builtin_definitions",
    "builtin_kind_from_name",
    "collect_error_state",
    "compute_mesh_node",
    "default_params",
    "evaluate",
    "evaluate_mesh_graph",
    "find_output_node",
    "load_project",
    "make_box",
    "make_grid",
    "make_sphere",
    "node_definition",
    "param_value",
    "save_project",
]

from ._eval_engine import (
    ComputeError,
    EvalCache,
    EvalCacheStats,
    EvalNodeReport,
    EvalReport,
    NodeError,
    UpstreamError,
    collect_error_state,
    evaluate,
)
from ._graph import (
    CycleDetectedError,
    DuplicateIdError,
    Graph,
    GraphError,
    InputAlreadyConnectedError,
    Link,
    LinkId,
    Node,
    NodeDefinition,
    NodeId,
    NodeRole,
    OutputNodeError,
    Pin,
    PinDefinition,
    PinId,
    PinKind,
    PinType,
    TypeMismatchError,
    UnknownNodeError,
    UnknownPinError,
    WouldCreateCycleError,
    WrongPinKindError,
    find_output_node,
)
from ._mesh import Aabb, Mesh, make_box, make_grid, make_sphere
from ._mesh_eval import MeshEvalResult, MeshEvalState, evaluate_mesh_graph
from ._nodes import (
    BuiltinNodeKind,
    builtin_definitions,
    builtin_kind_from_name,
    compute_mesh_node,
    default_params,
    node_definition,
)
from ._params import (
    BoolParam,
    FloatParam,
    IntParam,
    NodeParams,
    StringParam,
    Vec2Param,
    Vec3Param,
    param_value,
)
from ._project import ProjectLoadError, load_project, save_project
from ._scene import SceneMesh, SceneSnapshot
