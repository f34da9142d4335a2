"""Renderer-facing snapshot of an evaluated mesh."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from grapho._mesh import Mesh

DEFAULT_BASE_COLOR = (0.7, 0.72, 0.75)


@dataclass(frozen=True, slots=True)
class SceneMesh:
    positions: NDArray[np.float32]
    normals: NDArray[np.float32]
    indices: NDArray[np.uint32]
    colors: NDArray[np.float32] | None = None

    @classmethod
    def from_mesh(cls, mesh: Mesh) -> SceneMesh:
        """Copy a mesh into render-ready arrays, computing normals if missing."""
        normals = mesh.normals
        if normals is None:
            temp = mesh.copy()
            if temp.compute_normals():
                normals = temp.normals
            else:
                normals = np.tile(np.array([0.0, 1.0, 0.0]), (mesh.vertex_count, 1))

        return cls(
            positions=np.array(mesh.positions, dtype=np.float32),
            normals=np.array(normals, dtype=np.float32),
            indices=np.array(mesh.indices, dtype=np.uint32),
            colors=None if mesh.colors is None else np.array(mesh.colors, dtype=np.float32),
        )


@dataclass(frozen=True, slots=True)
class SceneSnapshot:
    """Everything a renderer needs for one frame, decoupled from the evaluation cache."""

    mesh: SceneMesh
    base_color: tuple[float, float, float]

    @classmethod
    def from_mesh(
        cls,
        mesh: Mesh,
        base_color: tuple[float, float, float] = DEFAULT_BASE_COLOR,
    ) -> SceneSnapshot:
        # Per-vertex colors replace the base tint
        if mesh.colors is not None:
            base_color = (1.0, 1.0, 1.0)
        return cls(mesh=SceneMesh.from_mesh(mesh), base_color=base_color)
