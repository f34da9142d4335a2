"""Triangle mesh container and primitive generators."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from collections.abc import Sequence

    from numpy.typing import ArrayLike, NDArray

_UP = (0.0, 1.0, 0.0)


@dataclass(frozen=True, slots=True)
class Aabb:
    """Axis-aligned bounding box."""

    min: tuple[float, float, float]
    max: tuple[float, float, float]

    @property
    def size(self) -> tuple[float, float, float]:
        return (
            self.max[0] - self.min[0],
            self.max[1] - self.min[1],
            self.max[2] - self.min[2],
        )


def _as_points(values: ArrayLike | None, width: int) -> NDArray[np.float64]:
    if values is None:
        return np.zeros((0, width), dtype=np.float64)
    return np.asarray(values, dtype=np.float64).reshape(-1, width)


@dataclass(slots=True)
class Mesh:
    """Indexed triangle mesh.

    Attributes:
        positions: (N, 3) vertex positions.
        indices: Flat triangle index list, three per triangle.
        normals: Optional (N, 3) per-vertex normals.
        colors: Optional (N, 3) per-vertex RGB colors.

    """

    positions: NDArray[np.float64] = field(default_factory=lambda: _as_points(None, 3))
    indices: NDArray[np.uint32] = field(default_factory=lambda: np.zeros(0, dtype=np.uint32))
    normals: NDArray[np.float64] | None = None
    colors: NDArray[np.float64] | None = None

    def __post_init__(self) -> None:
        self.positions = _as_points(self.positions, 3)
        self.indices = np.asarray(self.indices, dtype=np.uint32).reshape(-1)
        if self.normals is not None:
            self.normals = _as_points(self.normals, 3)
        if self.colors is not None:
            self.colors = _as_points(self.colors, 3)

    @property
    def vertex_count(self) -> int:
        return len(self.positions)

    @property
    def triangle_count(self) -> int:
        return len(self.indices) // 3

    def copy(self) -> Mesh:
        """Return a deep copy; the arrays are not shared."""
        return Mesh(
            positions=self.positions.copy(),
            indices=self.indices.copy(),
            normals=None if self.normals is None else self.normals.copy(),
            colors=None if self.colors is None else self.colors.copy(),
        )

    def bounds(self) -> Aabb | None:
        """Bounding box of the positions, or None for an empty mesh."""
        if self.vertex_count == 0:
            return None
        lo = self.positions.min(axis=0)
        hi = self.positions.max(axis=0)
        return Aabb(
            min=(float(lo[0]), float(lo[1]), float(lo[2])),
            max=(float(hi[0]), float(hi[1]), float(hi[2])),
        )

    def compute_normals(self) -> bool:
        """Compute area-weighted smooth vertex normals in place.

        Returns False (leaving normals untouched) when the index list is not
        made of whole triangles or the mesh has no vertices. Triangles that
        reference missing vertices are skipped.
        """
        if len(self.indices) % 3 != 0 or self.vertex_count == 0:
            return False

        tris = self.indices.reshape(-1, 3).astype(np.int64)
        tris = tris[(tris < self.vertex_count).all(axis=1)]
        accum = np.zeros_like(self.positions)
        if len(tris):
            p0 = self.positions[tris[:, 0]]
            p1 = self.positions[tris[:, 1]]
            p2 = self.positions[tris[:, 2]]
            face = np.cross(p1 - p0, p2 - p0)
            for corner in range(3):
                np.add.at(accum, tris[:, corner], face)

        self.normals = _normalize_rows(accum)
        return True

    def transformed(self, matrix: ArrayLike) -> Mesh:
        """Return a copy with positions (and normals) transformed by a 4x4 matrix."""
        m = np.asarray(matrix, dtype=np.float64)
        result = self.copy()
        homogeneous = np.hstack([result.positions, np.ones((result.vertex_count, 1))])
        result.positions = (homogeneous @ m.T)[:, :3]
        if result.normals is not None:
            try:
                normal_matrix = np.linalg.inv(m[:3, :3]).T
            except np.linalg.LinAlgError:
                # Degenerate (e.g. zero scale): derive normals from the flattened geometry
                result.normals = None
                result.compute_normals()
            else:
                result.normals = _normalize_rows(result.normals @ normal_matrix.T)
        return result

    def translated(self, offset: Sequence[float]) -> Mesh:
        result = self.copy()
        result.positions = result.positions + np.asarray(offset, dtype=np.float64)
        return result

    @staticmethod
    def merge(meshes: Sequence[Mesh]) -> Mesh:
        """Concatenate meshes, offsetting indices.

        Normals and colors are kept only if every input has them.
        """
        if not meshes:
            return Mesh()

        offsets = np.cumsum([0] + [m.vertex_count for m in meshes[:-1]])
        indices = np.concatenate(
            [m.indices.astype(np.int64) + off for m, off in zip(meshes, offsets, strict=True)],
        )
        normals = None
        if all(m.normals is not None for m in meshes):
            normals = np.vstack([m.normals for m in meshes])
        colors = None
        if all(m.colors is not None for m in meshes):
            colors = np.vstack([m.colors for m in meshes])

        return Mesh(
            positions=np.vstack([m.positions for m in meshes]),
            indices=indices,
            normals=normals,
            colors=colors,
        )


def _normalize_rows(vectors: NDArray[np.float64]) -> NDArray[np.float64]:
    lengths = np.linalg.norm(vectors, axis=1, keepdims=True)
    result = np.tile(np.asarray(_UP), (len(vectors), 1))
    nonzero = lengths[:, 0] > 0.0
    result[nonzero] = vectors[nonzero] / lengths[nonzero]
    return result


def make_box(size: Sequence[float]) -> Mesh:
    """Axis-aligned box centred on the origin: 8 vertices, 12 triangles."""
    hx, hy, hz = (float(s) * 0.5 for s in size)
    positions = [
        (-hx, -hy, -hz),
        (hx, -hy, -hz),
        (hx, hy, -hz),
        (-hx, hy, -hz),
        (-hx, -hy, hz),
        (hx, -hy, hz),
        (hx, hy, hz),
        (-hx, hy, hz),
    ]
    indices = [
        0, 2, 1, 0, 3, 2,  # -Z
        4, 5, 6, 4, 6, 7,  # +Z
        0, 1, 5, 0, 5, 4,  # -Y
        2, 3, 7, 2, 7, 6,  # +Y
        1, 2, 6, 1, 6, 5,  # +X
        3, 0, 4, 3, 4, 7,  # -X
    ]  # fmt: skip
    return Mesh(positions=positions, indices=indices)


def make_grid(size: Sequence[float], divisions: Sequence[int]) -> Mesh:
    """Flat grid in the XZ plane, centred on the origin."""
    width = max(float(size[0]), 0.0)
    depth = max(float(size[1]), 0.0)
    div_x = max(int(divisions[0]), 1)
    div_z = max(int(divisions[1]), 1)

    xs = np.linspace(-width * 0.5, width * 0.5, div_x + 1)
    zs = np.linspace(-depth * 0.5, depth * 0.5, div_z + 1)
    gx, gz = np.meshgrid(xs, zs)
    positions = np.column_stack([gx.ravel(), np.zeros(gx.size), gz.ravel()])

    stride = div_x + 1
    indices: list[int] = []
    for z in range(div_z):
        for x in range(div_x):
            i0 = z * stride + x
            i1 = i0 + 1
            i2 = i0 + stride
            i3 = i2 + 1
            indices.extend((i0, i2, i1, i1, i2, i3))

    return Mesh(positions=positions, indices=indices)


def make_sphere(radius: float, rows: int, columns: int) -> Mesh:
    """UV sphere centred on the origin with exact outward normals.

    ``rows`` is the number of latitude bands (>= 2) and ``columns`` the number
    of longitude segments (>= 3). The poles are single vertices.
    """
    rows = max(int(rows), 2)
    columns = max(int(columns), 3)
    r = float(radius)

    directions: list[tuple[float, float, float]] = [(0.0, 1.0, 0.0)]
    for row in range(1, rows):
        theta = math.pi * row / rows
        y = math.cos(theta)
        ring = math.sin(theta)
        for col in range(columns):
            phi = 2.0 * math.pi * col / columns
            directions.append((ring * math.cos(phi), y, ring * math.sin(phi)))
    directions.append((0.0, -1.0, 0.0))

    bottom = len(directions) - 1

    def ring_index(row: int, col: int) -> int:
        return 1 + (row - 1) * columns + col % columns

    indices: list[int] = []
    for col in range(columns):
        indices.extend((0, ring_index(1, col + 1), ring_index(1, col)))
    for row in range(1, rows - 1):
        for col in range(columns):
            a = ring_index(row, col)
            b = ring_index(row, col + 1)
            c = ring_index(row + 1, col)
            d = ring_index(row + 1, col + 1)
            indices.extend((a, b, c, b, d, c))
    for col in range(columns):
        indices.extend((bottom, ring_index(rows - 1, col), ring_index(rows - 1, col + 1)))

    normals = np.asarray(directions, dtype=np.float64)
    return Mesh(positions=normals * r, indices=indices, normals=normals)
