"""Laplacian smoothing of mesh vertices."""

from __future__ import annotations

import enum
from collections.abc import Callable, Iterable, Sequence

import numpy as np

VSMALL = 1.0e-300

GeometryUpdate = Callable[[np.ndarray, set], "tuple[Sequence, Sequence] | None"]


class VertexLocation(enum.IntFlag):
    """Classification flags of a mesh vertex."""

    NONE = 0
    INSIDE = 1
    BOUNDARY = 2
    PARALLELBOUNDARY = 4
    LOCKED = 8


class LaplaceSmoother:
    """Moves vertices towards the average of their neighbourhood.

    ``update_geometry`` is called with the current points and the set of
    faces whose geometry changed. It may return new ``(cell_centres,
    cell_volumes)``, which then replace the stored ones; ``None`` keeps them.
    Vertices flagged ``PARALLELBOUNDARY`` are shared with other partitions
    and are left where they are.
    """

    def __init__(
        self,
        points: Sequence[Sequence[float]],
        point_points: Sequence[Sequence[int]],
        point_cells: Sequence[Sequence[int]],
        cells: Sequence[Sequence[int]],
        vertex_location: Sequence[int],
        cell_centres: Sequence[Sequence[float]] | None = None,
        cell_volumes: Sequence[float] | None = None,
        update_geometry: GeometryUpdate | None = None,
    ):
        self.points = np.array(points, dtype=float).reshape(-1, 3)
        self.point_points = [list(row) for row in point_points]
        self.point_cells = [list(row) for row in point_cells]
        self.cells = [list(c) for c in cells]
        self.vertex_location = [VertexLocation(v) for v in vertex_location]
        if len(self.vertex_location) != len(self.points):
            raise ValueError("vertex_location must have one entry per point")
        self.cell_centres = (
            np.zeros((len(self.cells), 3))
            if cell_centres is None
            else np.array(cell_centres, dtype=float).reshape(-1, 3)
        )
        self.cell_volumes = (
            np.zeros(len(self.cells))
            if cell_volumes is None
            else np.array(cell_volumes, dtype=float)
        )
        self.update_geometry = update_geometry

    def _is(self, point: int, flag: VertexLocation) -> bool:
        return bool(self.vertex_location[point] & flag)

    def _movable(self, point: int) -> bool:
        return not (
            self._is(point, VertexLocation.LOCKED)
            or self._is(point, VertexLocation.PARALLELBOUNDARY)
        )

    def _inside_points(self) -> list[int]:
        return [
            p for p, loc in enumerate(self.vertex_location) if loc & VertexLocation.INSIDE
        ]

    def laplacian(self, smooth_points: Iterable[int], n_iterations: int) -> None:
        """Move each point to the average of its neighbouring points.

        Stops at once, without updating the geometry, when a point to be
        smoothed has no neighbours.
        """
        smooth_points = list(smooth_points)
        for _ in range(n_iterations):
            for p in smooth_points:
                if not self._movable(p):
                    continue
                neighbours = self.point_points[p]
                if not neighbours:
                    return
                self.points[p] = self.points[neighbours].sum(axis=0) / len(neighbours)
        self._update_mesh_geometry(smooth_points)

    def laplacian_surface(self, smooth_points: Iterable[int], n_iterations: int) -> None:
        """Move each point to the average of its neighbours that are not inside."""
        smooth_points = list(smooth_points)
        for _ in range(n_iterations):
            for p in smooth_points:
                if not self._movable(p):
                    continue
                outer = [
                    q for q in self.point_points[p] if not self._is(q, VertexLocation.INSIDE)
                ]
                if outer:
                    self.points[p] = self.points[outer].sum(axis=0) / len(outer)
        self._update_mesh_geometry(smooth_points)

    def laplacian_pc(self, smooth_points: Iterable[int], n_iterations: int) -> None:
        """Move each point to the average of the centres of its cells."""
        smooth_points = list(smooth_points)
        for _ in range(n_iterations):
            for p in smooth_points:
                if self._is(p, VertexLocation.LOCKED):
                    continue
                p_cells = self.point_cells[p]
                if not p_cells or self._is(p, VertexLocation.PARALLELBOUNDARY):
                    continue
                self.points[p] = self.cell_centres[p_cells].sum(axis=0) / len(p_cells)
            self._update_mesh_geometry(smooth_points)

    def laplacian_wpc(self, smooth_points: Iterable[int], n_iterations: int) -> None:
        """Move each point to the volume-weighted average of its cell centres."""
        smooth_points = list(smooth_points)
        for _ in range(n_iterations):
            for p in smooth_points:
                if self._is(p, VertexLocation.LOCKED):
                    continue
                p_cells = self.point_cells[p]
                if not p_cells or self._is(p, VertexLocation.PARALLELBOUNDARY):
                    continue
                weights = np.maximum(self.cell_volumes[p_cells], VSMALL)
                weighted = (weights[:, None] * self.cell_centres[p_cells]).sum(axis=0)
                self.points[p] = weighted / weights.sum()
            self._update_mesh_geometry(smooth_points)

    def changed_faces(self, smooth_points: Iterable[int]) -> set[int]:
        """Return the faces of all cells attached to the unlocked smoothed points."""
        changed: set[int] = set()
        for p in smooth_points:
            if self._is(p, VertexLocation.LOCKED):
                continue
            for c in self.point_cells[p]:
                changed.update(self.cells[c])
        return changed

    def _update_mesh_geometry(self, smooth_points: Iterable[int]) -> None:
        if self.update_geometry is None:
            return
        result = self.update_geometry(self.points, self.changed_faces(smooth_points))
        if result is not None:
            centres, volumes = result
            self.cell_centres = np.array(centres, dtype=float).reshape(-1, 3)
            self.cell_volumes = np.array(volumes, dtype=float)

    def optimize_laplacian(self, n_iterations: int) -> None:
        """Smooth all inside points using their neighbouring points."""
        self.laplacian(self._inside_points(), n_iterations)

    def optimize_laplacian_pc(self, n_iterations: int) -> None:
        """Smooth all inside points using the centres of their cells."""
        self.laplacian_pc(self._inside_points(), n_iterations)

    def optimize_laplacian_wpc(self, n_iterations: int) -> None:
        """Smooth all inside points using volume-weighted cell centres."""
        self.laplacian_wpc(self._inside_points(), n_iterations)