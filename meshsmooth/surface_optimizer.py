"""Optimisation of a single free vertex of a planar triangle fan."""

from __future__ import annotations

from collections.abc import Iterator, Sequence

import numpy as np

VSMALL = 1.0e-300
ROOTVSMALL = 1.0e-150
SMALL = 1.0e-15
VGREAT = 1.0e300

MAX_ITERATIONS = 100

_DIRECTIONS = ((-1.0, -1.0), (1.0, -1.0), (-1.0, 1.0), (1.0, 1.0))


class SurfaceOptimizer:
    """Moves the vertex shared by all triangles to improve their quality.

    The points lie in the x-y plane. The free vertex is the first vertex of
    the first triangle; every triangle is expected to start with it.
    """

    def __init__(self, points: Sequence[Sequence[float]], triangles: Sequence[Sequence[int]]):
        self.points = np.array(points, dtype=float)
        if self.points.ndim != 2 or self.points.shape[1] != 3:
            raise ValueError("points must be a sequence of 3D coordinates")
        self.triangles = [tuple(int(i) for i in tri) for tri in triangles]
        if not self.triangles:
            raise ValueError("at least one triangle is required")
        if any(len(tri) != 3 for tri in self.triangles):
            raise ValueError("every triangle must have exactly three vertices")

        outer = np.array(
            [self.points[tri[i]] for tri in self.triangles for i in (1, 2)]
        )
        self._p_min = outer.min(axis=0)
        self._p_max = outer.max(axis=0)
        self._free = self.triangles[0][0]

    def _triangle_terms(self) -> Iterator[tuple[np.ndarray, np.ndarray, np.ndarray, float, float]]:
        for i0, i1, i2 in self.triangles:
            p0, p1, p2 = self.points[i0], self.points[i1], self.points[i2]
            area = 0.5 * (
                (p1[0] - p0[0]) * (p2[1] - p0[1]) - (p2[0] - p0[0]) * (p1[1] - p0[1])
            )
            lsq = float(np.dot(p0 - p1, p0 - p1) + np.dot(p2 - p0, p2 - p0))
            yield p0, p1, p2, area, lsq

    def stabilisation_factor(self) -> float:
        """Return the stabilisation factor, positive when a triangle is degenerate."""
        a_min = VGREAT
        lsq_max = 0.0
        for _, _, _, area, lsq in self._triangle_terms():
            a_min = min(a_min, area)
            lsq_max = max(lsq_max, lsq)
        if a_min < SMALL * lsq_max:
            return SMALL * lsq_max
        return 0.0

    def functional(self, k: float) -> float:
        """Return the quality functional for stabilisation factor ``k``."""
        total = 0.0
        with np.errstate(all="ignore"):
            for _, _, _, area, lsq in self._triangle_terms():
                stab = np.sqrt(np.float64(area) ** 2 + k)
                a_stab = max(VSMALL, 0.5 * (area + stab))
                total += lsq / a_stab
        return float(total)

    def gradients(self, k: float) -> tuple[np.ndarray, np.ndarray]:
        """Return the gradient and the Hessian of the functional at the free vertex."""
        grad = np.zeros(3)
        hess = np.zeros((3, 3))
        hess_lt = np.diag([4.0, 4.0, 0.0])

        with np.errstate(all="ignore"):
            for p0, p1, p2, area, lsq in self._triangle_terms():
                if np.dot(p1 - p2, p1 - p2) < VSMALL:
                    continue

                area = np.float64(area)
                stab = np.sqrt(area * area + k)
                a_stab = max(ROOTVSMALL, 0.5 * (area + stab))

                grad_area = np.array(
                    [0.5 * (p1[1] - p2[1]), 0.5 * (p2[0] - p1[0]), 0.0]
                )
                area_outer = np.outer(grad_area, grad_area)
                grad_a_stab = 0.5 * (grad_area + area * grad_area / stab)
                hess_a_stab = 0.5 * (
                    area_outer / stab - area * area * area_outer / stab**3
                )
                grad_lt = 4.0 * p0 - 2.0 * p1 - 2.0 * p2

                sq = a_stab * a_stab
                grad += grad_lt / a_stab - lsq * grad_a_stab / sq

                mixed = np.outer(grad_lt, grad_a_stab)
                hess += (
                    hess_lt / a_stab
                    - (mixed + mixed.T) / sq
                    - hess_a_stab * lsq / sq
                    + 2.0 * lsq * np.outer(grad_a_stab, grad_a_stab) / (sq * a_stab)
                )

        if abs(hess[0, 0]) < VSMALL:
            hess[0, 0] = VSMALL
        if abs(hess[1, 1]) < VSMALL:
            hess[1, 1] = VSMALL
        return grad, hess

    def _divide_and_conquer(self, tol: float) -> float:
        free = self._free
        centre = 0.5 * (self._p_max + self._p_min)
        self.points[free] = centre
        dx = (self._p_max[0] - self._p_min[0]) / 2.0
        dy = (self._p_max[1] - self._p_min[1]) / 2.0

        func_after = self.functional(self.stabilisation_factor())

        for _ in range(MAX_ITERATIONS):
            func_before = func_after
            func_after = VGREAT
            best = np.zeros(3)

            for sx, sy in _DIRECTIONS:
                self.points[free, 0] = centre[0] + 0.5 * sx * dx
                self.points[free, 1] = centre[1] + 0.5 * sy * dy
                func = self.functional(self.stabilisation_factor())
                if func < func_after:
                    best = self.points[free].copy()
                    func_after = func

            centre = best
            self.points[free] = best
            dx *= 0.5
            dy *= 0.5

            if abs(func_after - func_before) / func_after < tol:
                break

        return func_after

    def _steepest_descent(self, tol: float) -> float:
        free = self._free
        avg_edge = float(np.linalg.norm(self._p_max - self._p_min))

        k = self.stabilisation_factor()
        func_after = self.functional(k)

        for _ in range(MAX_ITERATIONS):
            func_before = func_after
            grad, hess = self.gradients(k)

            det = hess[0, 0] * hess[1, 1] - hess[0, 1] * hess[1, 0]
            if abs(det) < VSMALL:
                disp = np.zeros(3)
            else:
                disp = np.array(
                    [
                        (grad[0] * hess[1, 1] - hess[0, 1] * grad[1]) / det,
                        (hess[0, 0] * grad[1] - hess[1, 0] * grad[0]) / det,
                        0.0,
                    ]
                )
                length = np.linalg.norm(disp)
                if length > 0.2 * avg_edge:
                    disp = disp / length * 0.2 * avg_edge

            self.points[free] -= disp

            k = self.stabilisation_factor()
            func_after = self.functional(k)

            if abs(func_after - func_before) / func_before < tol:
                break

        return func_after

    def optimize_point(self, tol: float) -> np.ndarray:
        """Optimise the free vertex and return its new position."""
        free = self._free
        with np.errstate(all="ignore"):
            scale = np.linalg.norm(self._p_max - self._p_min)
            self.points /= scale
            self._p_min = self._p_min / scale
            self._p_max = self._p_max / scale

            func_divide = self._divide_and_conquer(tol)
            divided = self.points[free].copy()

            func_steepest = self._steepest_descent(tol)
            if func_steepest > func_divide:
                self.points[free] = divided

            self.points *= scale
            self._p_min = self._p_min * scale
            self._p_max = self._p_max * scale

        return self.points[free].copy()