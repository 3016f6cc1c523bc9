import math

import numpy as np
import pytest

from meshsmooth.surface_optimizer import SurfaceOptimizer

SQUARE_TRIANGLES = [(0, 1, 2), (0, 2, 3), (0, 3, 4), (0, 4, 1)]


def square_fan(free=(0.0, 0.0)):
    pts = [
        (free[0], free[1], 0.0),
        (1.0, 0.0, 0.0),
        (0.0, 1.0, 0.0),
        (-1.0, 0.0, 0.0),
        (0.0, -1.0, 0.0),
    ]
    return SurfaceOptimizer(pts, SQUARE_TRIANGLES)


def hexagon_fan(free):
    pts = [(free[0], free[1], 0.0)]
    for i in range(6):
        angle = math.pi / 3.0 * i
        pts.append((math.cos(angle), 0.7 * math.sin(angle), 0.0))
    tris = [(0, 1 + i, 1 + (i + 1) % 6) for i in range(6)]
    return SurfaceOptimizer(pts, tris)


def test_functional_of_centred_square_fan():
    opt = square_fan()
    assert opt.functional(0.0) == pytest.approx(16.0)


def test_no_stabilisation_for_valid_fan():
    assert square_fan().stabilisation_factor() == 0.0


def test_stabilisation_for_inverted_fan():
    assert square_fan((5.0, 5.0)).stabilisation_factor() > 0.0


def test_gradient_vanishes_at_symmetric_centre():
    grad, hess = square_fan().gradients(0.0)
    assert np.allclose(grad, 0.0, atol=1e-12)
    assert np.allclose(hess, hess.T)
    assert hess[0, 0] > 0.0 and hess[1, 1] > 0.0


def test_gradient_points_away_from_optimum():
    grad, _ = square_fan((0.2, 0.0)).gradients(0.0)
    assert grad[0] > 0.0


def test_optimize_square_fan_reaches_centre():
    opt = square_fan((0.3, 0.2))
    result = opt.optimize_point(1e-10)
    assert np.linalg.norm(result) < 1e-3
    assert result[2] == 0.0


def test_optimize_improves_functional_and_keeps_outer_points():
    opt = hexagon_fan((0.6, 0.3))
    outer_before = opt.points[1:].copy()
    before = opt.functional(opt.stabilisation_factor())
    result = opt.optimize_point(1e-8)
    after = opt.functional(opt.stabilisation_factor())
    assert after <= before
    assert np.allclose(opt.points[1:], outer_before)
    assert np.allclose(opt.points[0], result)
    assert -1.0 <= result[0] <= 1.0
    assert -0.7 <= result[1] <= 0.7


def test_optimize_repairs_inverted_fan():
    opt = square_fan((5.0, 5.0))
    opt.optimize_point(1e-8)
    assert opt.stabilisation_factor() == 0.0


def test_empty_triangles_rejected():
    with pytest.raises(ValueError):
        SurfaceOptimizer([(0.0, 0.0, 0.0)], [])


def test_bad_point_shape_rejected():
    with pytest.raises(ValueError):
        SurfaceOptimizer([(0.0, 0.0)], [(0, 0, 0)])