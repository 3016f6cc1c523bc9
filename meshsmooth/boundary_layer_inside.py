"""Hair vectors of boundary layers inside the mesh and their smoothing."""

from __future__ import annotations

from collections.abc import Mapping, Sequence

import numpy as np

from meshsmooth.boundary_layer import HairEdgeType

VSMALL = 1.0e-300


def _normalised(vec: np.ndarray) -> np.ndarray:
    return vec / (np.linalg.norm(vec) + VSMALL)


def inside_hair_vectors(
    hair_edges: Sequence[Sequence[int]],
    hair_edge_types: Sequence[int],
    points: Sequence[Sequence[float]],
    bp: Sequence[int],
    patch_normals: Mapping[int, Mapping[int, Sequence[float]]],
) -> np.ndarray:
    """Return unit hair vectors for all hair edges.

    A hair edge flagged ``INSIDE`` points against the sum of the patch
    normals at its boundary point; ``patch_normals`` maps a boundary point
    label to a mapping from patch label to normal. Every other hair edge
    keeps its own direction.
    """
    points = np.asarray(points, dtype=float).reshape(-1, 3)
    hair_vecs = np.zeros((len(hair_edges), 3))

    for he, (edge, etype) in enumerate(zip(hair_edges, hair_edge_types)):
        start, end = edge[0], edge[1]
        if etype & HairEdgeType.INSIDE:
            normals = patch_normals.get(bp[start], {})
            if not normals:
                raise ValueError(f"No valid patches for boundary point {bp[start]}")
            hv = -np.sum([np.asarray(n, dtype=float) for n in normals.values()], axis=0)
            hair_vecs[he] = _normalised(hv)
        else:
            hair_vecs[he] = _normalised(points[end] - points[start])

    return hair_vecs


def smooth_inside_hair_vectors(
    hair_vectors: Sequence[Sequence[float]],
    hair_edges: Sequence[Sequence[int]],
    hair_edge_types: Sequence[int],
    near_hair_edges: Sequence[Sequence[int]],
    points: Sequence[Sequence[float]],
    n_iterations: int,
) -> np.ndarray:
    """Smooth the vectors of inside hair edges to reduce twisting of faces.

    Hairs at corners and hairs not flagged ``INSIDE`` keep their vectors.
    A hair at a feature edge takes the sum of its own vector projected into
    the planes spanned by each neighbouring hair and the line joining their
    bases. Other inside hairs take the sum of their neighbours' vectors.
    """
    points = np.asarray(points, dtype=float).reshape(-1, 3)
    hair_vecs = np.array(hair_vectors, dtype=float).reshape(-1, 3)
    if len(hair_vecs) != len(hair_edges):
        raise ValueError("Sizes do not match")

    for _ in range(n_iterations):
        new_normals = np.zeros_like(hair_vecs)

        for he, (edge, etype) in enumerate(zip(hair_edges, hair_edge_types)):
            he_vec = hair_vecs[he]

            if not (etype & HairEdgeType.INSIDE):
                new_normals[he] = he_vec
            elif etype & HairEdgeType.ATCORNER:
                new_normals[he] = he_vec
            elif etype & HairEdgeType.ATEDGE:
                for hej in near_hair_edges[he]:
                    other = hair_edges[hej]
                    n = _normalised(
                        np.cross(hair_vecs[hej], points[other[0]] - points[edge[0]])
                    )
                    new_normals[he] += _normalised(he_vec - (he_vec @ n) * n)
            else:
                for hej in near_hair_edges[he]:
                    new_normals[he] += hair_vecs[hej]

        for he, etype in enumerate(hair_edge_types):
            if etype & HairEdgeType.INSIDE:
                new_normals[he] = _normalised(new_normals[he])

        hair_vecs = new_normals

    return hair_vecs