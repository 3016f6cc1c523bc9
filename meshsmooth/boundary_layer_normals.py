"""Hair vectors of boundary layers at the surface and their smoothing."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from meshsmooth.boundary_layer import HairEdgeType, face_edges

VSMALL = 1.0e-300


def _same_edge(a: Sequence[int], b: Sequence[int]) -> bool:
    return (a[0] == b[0] and a[1] == b[1]) or (a[0] == b[1] and a[1] == b[0])


def _area_normal(face: Sequence[int], points: np.ndarray) -> np.ndarray:
    """Return the area vector of a face, using a fan around its centre."""
    pts = points[list(face)]
    if len(pts) == 3:
        return 0.5 * np.cross(pts[1] - pts[0], pts[2] - pts[0])
    centre = pts.mean(axis=0)
    total = np.zeros(3)
    for this, nxt in zip(pts, np.roll(pts, -1, axis=0)):
        total += np.cross(nxt - this, centre - this)
    return 0.5 * total


def _normalised(vec: np.ndarray) -> np.ndarray:
    return vec / (np.linalg.norm(vec) + VSMALL)


def point_patch_normals(
    hair_edges: Sequence[Sequence[int]],
    hair_edge_types: Sequence[int],
    edge_type: int,
    bp: Sequence[int],
    point_faces: Sequence[Sequence[int]],
    face_patches: Sequence[int],
    face_normals: Sequence[Sequence[float]],
) -> dict[int, dict[int, np.ndarray]]:
    """Return area-weighted normals per patch at the base of matching hair edges.

    The result maps a boundary point label to a mapping from patch label to
    the sum of the face area vectors of that patch divided by the sum of
    their magnitudes.
    """
    normals = np.asarray(face_normals, dtype=float).reshape(-1, 3)
    sums: dict[int, dict[int, list]] = {}

    for edge, etype in zip(hair_edges, hair_edge_types):
        if not (etype & edge_type):
            continue
        bpi = bp[edge[0]]
        patch_sums = sums.setdefault(bpi, {})
        for face in point_faces[bpi]:
            patch = face_patches[face]
            entry = patch_sums.setdefault(patch, [np.zeros(3), 0.0])
            entry[0] = entry[0] + normals[face]
            entry[1] += float(np.linalg.norm(normals[face]))

    with np.errstate(all="ignore"):
        return {
            bpi: {patch: vec / mag for patch, (vec, mag) in patch_sums.items()}
            for bpi, patch_sums in sums.items()
        }


def boundary_hair_vectors(
    hair_edges: Sequence[Sequence[int]],
    hair_edge_types: Sequence[int],
    points: Sequence[Sequence[float]],
    bp: Sequence[int],
    point_edges: Sequence[Sequence[int]],
    edges: Sequence[Sequence[int]],
    edge_faces: Sequence[Sequence[int]],
    boundary_faces: Sequence[Sequence[int]],
) -> np.ndarray:
    """Return unit hair vectors for hair edges lying on the boundary.

    Hairs on feature edges keep their direction. Hairs at feature edges or
    corners get the sum of the in-plane directions perpendicular to the
    adjacent face edges. Other hair edges get a zero vector.
    """
    points = np.asarray(points, dtype=float).reshape(-1, 3)
    hair_vecs = np.zeros((len(hair_edges), 3))

    for he, (edge, etype) in enumerate(zip(hair_edges, hair_edge_types)):
        if not (etype & HairEdgeType.BOUNDARY):
            continue
        start, end = edge[0], edge[1]

        if etype & HairEdgeType.FEATUREEDGE:
            hair_vecs[he] = points[end] - points[start]
        elif etype & (HairEdgeType.ATEDGE | HairEdgeType.ATCORNER):
            surface_edge = -1
            for be in point_edges[bp[start]]:
                if _same_edge(edges[be], edge):
                    surface_edge = be
            if surface_edge < 0:
                raise ValueError(f"Cannot find hair edge {he}")

            hv = np.zeros(3)
            for face_label in edge_faces[surface_edge]:
                face = list(boundary_faces[face_label])
                if start not in face:
                    raise ValueError(f"Cannot find hair edge {he} in face {face}")
                normal = _area_normal(face, points)
                pos = face.index(start)
                f_edges = face_edges(face)
                if end == face[pos - 1]:
                    a, b = f_edges[pos]
                else:
                    a, b = f_edges[pos - 1]
                hv += _normalised(np.cross(normal, points[b] - points[a]))
            hair_vecs[he] = hv
        else:
            raise ValueError(f"Invalid hair type {int(etype)}")

    for he, etype in enumerate(hair_edge_types):
        if etype & HairEdgeType.BOUNDARY:
            hair_vecs[he] = _normalised(hair_vecs[he])
    return hair_vecs


def smooth_boundary_hair_vectors(
    hair_vectors: Sequence[Sequence[float]],
    hair_edges: Sequence[Sequence[int]],
    hair_edge_types: Sequence[int],
    near_hair_edges: Sequence[Sequence[int]],
    bp: Sequence[int],
    point_faces: Sequence[Sequence[int]],
    boundary_faces: Sequence[Sequence[int]],
    n_iterations: int,
) -> np.ndarray:
    """Smooth boundary hair vectors to reduce the twisting of layer faces.

    Hairs on feature edges and at corners keep their vectors. A hair at a
    feature edge is averaged with neighbouring hairs sharing a boundary face
    with it. Non-boundary hairs get zero vectors once smoothing runs.
    """
    hair_vecs = np.array(hair_vectors, dtype=float).reshape(-1, 3)
    if len(hair_vecs) != len(hair_edges):
        raise ValueError("Sizes do not match")

    for _ in range(n_iterations):
        new_normals = np.zeros_like(hair_vecs)

        for he, (edge, etype) in enumerate(zip(hair_edges, hair_edge_types)):
            if not (etype & HairEdgeType.BOUNDARY):
                continue
            if etype & (HairEdgeType.FEATUREEDGE | HairEdgeType.ATCORNER):
                new_normals[he] += hair_vecs[he]
            elif etype & HairEdgeType.ATEDGE:
                faces_at_edge = [
                    boundary_faces[f]
                    for f in point_faces[bp[edge[0]]]
                    for fe in face_edges(boundary_faces[f])
                    if _same_edge(fe, edge)
                ]
                for hej in near_hair_edges[he]:
                    other = hair_edges[hej]
                    if any(
                        _same_edge(fe, other)
                        for face in faces_at_edge
                        for fe in face_edges(face)
                    ):
                        new_normals[he] += hair_vecs[hej]
            else:
                raise ValueError(f"Cannot smooth hair with type {int(etype)}")

        for he, etype in enumerate(hair_edge_types):
            if etype & HairEdgeType.BOUNDARY:
                n = _normalised(new_normals[he])
                new_normals[he] = _normalised(0.5 * (n + hair_vecs[he]))

        hair_vecs = new_normals

    return hair_vecs


def move_hair_ends(
    points: Sequence[Sequence[float]],
    hair_edges: Sequence[Sequence[int]],
    hair_edge_types: Sequence[int],
    edge_type: int,
    hair_vectors: Sequence[Sequence[float]],
) -> np.ndarray:
    """Return points with the ends of matching hairs moved along their vectors.

    Each moved hair keeps its length.
    """
    new_points = np.array(points, dtype=float).reshape(-1, 3)
    vectors = np.asarray(hair_vectors, dtype=float).reshape(-1, 3)
    for he, (edge, etype) in enumerate(zip(hair_edges, hair_edge_types)):
        if not (etype & edge_type):
            continue
        start, end = edge[0], edge[1]
        length = np.linalg.norm(new_points[end] - new_points[start])
        new_points[end] = new_points[start] + vectors[he] * length
    return new_points