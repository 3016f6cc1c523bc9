"""Detection and classification of hair edges in boundary layers."""

from __future__ import annotations

import enum
import logging
import os
from collections.abc import Collection, Sequence
from pathlib import Path

import numpy as np

logger = logging.getLogger(__name__)


class HairEdgeType(enum.IntFlag):
    """Classification flags of a hair edge."""

    NONE = 0
    ATEDGE = 1
    ATCORNER = 2
    BOUNDARY = 4
    FEATUREEDGE = 8
    INSIDE = 16


def _same_edge(a: Sequence[int], b: Sequence[int]) -> bool:
    return (a[0] == b[0] and a[1] == b[1]) or (a[0] == b[1] and a[1] == b[0])


def _fmt(value: float) -> str:
    return f"{float(value):.6g}"


def face_edges(face: Sequence[int]) -> list[tuple[int, int]]:
    """Return the edges of a face, each from a vertex to the next one."""
    return [(a, b) for a, b in zip(face, (*face[1:], *face[:1]))]


def write_vtk(
    path: str | os.PathLike,
    origins: Sequence[Sequence[float]],
    vectors: Sequence[Sequence[float]],
) -> None:
    """Write vectors starting at the given origins as VTK poly-data lines."""
    origins = np.asarray(origins, dtype=float).reshape(-1, 3)
    vectors = np.asarray(vectors, dtype=float).reshape(-1, 3)
    if len(origins) != len(vectors):
        raise ValueError("Sizes do not match")

    lines = [
        "# vtk DataFile Version 3.0",
        "vtk output",
        "ASCII",
        "DATASET POLYDATA",
        f"POINTS {2 * len(origins)} float",
    ]
    for p, v in zip(origins, vectors):
        lines.append(" ".join(_fmt(c) for c in p))
        lines.append(" ".join(_fmt(c) for c in p + v))

    lines.append("")
    lines.append(f"LINES {len(vectors)} {3 * len(vectors)}")
    lines.extend(f"2 {2 * i} {2 * i + 1}" for i in range(len(vectors)))
    lines.append("")

    Path(path).write_text("\n".join(lines) + "\n")


def write_hair_edges(
    path: str | os.PathLike,
    hair_edges: Sequence[Sequence[int]],
    hair_edge_types: Sequence[int],
    edge_type: int,
    points: Sequence[Sequence[float]],
    vectors: Sequence[Sequence[float]] | None = None,
) -> None:
    """Write hair edges matching ``edge_type`` to a VTK file.

    Without ``vectors`` the edges themselves are written; otherwise each
    vector is scaled by the length of its hair edge.
    """
    points = np.asarray(points, dtype=float).reshape(-1, 3)
    if vectors is not None:
        vectors = np.asarray(vectors, dtype=float).reshape(-1, 3)
        if len(vectors) != len(hair_edges):
            raise ValueError("Sizes do not match")

    origins = []
    out_vectors = []
    for he, (edge, etype) in enumerate(zip(hair_edges, hair_edge_types)):
        if not (etype & edge_type):
            continue
        start, end = points[edge[0]], points[edge[1]]
        origins.append(start)
        if vectors is None:
            out_vectors.append(end - start)
        else:
            out_vectors.append(vectors[he] * np.linalg.norm(end - start))

    write_vtk(path, np.reshape(origins, (-1, 3)), np.reshape(out_vectors, (-1, 3)))


def find_exit_faces(
    edge_faces: Sequence[Sequence[int]],
    face_owners: Sequence[int],
    is_layer_base: Sequence[bool],
    face_sizes: Sequence[int],
) -> list[bool]:
    """Flag boundary faces through which a boundary layer leaves the surface."""
    exit_faces = [False] * len(is_layer_base)
    for row in edge_faces:
        if len(row) != 2:
            continue
        f0, f1 = row
        if face_owners[f0] != face_owners[f1]:
            continue
        if (
            is_layer_base[f0]
            and face_sizes[f1] == 4
            and is_layer_base[f1]
            and face_sizes[f0] == 4
        ):
            exit_faces[f0] = True
            exit_faces[f1] = True
    return exit_faces


def classify_hair_edges(
    hair_edges: Sequence[Sequence[int]],
    bp: Sequence[int],
    point_edges: Sequence[Sequence[int]],
    edges: Sequence[Sequence[int]],
    feature_edges: Collection[int],
    corners: Collection[int],
    edge_points: Collection[int],
) -> list[HairEdgeType]:
    """Classify hair edges by their position relative to the surface."""
    types = []
    for edge in hair_edges:
        etype = HairEdgeType.NONE
        bpi = bp[edge[0]]
        for be in point_edges[bpi]:
            if _same_edge(edges[be], edge):
                etype |= HairEdgeType.BOUNDARY
                if be in feature_edges:
                    etype |= HairEdgeType.FEATUREEDGE
            if bpi in corners:
                etype |= HairEdgeType.ATCORNER
            elif bpi in edge_points:
                etype |= HairEdgeType.ATEDGE
        if not (etype & HairEdgeType.BOUNDARY):
            etype |= HairEdgeType.INSIDE
        types.append(etype)
    return types


def hair_edges_near_hair_edges(
    hair_edges: Sequence[Sequence[int]],
    bp: Sequence[int],
    point_mesh_faces: Sequence[Sequence[int]],
    faces: Sequence[Sequence[int]],
    hair_edges_at_point: Sequence[Sequence[int]],
) -> list[list[int]]:
    """Find, for each hair edge, the hair edges opposite it in quad faces.

    ``point_mesh_faces`` lists, per boundary point, the mesh faces of the
    boundary cells that contain it; ``hair_edges_at_point`` lists the hair
    edges attached to each boundary point.
    """
    result = []
    for edge in hair_edges:
        bpi = bp[edge[0]]
        neighbours: list[int] = []
        for face_label in point_mesh_faces[bpi]:
            face = faces[face_label]
            if len(face) != 4:
                continue
            f_edges = face_edges(face)
            position = next(
                (i for i, fe in enumerate(f_edges) if _same_edge(fe, edge)), -1
            )
            if position == -1:
                continue
            opposite = f_edges[(position + 2) % 4]
            for vertex in opposite:
                bpj = bp[vertex]
                if bpj < 0:
                    continue
                neighbours.extend(
                    hej
                    for hej in hair_edges_at_point[bpj]
                    if _same_edge(hair_edges[hej], opposite)
                )
        result.append(neighbours)
    return result


def needs_exit_face_reoptimisation(
    hair_edges: Sequence[Sequence[int]],
    thinned: Sequence[bool],
    n_points: int,
) -> bool:
    """Tell whether a thinned hair edge ends at a point with more than two hairs."""
    n_edges_at_point = [0] * n_points
    for edge in hair_edges:
        n_edges_at_point[edge[1]] += 1

    modified = any(
        was_thinned and n_edges_at_point[edge[1]] > 2
        for edge, was_thinned in zip(hair_edges, thinned)
    )
    if modified:
        logger.info(
            "Hair edges at exitting faces shall be modified due to inner constraints"
        )
    return modified