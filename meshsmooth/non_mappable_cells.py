"""Detection and removal of boundary cells that cannot be mapped to the surface."""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


class CellType(enum.IntFlag):
    """Classification flags of a cell."""

    NONE = 0
    INTERNALCELL = 1
    BNDCELL = 2
    ALLBNDVERTEXCELL = 4
    INTERNALFACEGROUP = 8


@dataclass
class PolyMesh:
    """Polyhedral mesh with internal faces stored before boundary faces."""

    faces: list[tuple[int, ...]]
    cells: list[list[int]]
    owner: list[int]
    neighbour: list[int]
    patches: list[tuple[int, int]] | None = field(default=None)

    def __post_init__(self) -> None:
        self.faces = [tuple(f) for f in self.faces]
        if self.patches is None:
            n_int = self.n_internal_faces
            self.patches = [(n_int, len(self.faces) - n_int)]

    @property
    def n_internal_faces(self) -> int:
        return len(self.neighbour)

    @property
    def n_points(self) -> int:
        return max((max(f) for f in self.faces if f), default=-1) + 1

    def boundary_face_labels(self) -> Iterator[int]:
        """Yield the labels of faces in the boundary patches."""
        for start, size in self.patches or ():
            yield from range(start, start + size)

    def cell_points(self, cell: int) -> list[int]:
        """Return the distinct point labels of a cell, in order of first appearance."""
        seen: dict[int, None] = {}
        for face_label in self.cells[cell]:
            for p in self.faces[face_label]:
                seen.setdefault(p, None)
        return list(seen)

    def boundary_point_map(self) -> list[int]:
        """Return, for each point, its boundary point label or -1."""
        bp = [-1] * self.n_points
        counter = 0
        for face_label in self.boundary_face_labels():
            for p in self.faces[face_label]:
                if bp[p] < 0:
                    bp[p] = counter
                    counter += 1
        return bp


def _edges(face: Sequence[int]) -> set[frozenset[int]]:
    return {frozenset((a, b)) for a, b in zip(face, (*face[1:], *face[:1]))}


def share_an_edge(face_a: Sequence[int], face_b: Sequence[int]) -> bool:
    """Tell whether two faces have an edge in common."""
    return bool(_edges(face_a) & _edges(face_b))


class NonMappableCellChecker:
    """Finds boundary cells which do not need to stay in the mesh."""

    def __init__(self, mesh: PolyMesh):
        self.mesh = mesh
        self.cell_types: list[CellType] = []

    def find_cell_types(self) -> list[CellType]:
        """Classify every cell of the mesh and return the classification."""
        mesh = self.mesh
        types = [CellType.INTERNALCELL] * len(mesh.cells)

        for face_label in mesh.boundary_face_labels():
            types[mesh.owner[face_label]] = CellType.BNDCELL

        bp = mesh.boundary_point_map()
        n_internal = mesh.n_internal_faces

        for cell_label, cell in enumerate(mesh.cells):
            if types[cell_label] & CellType.INTERNALCELL:
                continue

            if not all(bp[p] >= 0 for p in mesh.cell_points(cell_label)):
                continue
            types[cell_label] |= CellType.ALLBNDVERTEXCELL

            internal_faces = [f for f in cell if f < n_internal]

            face_group: dict[int, int] = {}
            n_groups = 0
            for start in internal_faces:
                if start in face_group:
                    continue
                front = [start]
                face_group[start] = n_groups
                while front:
                    current = front.pop()
                    for other in internal_faces:
                        if other in face_group:
                            continue
                        if share_an_edge(mesh.faces[current], mesh.faces[other]):
                            front.append(other)
                            face_group[other] = n_groups
                n_groups += 1

            if n_groups > 1:
                types[cell_label] |= CellType.INTERNALFACEGROUP

        self.cell_types = types
        return types

    def find_cells(self) -> set[int]:
        """Return the labels of cells that can be removed from the mesh."""
        types = self.find_cell_types()
        mesh = self.mesh
        n_internal = mesh.n_internal_faces
        bad: set[int] = set()

        for cell_label, cell_type in enumerate(types):
            if cell_type & CellType.INTERNALFACEGROUP:
                bad.add(cell_label)
            elif cell_type & CellType.ALLBNDVERTEXCELL:
                has_internal_neighbour = False
                n_neighbours = 0
                for face_label in mesh.cells[cell_label]:
                    if face_label >= n_internal:
                        continue
                    n_neighbours += 1
                    nei = mesh.neighbour[face_label]
                    if nei == cell_label:
                        nei = mesh.owner[face_label]
                    if types[nei] & CellType.INTERNALCELL:
                        has_internal_neighbour = True
                        break

                if has_internal_neighbour or n_neighbours == 1:
                    bad.add(cell_label)

        return bad

    def remove_cells(self, remover: Callable[[list[bool]], PolyMesh]) -> bool:
        """Repeatedly remove non-mappable cells; return whether the mesh changed.

        ``remover`` receives a flag per cell telling whether it is removed and
        returns the resulting mesh.
        """
        changed = False
        while True:
            bad = self.find_cells()
            logger.info("Found %d non - mappable cells", len(bad))
            if not bad:
                return changed
            flags = [cell in bad for cell in range(len(self.mesh.cells))]
            self.mesh = remover(flags)
            changed = True