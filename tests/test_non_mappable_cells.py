import pytest

from meshsmooth.non_mappable_cells import (
    CellType,
    NonMappableCellChecker,
    PolyMesh,
    share_an_edge,
)


def build_grid(nx, ny, nz):
    def pid(i, j, k):
        return i + (nx + 1) * (j + (ny + 1) * k)

    def cid(i, j, k):
        if 0 <= i < nx and 0 <= j < ny and 0 <= k < nz:
            return i + nx * (j + ny * k)
        return None

    internal, boundary = [], []

    def add(face, lower, upper):
        if lower is not None and upper is not None:
            internal.append((face, lower, upper))
        else:
            boundary.append((face, lower if lower is not None else upper))

    for i in range(nx + 1):
        for j in range(ny):
            for k in range(nz):
                face = (pid(i, j, k), pid(i, j + 1, k), pid(i, j + 1, k + 1), pid(i, j, k + 1))
                add(face, cid(i - 1, j, k), cid(i, j, k))
    for j in range(ny + 1):
        for i in range(nx):
            for k in range(nz):
                face = (pid(i, j, k), pid(i + 1, j, k), pid(i + 1, j, k + 1), pid(i, j, k + 1))
                add(face, cid(i, j - 1, k), cid(i, j, k))
    for k in range(nz + 1):
        for i in range(nx):
            for j in range(ny):
                face = (pid(i, j, k), pid(i + 1, j, k), pid(i + 1, j + 1, k), pid(i, j + 1, k))
                add(face, cid(i, j, k - 1), cid(i, j, k))

    faces, owner, neighbour = [], [], []
    cells = [[] for _ in range(nx * ny * nz)]
    for face, own, nei in internal:
        label = len(faces)
        faces.append(face)
        owner.append(own)
        neighbour.append(nei)
        cells[own].append(label)
        cells[nei].append(label)
    for face, own in boundary:
        label = len(faces)
        faces.append(face)
        owner.append(own)
        cells[own].append(label)
    return PolyMesh(faces=faces, cells=cells, owner=owner, neighbour=neighbour)


def test_share_an_edge_with_reversed_orientation():
    assert share_an_edge((0, 1, 2, 3), (5, 4, 1, 0))


def test_share_only_a_vertex():
    assert not share_an_edge((0, 1, 2, 3), (3, 4, 5, 6))


def test_cell_points_of_single_hex():
    mesh = build_grid(1, 1, 1)
    assert sorted(mesh.cell_points(0)) == list(range(8))


def test_boundary_point_map_excludes_interior_points():
    mesh = build_grid(3, 3, 3)
    bp = mesh.boundary_point_map()
    assert len(bp) == 64
    labels = sorted(v for v in bp if v >= 0)
    assert labels == list(range(len(labels)))
    interior = [i + 4 * (j + 4 * k) for i in (1, 2) for j in (1, 2) for k in (1, 2)]
    assert all(bp[p] == -1 for p in interior)
    assert len(labels) == 64 - len(interior)


def test_single_hex_is_kept():
    checker = NonMappableCellChecker(build_grid(1, 1, 1))
    types = checker.find_cell_types()
    assert types == [CellType.BNDCELL | CellType.ALLBNDVERTEXCELL]
    assert checker.find_cells() == set()


def test_two_stacked_hexes_are_both_bad():
    checker = NonMappableCellChecker(build_grid(1, 1, 2))
    assert checker.find_cells() == {0, 1}


def test_row_of_three_cells():
    checker = NonMappableCellChecker(build_grid(3, 1, 1))
    types = checker.find_cell_types()
    assert types[1] & CellType.INTERNALFACEGROUP
    assert not types[0] & CellType.INTERNALFACEGROUP
    assert checker.find_cells() == {0, 1, 2}


def test_two_by_two_layer_is_kept():
    checker = NonMappableCellChecker(build_grid(2, 2, 1))
    types = checker.find_cell_types()
    assert all(t == CellType.BNDCELL | CellType.ALLBNDVERTEXCELL for t in types)
    assert checker.find_cells() == set()


def test_three_cube_grid_has_internal_centre():
    checker = NonMappableCellChecker(build_grid(3, 3, 3))
    types = checker.find_cell_types()
    centre = 1 + 3 * (1 + 3 * 1)
    assert types[centre] == CellType.INTERNALCELL
    assert all(t == CellType.BNDCELL for i, t in enumerate(types) if i != centre)
    assert checker.find_cells() == set()


def test_remove_cells_calls_remover_until_clean():
    calls = []

    def remover(flags):
        calls.append(flags)
        return PolyMesh(faces=[], cells=[], owner=[], neighbour=[])

    checker = NonMappableCellChecker(build_grid(1, 1, 2))
    assert checker.remove_cells(remover) is True
    assert calls == [[True, True]]
    assert checker.mesh.cells == []


def test_remove_cells_without_bad_cells_reports_no_change():
    def remover(flags):
        raise AssertionError("remover must not be called")

    checker = NonMappableCellChecker(build_grid(2, 2, 1))
    assert checker.remove_cells(remover) is False


def test_remover_error_propagates():
    def remover(flags):
        raise RuntimeError("boom")

    checker = NonMappableCellChecker(build_grid(3, 1, 1))
    with pytest.raises(RuntimeError):
        checker.remove_cells(remover)