# meshsmooth

Geometry and topology smoothing routines for unstructured polyhedral meshes,
including boundary-layer hair-edge optimisation. The meshes are given as
plain Python sequences and numpy arrays: point coordinates, faces as lists of
point labels, cells as lists of face labels, and the connectivity lists each
routine asks for.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## What is inside

- `meshsmooth.surface_optimizer.SurfaceOptimizer` – moves the free vertex of a
  planar triangle fan (the first vertex of the first triangle) to minimise a
  stabilised quality functional. `optimize_point(tol)` combines a
  divide-and-conquer search with a Newton-type descent and returns the new
  position; `stabilisation_factor()`, `functional(k)` and `gradients(k)` expose
  the functional and its derivatives.
- `meshsmooth.laplace_smoother.LaplaceSmoother` – Laplacian smoothing of mesh
  vertices: point-neighbour averaging (`laplacian`, `laplacian_surface`),
  cell-centre averaging (`laplacian_pc`) and volume-weighted cell-centre
  averaging (`laplacian_wpc`), plus `optimize_laplacian`,
  `optimize_laplacian_pc` and `optimize_laplacian_wpc`, which smooth every
  vertex flagged `INSIDE`. Vertex flags are given by `VertexLocation`; vertices
  flagged `LOCKED` or `PARALLELBOUNDARY` are not moved. An optional
  `update_geometry(points, changed_faces)` callback is told which faces changed
  (see `changed_faces`) and may return new cell centres and volumes.
- `meshsmooth.non_mappable_cells` – `PolyMesh` holds a mesh with internal faces
  stored first; `NonMappableCellChecker` classifies cells (`CellType`), finds
  boundary cells that cannot be mapped onto the surface (`find_cells`) and,
  given a callable that removes flagged cells and returns the new mesh,
  removes them repeatedly until none remain (`remove_cells`).
  `share_an_edge(face_a, face_b)` tells whether two faces have an edge in
  common.
- `meshsmooth.boundary_layer` – `HairEdgeType` flags, `classify_hair_edges`,
  `find_exit_faces`, `hair_edges_near_hair_edges`, `face_edges`,
  `needs_exit_face_reoptimisation`, and VTK output of hair vectors
  (`write_vtk`, `write_hair_edges`).
- `meshsmooth.boundary_layer_normals` – per-patch normals at hair-edge bases
  (`point_patch_normals`), hair vectors of boundary hairs
  (`boundary_hair_vectors`), their smoothing (`smooth_boundary_hair_vectors`)
  and moving hair ends along new vectors while keeping hair lengths
  (`move_hair_ends`).
- `meshsmooth.boundary_layer_inside` – hair vectors of inside hairs built from
  patch normals (`inside_hair_vectors`) and their smoothing
  (`smooth_inside_hair_vectors`).

## Example

```python
import numpy as np
from meshsmooth.surface_optimizer import SurfaceOptimizer

points = np.array([
    [0.3, 0.2, 0.0],   # free vertex
    [1.0, 0.0, 0.0],
    [0.0, 1.0, 0.0],
    [-1.0, 0.0, 0.0],
    [0.0, -1.0, 0.0],
])
triangles = [(0, 1, 2), (0, 2, 3), (0, 3, 4), (0, 4, 1)]

optimizer = SurfaceOptimizer(points, triangles)
print(optimizer.optimize_point(1e-6))   # close to the origin
```

## What it does not do

- There is no command-line program; everything is a library call.
- It does not read or write mesh files; the only file output is the VTK
  poly-data written by `write_vtk` and `write_hair_edges`.
- It does not compute mesh addressing or geometry itself: neighbour lists,
  cell centres and volumes, face normals, boundary-layer hair edges and
  feature edges, corners and patches must be supplied by the caller.
- It has no smoother for boundary (surface) vertices that projects them back
  onto the surface.
- It works on a single mesh partition; vertices shared with other partitions
  are left where they are.