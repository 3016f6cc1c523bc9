"""Laplacian and optimiser-based vertex smoothing, non-mappable cell removal and boundary-layer hair-vector smoothing for unstructured meshes."""

__version__ = "0.1.0"