"""ReliefMesh: watertight relief meshes from single images.

A raster is sampled onto a square grid, turned into a luminance height
field, run through a fixed sequence of enhancement filters, then projected,
triangulated, closed into a solid, cleaned, and given vertex normals.
"""

from reliefmesh.errors import ConfigError, DecodeError, ProcessingError, ReliefMeshError
from reliefmesh.models import MeshBuffers, Projection, Settings
from reliefmesh.pipeline import generate_mesh
