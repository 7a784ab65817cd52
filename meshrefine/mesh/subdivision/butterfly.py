# SPDX-FileCopyrightText: Copyright (c) 2023 - 2026 NVIDIA CORPORATION & AFFILIATES.
# SPDX-FileCopyrightText: All rights reserved.
# SPDX-License-Identifier: Apache-2.0
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Butterfly subdivision for closed triangle meshes.

Butterfly is an interpolating subdivision scheme where original vertices remain
fixed and new edge vertices are computed using a weighted 8-point stencil of
neighboring vertices (see :mod:`meshrefine.mesh.subdivision._stencil`).

The refinement runs in two phases:

1. Read phase: the stencil of every source half-edge is gathered and
   evaluated in one vectorized pass over the immutable source mesh.
2. Write phase: the faces are walked in order; each face looks up (or
   creates) the refined vertices of its 3 corners and 3 edges in the builder,
   then emits 4 child triangles. Lookups are keyed by source identity, so a
   vertex or edge shared by several faces produces exactly one refined vertex.
"""

import logging
import warnings
from typing import TYPE_CHECKING

import torch

from meshrefine.mesh.subdivision._builder import (
    SourceEdge,
    SourceKey,
    SourceVertex,
    SubdivisionMeshBuilder,
)
from meshrefine.mesh.subdivision._data import (
    interpolate_point_data,
    propagate_cell_data_to_children,
)
from meshrefine.mesh.subdivision._stencil import (
    DEFAULT_TENSION,
    check_stencils,
    evaluate_edge_stencil,
    gather_stencil_vertices,
    vertex_rule,
)
from meshrefine.mesh.utilities._cache import without_cache
from meshrefine.mesh.validation.validate import validate_half_edges

if TYPE_CHECKING:
    from meshrefine.mesh.mesh import Mesh

logger = logging.getLogger(__name__)

# Each parent triangle splits into 4 children
CHILDREN_PER_FACE = 4


def subdivide_butterfly(
    mesh: "Mesh",
    tension: float = DEFAULT_TENSION,
    check_invariants: bool = True,
    return_sources: bool = False,
) -> "Mesh | tuple[Mesh, list[SourceKey]]":
    """Perform one level of Butterfly subdivision on a closed triangle mesh.

    For each source face with vertices ``V0, V1, V2`` and half-edges
    ``E0 = face.edge``, ``E1 = E0.next``, ``E2 = E0.prev``, the refined
    vertices ``v0, v1, v2`` (vertex rule) and ``m0, m1, m2`` (edge rule on
    ``E0, E1, E2``) are connected into 4 triangles with the source winding::

        (v0, m0, m2)    corner at V0
        (m0, v1, m1)    corner at V1
        (m2, m1, v2)    corner at V2
        (m0, m1, m2)    center

    Properties:
    - Interpolating: original vertices keep their positions exactly
    - Refined mesh has ``4 * n_cells`` triangles and ``n_points + n_edges``
      points (vertices not used by any face are dropped)
    - Refined vertices are numbered in the order faces first reach them
    - Point data is interpolated with the same stencil, cell data is inherited
      by the children, global data is preserved

    Parameters
    ----------
    mesh : Mesh
        Closed, consistently oriented triangle mesh.
    tension : float
        Tension parameter ``w`` of the edge rule. ``1/16`` is the classical
        value; ``0`` places new vertices at exact edge midpoints.
    check_invariants : bool
        Run :func:`~meshrefine.mesh.validation.validate_half_edges` on the
        result and raise if it fails.
    return_sources : bool
        If True, also return the source entity of every refined vertex.

    Returns
    -------
    Mesh
        Refined mesh with its half-edge connectivity already cached.
    list[SourceVertex | SourceEdge]
        Only if ``return_sources``: ``sources[i]`` is the source vertex or
        unordered source edge that generated refined vertex ``i``.

    Raises
    ------
    NotImplementedError
        If the mesh is not a triangle mesh.
    MalformedNeighborhoodError
        If any edge has an incomplete stencil (e.g. the mesh has a boundary).
        No partial result is produced.
    NonManifoldResultError
        If the source or the refined mesh cannot be paired into half-edges.
    MeshInvariantError
        If ``check_invariants`` is set and the refined mesh is inconsistent.

    Examples
    --------
        >>> from meshrefine.mesh.primitives.surfaces import icosahedron_surface
        >>> mesh = icosahedron_surface.load()
        >>> refined = subdivide_butterfly(mesh)
        >>> refined.n_cells, refined.n_points
        (80, 42)
    """
    ### Check manifold dimension
    if mesh.n_manifold_dims != 2:
        raise NotImplementedError(
            f"Butterfly subdivision only supports 2D manifolds (triangular meshes). "
            f"Got {mesh.n_manifold_dims=}."
        )

    ### Handle empty mesh
    if mesh.n_cells == 0:
        return (mesh, []) if return_sources else mesh

    if not 0.0 <= tension <= 0.125:
        warnings.warn(
            f"Butterfly tension {tension=} is outside [0, 1/8]; the refined "
            f"surface may oscillate or shrink.",
            stacklevel=2,
        )

    half_edges = mesh.half_edges
    n_original_points = mesh.n_points
    edges = torch.arange(half_edges.n_half_edges, device=mesh.cells.device)

    ### Read phase: stencils and edge positions for every half-edge
    stencil = gather_stencil_vertices(half_edges, edges)
    check_stencils(half_edges, edges, stencil)
    edge_points = evaluate_edge_stencil(mesh.points, stencil, tension)
    logger.debug(
        "Evaluated Butterfly stencils for %d half-edges (tension=%g)",
        half_edges.n_half_edges,
        tension,
    )

    ### Write phase: walk faces, deduplicating by source identity
    builder = SubdivisionMeshBuilder(
        n_spatial_dims=mesh.n_spatial_dims,
        dtype=mesh.points.dtype,
        device=mesh.points.device,
    )
    starts = half_edges.start.tolist()
    ends = half_edges.end.tolist()
    nexts = half_edges.next.tolist()
    prevs = half_edges.prev.tolist()

    # Candidate row (see interpolate_point_data) of each refined vertex
    source_rows: list[int] = []

    def refined_vertex(vertex: int) -> int:
        key = SourceVertex(vertex)
        existing = builder.find_existing(key)
        if existing is not None:
            return existing
        source_rows.append(vertex)
        return builder.insert_vertex(vertex_rule(mesh, vertex), key)

    def refined_edge_vertex(edge: int) -> int:
        key = SourceEdge.of(starts[edge], ends[edge])
        existing = builder.find_existing(key)
        if existing is not None:
            return existing
        source_rows.append(n_original_points + edge)
        return builder.insert_vertex(edge_points[edge], key)

    for face in range(mesh.n_cells):
        e0 = half_edges.face_edge(face)
        e1 = nexts[e0]
        e2 = prevs[e0]

        v0 = refined_vertex(starts[e0])
        v1 = refined_vertex(ends[e0])
        v2 = refined_vertex(ends[e1])

        m0 = refined_edge_vertex(e0)
        m1 = refined_edge_vertex(e1)
        m2 = refined_edge_vertex(e2)

        builder.insert_triangle(v0, m0, m2)
        builder.insert_triangle(m0, v1, m1)
        builder.insert_triangle(m2, m1, v2)
        builder.insert_triangle(m0, m1, m2)

    ### Carry data over to the refined mesh
    new_point_data = interpolate_point_data(
        point_data=mesh.point_data,
        stencil=stencil,
        tension=tension,
        source_rows=torch.tensor(source_rows, dtype=torch.long, device=edges.device),
    )
    n_children = CHILDREN_PER_FACE * mesh.n_cells
    parent_indices = torch.arange(
        mesh.n_cells, device=edges.device
    ).repeat_interleave(CHILDREN_PER_FACE)
    new_cell_data = propagate_cell_data_to_children(
        cell_data=mesh.cell_data,
        parent_indices=parent_indices,
        n_total_children=n_children,
    )

    refined = builder.finalize(
        point_data=new_point_data,
        cell_data=new_cell_data,
        global_data=without_cache(mesh.global_data),
        require_closed=True,
    )

    if check_invariants:
        validate_half_edges(refined, check_closed=True, raise_on_error=True)

    logger.debug(
        "Butterfly subdivision: %d -> %d points, %d -> %d triangles",
        n_original_points,
        refined.n_points,
        mesh.n_cells,
        refined.n_cells,
    )
    if return_sources:
        return refined, builder.vertex_sources
    return refined
