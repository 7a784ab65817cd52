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

"""Mesh statistics and summary information.

Computes topological counts (vertices, edges, faces, boundary edges, Euler
characteristic) and edge length statistics for triangle meshes.
"""

from collections.abc import Mapping
from typing import TYPE_CHECKING

import torch

if TYPE_CHECKING:
    from meshrefine.mesh.mesh import Mesh


def compute_mesh_statistics(
    mesh: "Mesh",
) -> Mapping[str, int | bool | tuple[float, float, float, float]]:
    """Compute summary statistics for a triangle mesh.

    Returns dictionary with mesh statistics:
    - n_points: Number of vertices
    - n_cells: Number of triangles
    - n_edges: Number of unique (undirected) edges
    - n_boundary_edges: Edges with a single incident triangle
    - euler_characteristic: n_points - n_edges + n_cells
    - is_closed: True if there are no boundary edges
    - n_isolated_vertices: Vertices not in any cell
    - edge_length_stats: (min, mean, max, std) of unique edge lengths

    Parameters
    ----------
    mesh : Mesh
        Triangle mesh to analyze.

    Returns
    -------
    Mapping[str, int | bool | tuple[float, float, float, float]]
        Dictionary with statistics.

    Examples
    --------
    >>> from meshrefine.mesh.primitives.surfaces import tetrahedron_surface
    >>> stats = compute_mesh_statistics(tetrahedron_surface.load())
    >>> stats["n_edges"], stats["euler_characteristic"]
    (6, 2)
    """
    stats = {
        "n_points": mesh.n_points,
        "n_cells": mesh.n_cells,
    }

    if mesh.n_cells == 0:
        stats["n_edges"] = 0
        stats["n_boundary_edges"] = 0
        stats["euler_characteristic"] = mesh.n_points
        stats["is_closed"] = True
        stats["n_isolated_vertices"] = mesh.n_points
        stats["edge_length_stats"] = (0.0, 0.0, 0.0, 0.0)
        return stats

    he = mesh.half_edges

    ### Each interior edge is a twin pair; keep the lower index of each pair
    index = torch.arange(he.n_half_edges, device=he.start.device)
    is_boundary = he.twin < 0
    representative = is_boundary | (index < he.twin)
    n_boundary = int(is_boundary.sum())
    n_edges = int(representative.sum())

    stats["n_edges"] = n_edges
    stats["n_boundary_edges"] = n_boundary
    stats["euler_characteristic"] = mesh.n_points - n_edges + mesh.n_cells
    stats["is_closed"] = n_boundary == 0

    ### Count isolated vertices
    n_used = len(torch.unique(mesh.cells.flatten()))
    stats["n_isolated_vertices"] = mesh.n_points - n_used

    ### Edge length statistics over unique edges
    starts = he.start[representative]
    ends = he.end[representative]
    lengths = torch.norm(mesh.points[ends] - mesh.points[starts], dim=-1)
    stats["edge_length_stats"] = (
        lengths.min().item(),
        lengths.mean().item(),
        lengths.max().item(),
        lengths.std(correction=0).item(),
    )

    return stats
