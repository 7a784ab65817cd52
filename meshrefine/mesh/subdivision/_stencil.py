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

r"""Vertex and edge rules of the modified Butterfly scheme.

For a half-edge ``e`` the edge rule combines 8 vertices of the source mesh,
reached purely through half-edge navigation::

                P7 ----- P3 ----- P6
                  \     /  \     /
                   \   /    \   /
                    P0 ------ P1        e = P0 -> P1
                   /   \    /   \
                  /     \  /     \
                P5 ----- P2 ----- P4

(up to mirroring, depending on the winding of the face of ``e``). With
tension ``w`` the weights are:

=========  ==========================  =========
Vertex     Navigation                  Weight
=========  ==========================  =========
P0         e.start                     1/2
P1         e.end                       1/2
P2         e.next.end                  2w
P3         e.twin.next.end             2w
P4         e.next.twin.prev.start      -w
P5         e.prev.twin.prev.start      -w
P6         e.twin.prev.twin.prev.start -w
P7         e.twin.next.twin.prev.start -w
=========  ==========================  =========

The weights sum to 1 for every ``w``, so the rule is an affine combination
and reproduces planar configurations exactly. The classical scheme uses
``w = 1/16``; ``w = 0`` degenerates to the plain edge midpoint.

The vertex rule is the identity: the scheme is interpolating and original
vertices keep their positions.
"""

from typing import TYPE_CHECKING

import torch

from meshrefine.mesh.exceptions import MalformedNeighborhoodError
from meshrefine.mesh.halfedge import HalfEdges, follow

if TYPE_CHECKING:
    from meshrefine.mesh.mesh import Mesh

DEFAULT_TENSION = 1.0 / 16.0


def butterfly_weights(
    tension: float,
    dtype: torch.dtype = torch.float32,
    device: torch.device | str = "cpu",
) -> torch.Tensor:
    """Return the 8 stencil weights ``(1/2, 1/2, 2w, 2w, -w, -w, -w, -w)``.

    Parameters
    ----------
    tension : float
        Tension parameter ``w``.
    dtype : torch.dtype
        Dtype of the returned weights.
    device : torch.device or str
        Device of the returned weights.

    Returns
    -------
    torch.Tensor
        Shape (8,), ordered like the columns of :func:`gather_stencil_vertices`.
    """
    w = tension
    return torch.tensor(
        [0.5, 0.5, 2 * w, 2 * w, -w, -w, -w, -w], dtype=dtype, device=device
    )


def gather_stencil_vertices(
    half_edges: HalfEdges,
    edges: torch.Tensor,
) -> torch.Tensor:
    """Collect the 8 stencil vertices for each of the given half-edges.

    Parameters
    ----------
    half_edges : HalfEdges
        Half-edge arena of the source mesh.
    edges : torch.Tensor
        Half-edge indices to evaluate, shape (n,).

    Returns
    -------
    torch.Tensor
        Shape (n, 8), dtype int64. Column ``k`` holds vertex ``Pk`` of the
        stencil. An entry is ``-1`` when a link needed to reach it is missing.
    """
    he = half_edges
    twin = follow(he.twin, edges)
    next_twin = follow(he.twin, follow(he.next, edges))
    prev_twin = follow(he.twin, follow(he.prev, edges))

    columns = [
        follow(he.start, edges),
        follow(he.end, edges),
        follow(he.end, follow(he.next, edges)),
        follow(he.end, follow(he.next, twin)),
        follow(he.start, follow(he.prev, next_twin)),
        follow(he.start, follow(he.prev, prev_twin)),
        follow(he.start, follow(he.prev, follow(he.twin, follow(he.prev, twin)))),
        follow(he.start, follow(he.prev, follow(he.twin, follow(he.next, twin)))),
    ]
    return torch.stack(columns, dim=1)


def check_stencils(
    half_edges: HalfEdges,
    edges: torch.Tensor,
    stencil: torch.Tensor,
) -> None:
    """Raise if any stencil produced by :func:`gather_stencil_vertices` is incomplete.

    Raises
    ------
    MalformedNeighborhoodError
        Naming the first offending half-edge, its endpoints and its face.
    """
    incomplete = torch.where((stencil < 0).any(dim=1))[0]
    if len(incomplete) == 0:
        return

    first = int(edges[incomplete[0]])
    missing = torch.where(stencil[incomplete[0]] < 0)[0].tolist()
    raise MalformedNeighborhoodError(
        f"Cannot resolve the Butterfly stencil of half-edge {first} "
        f"({int(half_edges.start[first])} -> {int(half_edges.end[first])}, "
        f"face {int(half_edges.face[first])}): stencil vertices "
        f"{[f'P{k}' for k in missing]} are unreachable because a twin link is "
        f"missing. The edge rule requires a closed 2-manifold neighborhood.\n"
        f"Found {len(incomplete)} half-edge(s) with incomplete stencils in total."
    )


def evaluate_edge_stencil(
    values: torch.Tensor,
    stencil: torch.Tensor,
    tension: float,
) -> torch.Tensor:
    """Apply the Butterfly weights to per-vertex values.

    Parameters
    ----------
    values : torch.Tensor
        Per-vertex values, shape (n_points, *value_shape). Positions or any
        floating-point point data.
    stencil : torch.Tensor
        Complete stencils, shape (n, 8), from :func:`gather_stencil_vertices`.
    tension : float
        Tension parameter ``w``.

    Returns
    -------
    torch.Tensor
        Shape (n, *value_shape). Each coordinate (or component) is combined
        independently.
    """
    weights = butterfly_weights(tension, dtype=values.dtype, device=values.device)
    # (n, 8, *value_shape) contracted over the stencil axis
    return torch.tensordot(values[stencil], weights, dims=([1], [0]))


def vertex_rule(mesh: "Mesh", vertex: int) -> torch.Tensor:
    """Position of the refined-mesh vertex generated by a source vertex.

    The modified Butterfly scheme is interpolating, so this is the source
    position itself.

    Parameters
    ----------
    mesh : Mesh
        Source mesh.
    vertex : int
        Source vertex index.

    Returns
    -------
    torch.Tensor
        Shape (n_spatial_dims,).
    """
    return mesh.points[vertex]


def edge_rule(mesh: "Mesh", edge: int, tension: float = DEFAULT_TENSION) -> torch.Tensor:
    """Position of the refined-mesh vertex inserted on a source edge.

    Parameters
    ----------
    mesh : Mesh
        Source triangle mesh.
    edge : int
        Source half-edge index. ``edge`` and its twin produce the same result.
    tension : float
        Tension parameter ``w``.

    Returns
    -------
    torch.Tensor
        Shape (n_spatial_dims,).

    Raises
    ------
    MalformedNeighborhoodError
        If the 8-point neighborhood of the edge is incomplete.

    Examples
    --------
    >>> from meshrefine.mesh.primitives.surfaces import tetrahedron_surface
    >>> mesh = tetrahedron_surface.load()
    >>> he = mesh.half_edges
    >>> midpoint = edge_rule(mesh, 0, tension=0.0)
    >>> bool(torch.allclose(midpoint, mesh.points[he.start[0]] / 2 + mesh.points[he.end[0]] / 2))
    True
    """
    half_edges = mesh.half_edges
    edges = torch.tensor([edge], dtype=torch.long, device=mesh.cells.device)
    stencil = gather_stencil_vertices(half_edges, edges)
    check_stencils(half_edges, edges, stencil)
    return evaluate_edge_stencil(mesh.points, stencil, tension)[0]
