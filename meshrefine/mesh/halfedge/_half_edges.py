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

"""Index-based half-edge connectivity for triangle meshes.

Half-edges are stored as an arena of integer index arrays rather than as
linked objects. For a triangle mesh with cells of shape (n_faces, 3), the
half-edge with index ``3 * f + i`` runs from ``cells[f, i]`` to
``cells[f, (i + 1) % 3]``. With this layout:

- ``face.edge`` (the representative half-edge of face ``f``) is ``3 * f``
- ``next`` and ``prev`` are pure index arithmetic within each block of 3
- only ``twin`` has to be resolved, by matching each directed edge ``(a, b)``
  with the directed edge ``(b, a)`` of the neighboring face

A half-edge with no twin (open boundary) stores ``-1`` in ``twin``.
"""

import torch
from tensordict import tensorclass

from meshrefine.mesh.exceptions import NonManifoldResultError
from meshrefine.mesh.utilities._edge_lookup import find_edges_in_reference, hash_edges

NO_TWIN = -1


def compute_half_edge_twins(cells: torch.Tensor) -> torch.Tensor:
    """Resolve the twin of every half-edge of a triangle mesh.

    Parameters
    ----------
    cells : torch.Tensor
        Triangle connectivity, shape (n_faces, 3), integer dtype.

    Returns
    -------
    torch.Tensor
        Shape (3 * n_faces,), dtype int64. ``twin[e]`` is the index of the
        half-edge running opposite to ``e``, or ``-1`` if there is none.

    Raises
    ------
    NonManifoldResultError
        If the same directed edge occurs more than once. This happens when an
        edge is shared by more than two triangles, or when two triangles
        sharing an edge have inconsistent winding.

    Examples
    --------
    >>> cells = torch.tensor([[0, 1, 2], [1, 0, 3]])
    >>> compute_half_edge_twins(cells).tolist()
    [3, -1, -1, 0, -1, -1]
    """
    device = cells.device

    if cells.shape[0] == 0:
        return torch.zeros(0, dtype=torch.long, device=device)

    ### Directed edges in half-edge order
    starts = cells.reshape(-1).to(torch.int64)
    ends = cells.roll(-1, dims=1).reshape(-1).to(torch.int64)
    n_vertices = int(cells.max().item()) + 1

    directed = torch.stack([starts, ends], dim=1)
    directed_hash = hash_edges(directed, n_vertices, directed=True)

    sorted_hash, sort_perm = torch.sort(directed_hash)

    ### A directed edge may occur at most once in a manifold, consistently oriented mesh
    repeated = torch.where(sorted_hash[1:] == sorted_hash[:-1])[0]
    if len(repeated) > 0:
        first = sort_perm[repeated[0]].item()
        second = sort_perm[repeated[0] + 1].item()
        raise NonManifoldResultError(
            f"Directed edge ({starts[first].item()}, {ends[first].item()}) occurs in "
            f"faces {first // 3} and {second // 3}. The edge is shared by more than "
            f"two faces, or the faces around it have inconsistent winding.\n"
            f"Found {len(repeated)} repeated directed edge(s) in total."
        )

    ### Look up the reverse of every half-edge
    indices, matched = find_edges_in_reference(
        directed, directed.flip(dims=[1]), directed=True
    )
    return torch.where(matched, indices, torch.full_like(indices, NO_TWIN))


def follow(links: torch.Tensor, index: torch.Tensor) -> torch.Tensor:
    """Follow a link array from ``index``, propagating missing entries.

    ``follow(links, index)[k]`` is ``links[index[k]]``, or ``-1`` if
    ``index[k]`` is already ``-1``. Chaining calls therefore yields ``-1``
    as soon as any link along a navigation path is absent.
    """
    present = index >= 0
    return torch.where(
        present,
        links[index.clamp(min=0)],
        torch.full_like(index, NO_TWIN),
    )


@tensorclass
class HalfEdges:
    """Half-edge arena of a triangle mesh.

    Every field has shape (n_half_edges,) and dtype int64, with
    ``n_half_edges == 3 * n_faces``.

    Attributes:
        start: Vertex the half-edge leaves from.
        end: Vertex the half-edge points to.
        next: Next half-edge in the same face loop.
        prev: Previous half-edge in the same face loop.
        twin: Opposite half-edge in the neighboring face, or -1 on a boundary.
        face: Face the half-edge belongs to.

    Examples
    --------
        >>> cells = torch.tensor([[0, 1, 2], [0, 2, 3]])
        >>> he = HalfEdges.from_cells(cells)
        >>> he.n_half_edges
        6
        >>> int(he.end[he.face_edge(1)])
        2
        >>> int(he.twin[2]), int(he.twin[3])
        (3, 2)
    """

    start: torch.Tensor
    end: torch.Tensor
    next: torch.Tensor
    prev: torch.Tensor
    twin: torch.Tensor
    face: torch.Tensor

    def __post_init__(self):
        if not torch.compiler.is_compiling():
            n = len(self.start)
            for name in ("end", "next", "prev", "twin", "face"):
                other = len(getattr(self, name))
                if other != n:
                    raise ValueError(
                        f"All half-edge arrays must have the same length, but got "
                        f"{n=} for `start` and {other=} for `{name}`."
                    )
            if n % 3 != 0:
                raise ValueError(
                    f"Triangle meshes have 3 half-edges per face, but got {n=} half-edges."
                )

    @classmethod
    def from_cells(
        cls,
        cells: torch.Tensor,
        twin: torch.Tensor | None = None,
    ) -> "HalfEdges":
        """Build the half-edge arena of a triangle mesh.

        Parameters
        ----------
        cells : torch.Tensor
            Triangle connectivity, shape (n_faces, 3).
        twin : torch.Tensor | None
            Precomputed twin array (e.g. from a cache). Computed with
            :func:`compute_half_edge_twins` if ``None``.

        Returns
        -------
        HalfEdges
            The half-edge arena.
        """
        if cells.ndim != 2 or cells.shape[1] != 3:
            raise ValueError(
                f"Half-edges require triangle cells of shape (n_faces, 3), but got {cells.shape=}."
            )
        device = cells.device
        n_faces = cells.shape[0]

        ### Arithmetic links within each face
        index = torch.arange(3 * n_faces, dtype=torch.long, device=device)
        block = index - index % 3
        local = index % 3

        if twin is None:
            twin = compute_half_edge_twins(cells)

        return cls(
            start=cells.reshape(-1).to(torch.long),
            end=cells.roll(-1, dims=1).reshape(-1).to(torch.long),
            next=block + (local + 1) % 3,
            prev=block + (local + 2) % 3,
            twin=twin,
            face=index // 3,
        )

    @property
    def n_half_edges(self) -> int:
        return len(self.start)

    @property
    def n_faces(self) -> int:
        return self.n_half_edges // 3

    @property
    def is_boundary(self) -> torch.Tensor:
        """Boolean mask of half-edges without a twin, shape (n_half_edges,)."""
        return self.twin < 0

    @property
    def is_closed(self) -> bool:
        """True if every half-edge has a twin."""
        return not bool(self.is_boundary.any())

    def face_edge(self, face: int) -> int:
        """Return the representative half-edge of ``face``."""
        return 3 * face

    def face_vertices(self, face: int) -> tuple[int, int, int]:
        """Return the three vertices of ``face`` in winding order."""
        edge = self.face_edge(face)
        return (
            int(self.start[edge]),
            int(self.end[edge]),
            int(self.end[self.next[edge]]),
        )
