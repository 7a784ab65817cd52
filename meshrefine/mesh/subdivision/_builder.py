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

"""Two-phase builder for the refined mesh.

Vertices and triangles are accumulated one at a time while the source mesh is
walked; half-edge twins are only resolved in :meth:`SubdivisionMeshBuilder.finalize`,
once every triangle is known.

Vertices are deduplicated by the source entity that generated them: a source
vertex (:class:`SourceVertex`) or an unordered source edge (:class:`SourceEdge`).
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import torch
from tensordict import TensorDict

from meshrefine.mesh.exceptions import NonManifoldResultError
from meshrefine.mesh.halfedge import compute_half_edge_twins
from meshrefine.mesh.utilities._cache import set_cached

if TYPE_CHECKING:
    from meshrefine.mesh.mesh import Mesh

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceVertex:
    """Identity of a source-mesh vertex."""

    index: int


@dataclass(frozen=True)
class SourceEdge:
    """Identity of an unordered source-mesh edge, stored as ``lo < hi``.

    Build with :meth:`of` so that an edge and its twin produce equal keys.
    """

    lo: int
    hi: int

    @classmethod
    def of(cls, start: int, end: int) -> "SourceEdge":
        return cls(min(start, end), max(start, end))


SourceKey = SourceVertex | SourceEdge


class SubdivisionMeshBuilder:
    """Accumulates the vertices and triangles of a refined mesh.

    The builder is scratch state owned by one refinement call. After
    :meth:`finalize` it rejects further use.

    Parameters
    ----------
    n_spatial_dims : int
        Number of coordinates per vertex.
    dtype : torch.dtype
        Dtype of the vertex positions.
    device : torch.device or str
        Device of the finalized mesh.

    Examples
    --------
    >>> builder = SubdivisionMeshBuilder(n_spatial_dims=2)
    >>> a = builder.insert_vertex(torch.tensor([0.0, 0.0]), SourceVertex(0))
    >>> b = builder.insert_vertex(torch.tensor([1.0, 0.0]), SourceVertex(1))
    >>> m = builder.insert_vertex(torch.tensor([0.5, 0.0]), SourceEdge.of(1, 0))
    >>> builder.find_existing(SourceEdge.of(0, 1)) == m
    True
    >>> _ = builder.insert_triangle(a, m, b)
    >>> mesh = builder.finalize(require_closed=False)
    >>> mesh.n_points, mesh.n_cells
    (3, 1)
    """

    def __init__(
        self,
        n_spatial_dims: int,
        dtype: torch.dtype = torch.float32,
        device: torch.device | str = "cpu",
    ) -> None:
        self.n_spatial_dims = n_spatial_dims
        self.dtype = dtype
        self.device = device

        self._lookup: dict[SourceKey, int] = {}
        self._positions: list[torch.Tensor] = []
        self._triangles: list[tuple[int, int, int]] = []
        self._finalized = False

        # Back-reference from each created vertex to the entity that generated it
        self.vertex_sources: list[SourceKey] = []

    @property
    def n_vertices(self) -> int:
        return len(self._positions)

    @property
    def n_triangles(self) -> int:
        return len(self._triangles)

    @property
    def is_finalized(self) -> bool:
        return self._finalized

    def _check_open(self) -> None:
        if self._finalized:
            raise RuntimeError(
                "This builder has already been finalized; create a new builder "
                "for another refinement."
            )

    def find_existing(self, source_key: SourceKey) -> int | None:
        """Return the vertex created for ``source_key``, or ``None`` if there is none yet."""
        self._check_open()
        return self._lookup.get(source_key)

    def insert_vertex(self, position: torch.Tensor, source_key: SourceKey) -> int:
        """Create a vertex at ``position`` and record it under ``source_key``.

        If a vertex already exists for ``source_key`` it is returned unchanged
        and ``position`` is ignored, so each source entity yields exactly one
        vertex.

        Parameters
        ----------
        position : torch.Tensor
            Vertex coordinates, shape (n_spatial_dims,).
        source_key : SourceVertex or SourceEdge
            Entity of the source mesh that generated the vertex.

        Returns
        -------
        int
            Index of the vertex in the refined mesh.
        """
        self._check_open()
        existing = self._lookup.get(source_key)
        if existing is not None:
            return existing

        position = torch.as_tensor(position, dtype=self.dtype, device=self.device)
        if position.shape != (self.n_spatial_dims,):
            raise ValueError(
                f"Vertex positions must have shape ({self.n_spatial_dims},), "
                f"but got {position.shape=} for {source_key=}."
            )

        index = len(self._positions)
        self._positions.append(position)
        self.vertex_sources.append(source_key)
        self._lookup[source_key] = index
        return index

    def insert_triangle(self, a: int, b: int, c: int) -> int:
        """Record the triangle ``(a, b, c)`` in the given winding order.

        Returns
        -------
        int
            Index of the triangle in the refined mesh.
        """
        self._check_open()
        n = len(self._positions)
        for vertex in (a, b, c):
            if not 0 <= vertex < n:
                raise ValueError(
                    f"Triangle ({a}, {b}, {c}) references vertex {vertex}, but only "
                    f"{n} vertices have been inserted."
                )
        if a == b or b == c or a == c:
            raise ValueError(f"Triangle ({a}, {b}, {c}) repeats a vertex.")

        self._triangles.append((a, b, c))
        return len(self._triangles) - 1

    def finalize(
        self,
        point_data: TensorDict | dict[str, torch.Tensor] | None = None,
        cell_data: TensorDict | dict[str, torch.Tensor] | None = None,
        global_data: TensorDict | dict[str, torch.Tensor] | None = None,
        require_closed: bool = True,
    ) -> "Mesh":
        """Assemble the refined mesh and resolve its half-edge connectivity.

        ``next``/``prev`` follow from the triangle order; ``twin`` pairs are
        matched across triangles and cached on the returned mesh, so
        ``mesh.half_edges`` needs no further search.

        Parameters
        ----------
        point_data, cell_data, global_data : TensorDict or dict, optional
            Data to attach to the refined mesh, sized by the inserted vertices
            and triangles.
        require_closed : bool
            If True, every half-edge must have a twin.

        Returns
        -------
        Mesh
            The refined mesh.

        Raises
        ------
        NonManifoldResultError
            If an edge is shared by more than two triangles (or two triangles
            disagree on orientation), or, with ``require_closed``, if any
            half-edge is unmatched.
        RuntimeError
            If called more than once.
        """
        from meshrefine.mesh.mesh import Mesh

        self._check_open()

        if self._positions:
            points = torch.stack(self._positions, dim=0)
        else:
            points = torch.zeros(
                (0, self.n_spatial_dims), dtype=self.dtype, device=self.device
            )
        cells = torch.tensor(
            self._triangles, dtype=torch.long, device=self.device
        ).reshape(-1, 3)

        ### Resolve twins; raises on edges with more than two incident triangles
        twins = compute_half_edge_twins(cells)

        if require_closed:
            unmatched = torch.where(twins < 0)[0]
            if len(unmatched) > 0:
                first = unmatched[0].item()
                a, b, c = self._triangles[first // 3]
                start = (a, b, c)[first % 3]
                end = (a, b, c)[(first + 1) % 3]
                raise NonManifoldResultError(
                    f"Half-edge {first} ({start} -> {end}) of triangle {first // 3} "
                    f"has no twin, but the refined mesh is expected to be closed.\n"
                    f"Found {len(unmatched)} unmatched half-edge(s) in total."
                )

        mesh = Mesh(
            points=points,
            cells=cells,
            point_data=point_data,
            cell_data=cell_data,
            global_data=global_data,
        )
        set_cached(mesh.cell_data, "half_edge_twins", twins.reshape(-1, 3))

        logger.debug(
            "Finalized refined mesh: %d vertices, %d triangles, %d boundary half-edges",
            mesh.n_points,
            mesh.n_cells,
            int((twins < 0).sum()),
        )

        ### The lookup table is scratch state
        self._lookup.clear()
        self._finalized = True
        return mesh
