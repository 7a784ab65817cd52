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


"""Tests for the deduplicating refined-mesh builder."""

import pytest
import torch

from meshrefine.mesh import NonManifoldResultError
from meshrefine.mesh.subdivision import (
    SourceEdge,
    SourceVertex,
    SubdivisionMeshBuilder,
)


def _insert_square(builder, device):
    """Insert the corners of the unit square keyed by source vertex."""
    corners = [[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [1.0, 1.0, 0.0], [0.0, 1.0, 0.0]]
    return [
        builder.insert_vertex(torch.tensor(c, device=device), SourceVertex(i))
        for i, c in enumerate(corners)
    ]


###############################################################################
# Source Keys
###############################################################################


class TestSourceKeys:
    """Tests for the identities used to deduplicate vertices."""

    def test_edge_key_is_unordered(self):
        assert SourceEdge.of(3, 7) == SourceEdge.of(7, 3)
        assert SourceEdge.of(7, 3) == SourceEdge(3, 7)
        assert hash(SourceEdge.of(3, 7)) == hash(SourceEdge.of(7, 3))

    def test_vertex_and_edge_keys_differ(self):
        assert SourceVertex(1) != SourceEdge.of(1, 1)
        assert SourceVertex(1) == SourceVertex(1)


###############################################################################
# Vertex Lookups
###############################################################################


class TestVertexLookup:
    """Tests for find_existing / insert_vertex."""

    def test_find_missing_returns_none(self, device):
        builder = SubdivisionMeshBuilder(n_spatial_dims=3, device=device)
        assert builder.find_existing(SourceVertex(0)) is None

    def test_insert_then_find(self, device):
        builder = SubdivisionMeshBuilder(n_spatial_dims=3, device=device)
        index = builder.insert_vertex(torch.zeros(3, device=device), SourceVertex(5))

        assert index == 0
        assert builder.find_existing(SourceVertex(5)) == 0
        assert builder.n_vertices == 1

    def test_lookups_are_idempotent(self, device):
        """Repeated lookups of the same key return the same vertex."""
        builder = SubdivisionMeshBuilder(n_spatial_dims=3, device=device)
        _insert_square(builder, device)
        midpoint = builder.insert_vertex(
            torch.tensor([0.5, 0.5, 0.0], device=device), SourceEdge.of(0, 2)
        )

        assert builder.find_existing(SourceEdge.of(0, 2)) == midpoint
        assert builder.find_existing(SourceEdge.of(2, 0)) == midpoint
        assert builder.find_existing(SourceEdge.of(0, 2)) == midpoint

    def test_duplicate_insert_returns_existing(self, device):
        """Inserting an edge from the twin side reuses the first vertex."""
        builder = SubdivisionMeshBuilder(n_spatial_dims=3, device=device)
        _insert_square(builder, device)
        first = builder.insert_vertex(
            torch.tensor([0.5, 0.5, 0.0], device=device), SourceEdge.of(0, 2)
        )
        second = builder.insert_vertex(
            torch.tensor([9.0, 9.0, 9.0], device=device), SourceEdge.of(2, 0)
        )

        assert first == second
        assert builder.n_vertices == 5
        mesh = builder.finalize(require_closed=False)
        torch.testing.assert_close(
            mesh.points[first], torch.tensor([0.5, 0.5, 0.0], device=device)
        )

    def test_vertex_sources_recorded(self, device):
        builder = SubdivisionMeshBuilder(n_spatial_dims=3, device=device)
        _insert_square(builder, device)
        builder.insert_vertex(torch.zeros(3, device=device), SourceEdge.of(1, 0))

        assert builder.vertex_sources == [
            SourceVertex(0),
            SourceVertex(1),
            SourceVertex(2),
            SourceVertex(3),
            SourceEdge(0, 1),
        ]

    def test_wrong_position_shape_raises(self, device):
        builder = SubdivisionMeshBuilder(n_spatial_dims=3, device=device)
        with pytest.raises(ValueError, match="shape"):
            builder.insert_vertex(torch.zeros(2, device=device), SourceVertex(0))


###############################################################################
# Triangles and Finalization
###############################################################################


class TestTrianglesAndFinalize:
    """Tests for insert_triangle and finalize."""

    def test_two_faces_share_one_edge_vertex(self, device):
        """Two faces sharing an edge produce a single vertex for that edge."""
        builder = SubdivisionMeshBuilder(n_spatial_dims=3, device=device)
        v = _insert_square(builder, device)
        position = torch.tensor([0.5, 0.5, 0.0], device=device)

        # Face (0, 1, 2) visits the edge as 2 -> 0, face (0, 2, 3) as 0 -> 2
        m_a = builder.insert_vertex(position, SourceEdge.of(v[2], v[0]))
        m_b = builder.insert_vertex(position, SourceEdge.of(v[0], v[2]))
        builder.insert_triangle(v[0], v[1], m_a)
        builder.insert_triangle(m_a, v[1], v[2])
        builder.insert_triangle(v[0], m_b, v[3])
        builder.insert_triangle(m_b, v[2], v[3])
        assert builder.n_triangles == 4

        mesh = builder.finalize(require_closed=False)

        assert m_a == m_b
        assert mesh.n_points == 5
        assert mesh.n_cells == 4
        # Edges through the shared vertex are paired across the old edge
        he = mesh.half_edges
        assert (he.twin >= 0).sum().item() == 8

    def test_triangle_out_of_range_raises(self, device):
        builder = SubdivisionMeshBuilder(n_spatial_dims=3, device=device)
        _insert_square(builder, device)
        with pytest.raises(ValueError, match="references vertex 4"):
            builder.insert_triangle(0, 1, 4)

    def test_degenerate_triangle_raises(self, device):
        builder = SubdivisionMeshBuilder(n_spatial_dims=3, device=device)
        _insert_square(builder, device)
        with pytest.raises(ValueError, match="repeats a vertex"):
            builder.insert_triangle(0, 1, 1)

    def test_finalize_caches_twins(self, device):
        """The finalized mesh carries its twin array so no search is repeated."""
        builder = SubdivisionMeshBuilder(n_spatial_dims=3, device=device)
        v = _insert_square(builder, device)
        builder.insert_triangle(v[0], v[1], v[2])
        builder.insert_triangle(v[0], v[2], v[3])

        mesh = builder.finalize(require_closed=False)

        assert mesh.cell_data["_cache", "half_edge_twins"].tolist() == [
            [-1, -1, 3],
            [2, -1, -1],
        ]

    def test_finalize_attaches_data(self, device):
        builder = SubdivisionMeshBuilder(n_spatial_dims=3, device=device)
        v = _insert_square(builder, device)
        builder.insert_triangle(v[0], v[1], v[2])

        mesh = builder.finalize(
            point_data={"temperature": torch.arange(4.0, device=device)},
            cell_data={"material": torch.tensor([7], device=device)},
            require_closed=False,
        )

        assert mesh.point_data["temperature"].tolist() == [0.0, 1.0, 2.0, 3.0]
        assert mesh.cell_data["material"].tolist() == [7]

    def test_open_result_rejected_when_closure_required(self, device):
        builder = SubdivisionMeshBuilder(n_spatial_dims=3, device=device)
        v = _insert_square(builder, device)
        builder.insert_triangle(v[0], v[1], v[2])

        with pytest.raises(NonManifoldResultError, match="has no twin"):
            builder.finalize(require_closed=True)

    def test_edge_shared_by_three_triangles_raises(self, device):
        builder = SubdivisionMeshBuilder(n_spatial_dims=3, device=device)
        v = _insert_square(builder, device)
        extra = builder.insert_vertex(
            torch.tensor([0.5, 0.5, 1.0], device=device), SourceVertex(4)
        )
        builder.insert_triangle(v[0], v[1], v[2])
        builder.insert_triangle(v[1], v[0], v[3])
        builder.insert_triangle(v[1], v[0], extra)

        with pytest.raises(NonManifoldResultError):
            builder.finalize(require_closed=False)

    def test_builder_rejects_use_after_finalize(self, device):
        builder = SubdivisionMeshBuilder(n_spatial_dims=3, device=device)
        v = _insert_square(builder, device)
        builder.insert_triangle(v[0], v[1], v[2])
        builder.finalize(require_closed=False)

        assert builder.is_finalized
        with pytest.raises(RuntimeError, match="already been finalized"):
            builder.finalize(require_closed=False)
        with pytest.raises(RuntimeError):
            builder.find_existing(SourceVertex(0))
        with pytest.raises(RuntimeError):
            builder.insert_triangle(v[0], v[2], v[3])

    def test_empty_builder(self, device):
        builder = SubdivisionMeshBuilder(n_spatial_dims=3, device=device)
        mesh = builder.finalize()
        assert mesh.n_points == 0
        assert mesh.n_cells == 0
