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


"""Tests for mesh statistics."""

import pytest
import torch

from meshrefine.mesh import Mesh
from meshrefine.mesh.primitives.surfaces import (
    icosahedron_surface,
    octahedron_surface,
    plane,
    tetrahedron_surface,
)
from meshrefine.mesh.validation import compute_mesh_statistics


class TestMeshStatistics:
    """Tests for compute_mesh_statistics."""

    @pytest.mark.parametrize(
        "primitive,n_points,n_edges,n_cells",
        [
            (tetrahedron_surface, 4, 6, 4),
            (octahedron_surface, 6, 12, 8),
            (icosahedron_surface, 12, 30, 20),
        ],
    )
    def test_platonic_solids(self, device, primitive, n_points, n_edges, n_cells):
        stats = compute_mesh_statistics(primitive.load(device=device))

        assert stats["n_points"] == n_points
        assert stats["n_edges"] == n_edges
        assert stats["n_cells"] == n_cells
        assert stats["n_boundary_edges"] == 0
        assert stats["euler_characteristic"] == 2
        assert stats["is_closed"]
        assert stats["n_isolated_vertices"] == 0

    def test_open_plane(self, device):
        """A 2x2 grid has 16 edges, 8 of them on the boundary, and a disk topology."""
        stats = plane.load(subdivisions=2, device=device).statistics

        assert stats["n_points"] == 9
        assert stats["n_cells"] == 8
        assert stats["n_edges"] == 16
        assert stats["n_boundary_edges"] == 8
        assert stats["euler_characteristic"] == 1
        assert not stats["is_closed"]

    def test_isolated_vertex(self, device):
        mesh = tetrahedron_surface.load(device=device)
        points = torch.cat([mesh.points, torch.zeros((1, 3), device=device)])
        stats = compute_mesh_statistics(Mesh(points=points, cells=mesh.cells))

        assert stats["n_isolated_vertices"] == 1
        assert stats["euler_characteristic"] == 3

    def test_edge_lengths(self, device):
        """All edges of a regular octahedron of radius 1 have length sqrt(2)."""
        stats = compute_mesh_statistics(octahedron_surface.load(device=device))
        min_len, mean_len, max_len, std_len = stats["edge_length_stats"]

        assert min_len == pytest.approx(2**0.5, rel=1e-5)
        assert mean_len == pytest.approx(2**0.5, rel=1e-5)
        assert max_len == pytest.approx(2**0.5, rel=1e-5)
        assert std_len == pytest.approx(0.0, abs=1e-5)

    def test_empty_mesh(self, device):
        mesh = Mesh(
            points=torch.zeros((0, 3), device=device),
            cells=torch.zeros((0, 3), dtype=torch.long, device=device),
        )
        stats = compute_mesh_statistics(mesh)

        assert stats["n_points"] == 0
        assert stats["n_edges"] == 0
        assert stats["is_closed"]
