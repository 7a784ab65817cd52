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


"""Tests for the Mesh container: construction, half-edge caching and repr."""

import pytest
import torch

from meshrefine.mesh import HalfEdges, Mesh
from meshrefine.mesh.primitives.surfaces import plane, tetrahedron_surface
from meshrefine.mesh.utilities._cache import get_cached


class TestMeshConstruction:
    """Tests for shape and dtype validation."""

    def test_counts(self, device):
        mesh = tetrahedron_surface.load(device=device)

        assert mesh.n_points == 4
        assert mesh.n_cells == 4
        assert mesh.n_spatial_dims == 3
        assert mesh.n_manifold_dims == 2

    def test_dict_data_converted(self, device):
        points = torch.zeros((3, 3), device=device)
        cells = torch.tensor([[0, 1, 2]], device=device)
        mesh = Mesh(
            points=points,
            cells=cells,
            point_data={"temperature": torch.ones(3, device=device)},
            cell_data={"material": torch.tensor([2], device=device)},
        )

        assert mesh.point_data.batch_size == torch.Size([3])
        assert mesh.cell_data.batch_size == torch.Size([1])

    def test_float_cells_raise(self):
        with pytest.raises(TypeError, match="int-like"):
            Mesh(points=torch.zeros((3, 3)), cells=torch.tensor([[0.0, 1.0, 2.0]]))

    def test_points_must_be_2d(self):
        with pytest.raises(ValueError, match="points"):
            Mesh(points=torch.zeros(3), cells=torch.tensor([[0, 1, 2]]))

    def test_manifold_dim_cannot_exceed_spatial_dim(self):
        with pytest.raises(ValueError, match="n_manifold_dims"):
            Mesh(points=torch.zeros((4, 2)), cells=torch.tensor([[0, 1, 2, 3]]))


class TestHalfEdgeCache:
    """Tests for lazy half-edge construction."""

    def test_half_edges_cached_on_first_access(self, device):
        mesh = tetrahedron_surface.load(device=device)
        assert get_cached(mesh.cell_data, "half_edge_twins") is None

        he = mesh.half_edges

        assert isinstance(he, HalfEdges)
        twins = get_cached(mesh.cell_data, "half_edge_twins")
        assert twins.shape == (4, 3)
        assert torch.equal(twins.reshape(-1), he.twin)

    def test_strip_caches(self, device):
        mesh = tetrahedron_surface.load(device=device)
        _ = mesh.half_edges

        stripped = mesh.strip_caches()

        assert get_cached(stripped.cell_data, "half_edge_twins") is None
        assert torch.equal(stripped.points, mesh.points)

    def test_non_triangle_mesh_has_no_half_edges(self):
        mesh = Mesh(points=torch.zeros((3, 2)), cells=torch.tensor([[0, 1], [1, 2]]))
        with pytest.raises(NotImplementedError):
            _ = mesh.half_edges

    def test_is_watertight(self, device):
        assert tetrahedron_surface.load(device=device).is_watertight()
        assert not plane.load(subdivisions=2, device=device).is_watertight()


class TestMeshRepr:
    """Tests for the custom repr."""

    def test_repr_summarizes_data(self):
        mesh = tetrahedron_surface.load()
        mesh.cell_data["material"] = torch.zeros(4, dtype=torch.long)
        _ = mesh.half_edges

        text = repr(mesh)

        assert text.startswith("Mesh(manifold_dim=2, spatial_dim=3, n_points=4, n_cells=4")
        assert "cell_data  : {material: ()}" in text
        assert "_cache" not in text
