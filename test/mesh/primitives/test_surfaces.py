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


"""Tests for the primitive surfaces."""

import pytest
import torch

from meshrefine.mesh.primitives.surfaces import (
    icosahedron_surface,
    octahedron_surface,
    plane,
    sphere_icosahedral,
    tetrahedron_surface,
)


def _signed_volume(mesh) -> float:
    """Volume enclosed by a closed surface, positive when wound outward."""
    p0, p1, p2 = (mesh.points[mesh.cells[:, i]] for i in range(3))
    return (torch.linalg.cross(p1, p2, dim=-1) * p0).sum().item() / 6.0


CLOSED_PRIMITIVES = [tetrahedron_surface, octahedron_surface, icosahedron_surface]


class TestClosedPrimitives:
    """Tests shared by the closed Platonic surfaces."""

    @pytest.mark.parametrize("primitive", CLOSED_PRIMITIVES)
    def test_closed_and_valid(self, device, primitive):
        mesh = primitive.load(device=device)
        assert mesh.validate(check_closed=True)["valid"]

    @pytest.mark.parametrize("primitive", CLOSED_PRIMITIVES)
    def test_outward_orientation(self, device, primitive):
        assert _signed_volume(primitive.load(device=device)) > 0

    @pytest.mark.parametrize("primitive", CLOSED_PRIMITIVES)
    def test_radius(self, device, primitive):
        mesh = primitive.load(radius=2.5, device=device)
        radii = torch.norm(mesh.points, dim=-1)
        torch.testing.assert_close(radii, torch.full_like(radii, 2.5))

    @pytest.mark.parametrize("primitive", CLOSED_PRIMITIVES)
    def test_invalid_radius(self, primitive):
        with pytest.raises(ValueError, match="radius"):
            primitive.load(radius=0.0)

    def test_dtype(self, device):
        mesh = icosahedron_surface.load(dtype=torch.float64, device=device)
        assert mesh.points.dtype == torch.float64


class TestSphereIcosahedral:
    """Tests for the refined and projected icosahedron."""

    @pytest.mark.parametrize(
        "subdivisions,n_points,n_cells", [(0, 12, 20), (1, 42, 80), (2, 162, 320)]
    )
    def test_counts(self, device, subdivisions, n_points, n_cells):
        mesh = sphere_icosahedral.load(subdivisions=subdivisions, device=device)
        assert mesh.n_points == n_points
        assert mesh.n_cells == n_cells

    def test_points_on_sphere(self, device):
        mesh = sphere_icosahedral.load(radius=3.0, subdivisions=2, device=device)
        radii = torch.norm(mesh.points, dim=-1)
        torch.testing.assert_close(radii, torch.full_like(radii, 3.0))
        assert _signed_volume(mesh) > 0

    def test_invalid_subdivisions(self):
        with pytest.raises(ValueError, match="subdivisions"):
            sphere_icosahedral.load(subdivisions=-1)


class TestPlane:
    """Tests for the open plane."""

    def test_counts_and_boundary(self, device):
        mesh = plane.load(size=1.0, subdivisions=3, device=device)

        assert mesh.n_points == 16
        assert mesh.n_cells == 18
        assert mesh.statistics["n_boundary_edges"] == 12
        assert mesh.validate()["valid"]

    def test_counterclockwise_from_above(self, device):
        mesh = plane.load(subdivisions=2, device=device)
        p0, p1, p2 = (mesh.points[mesh.cells[:, i]] for i in range(3))
        normals = torch.linalg.cross(p1 - p0, p2 - p0, dim=-1)
        assert (normals[:, 2] > 0).all()

    def test_invalid_subdivisions(self):
        with pytest.raises(ValueError, match="subdivisions"):
            plane.load(subdivisions=0)
