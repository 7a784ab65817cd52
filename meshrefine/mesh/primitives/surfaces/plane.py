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


"""Flat square plane in 3D space.

Dimensional: 2D manifold in 3D space (has boundary).
"""

import torch

from meshrefine.mesh.mesh import Mesh


def load(
    size: float = 2.0,
    subdivisions: int = 10,
    dtype: torch.dtype = torch.float32,
    device: torch.device | str = "cpu",
) -> Mesh:
    """Create a flat triangulated square in the z=0 plane.

    Triangles are wound counterclockwise when seen from +z. The plane has a
    boundary, so it cannot be refined with the Butterfly scheme.

    Parameters
    ----------
    size : float
        Size of the plane (length of each side), centered on the origin.
    subdivisions : int
        Number of subdivisions per edge. Creates (subdivisions+1)^2 vertices
        and 2*subdivisions^2 triangles.
    dtype : torch.dtype
        Dtype of the vertex positions.
    device : torch.device or str
        Compute device ('cpu' or 'cuda').

    Returns
    -------
    Mesh
        Mesh with n_manifold_dims=2, n_spatial_dims=3.

    Examples
    --------
    >>> from meshrefine.mesh.primitives.surfaces import plane
    >>> mesh = plane.load(subdivisions=2)
    >>> mesh.n_points, mesh.n_cells
    (9, 8)
    """
    if size <= 0:
        raise ValueError(f"size must be positive, got {size=}")
    if subdivisions < 1:
        raise ValueError(f"subdivisions must be at least 1, got {subdivisions=}")

    n = subdivisions + 1

    ### Grid of points; point i * n + j sits at (x[i], y[j])
    x = torch.linspace(-size / 2, size / 2, n, dtype=dtype, device=device)
    y = torch.linspace(-size / 2, size / 2, n, dtype=dtype, device=device)
    xx, yy = torch.meshgrid(x, y, indexing="ij")
    points = torch.stack(
        [xx.flatten(), yy.flatten(), torch.zeros_like(xx.flatten())], dim=1
    )

    ### Two triangles per grid square
    i, j = torch.meshgrid(
        torch.arange(subdivisions, device=device),
        torch.arange(subdivisions, device=device),
        indexing="ij",
    )
    corner = (i * n + j).flatten()
    lower = torch.stack([corner, corner + n, corner + 1], dim=1)
    upper = torch.stack([corner + 1, corner + n, corner + n + 1], dim=1)
    cells = torch.stack([lower, upper], dim=1).reshape(-1, 3)

    return Mesh(points=points, cells=cells)
