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

"""Utility functions for string-formatting Mesh representations."""

import torch
from tensordict import TensorDict

from meshrefine.mesh.utilities._cache import CACHE_KEY


def format_mesh_repr(mesh, exclude_cache: bool = True) -> str:
    """Format a complete Mesh representation.

    Parameters
    ----------
    mesh : Mesh
        The Mesh instance to format.
    exclude_cache : bool
        If True (default), cached values are left out of the data summaries.

    Returns
    -------
    str
        Formatted string representation of the mesh, e.g.::

            Mesh(manifold_dim=2, spatial_dim=3, n_points=4, n_cells=4)
                point_data : {}
                cell_data  : {material: ()}
                global_data: {}
    """
    ### First line: class name and key sizes
    parts = [
        f"manifold_dim={mesh.n_manifold_dims}",
        f"spatial_dim={mesh.n_spatial_dims}",
        f"n_points={mesh.n_points}",
        f"n_cells={mesh.n_cells}",
    ]
    device = mesh.device
    if device is not None:
        parts.append(f"device={device}")
    lines = [f"{mesh.__class__.__name__}({', '.join(parts)})"]

    ### One aligned line per data field
    data_fields = ["point_data", "cell_data", "global_data"]
    width = max(len(field) for field in data_fields)
    for field_name in data_fields:
        td = getattr(mesh, field_name)
        if exclude_cache:
            td = td.exclude(CACHE_KEY)
        summary = _format_tensordict_summary(td, batch_dims=len(td.batch_size))
        lines.append(f"    {field_name.ljust(width)}: {summary}")

    return "\n".join(lines)


def _format_tensordict_summary(td: TensorDict, batch_dims: int) -> str:
    """Summarize a TensorDict as ``{key: trailing_shape, ...}``, recursing into nested dicts."""
    items = []
    for key in sorted(td.keys()):
        value = td[key]
        if isinstance(value, TensorDict):
            nested = _format_tensordict_summary(value, batch_dims=len(value.batch_size))
            items.append(f"{key}: {nested}")
        elif isinstance(value, torch.Tensor):
            items.append(f"{key}: {tuple(value.shape[batch_dims:])}")
        else:
            items.append(f"{key}: <{type(value).__name__}>")
    return "{" + ", ".join(items) + "}"
