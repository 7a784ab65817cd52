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

"""Carrying point and cell data through a Butterfly refinement.

Point data follows the same rules as positions: values at original vertices
are copied, values at new edge vertices use the 8-point stencil weights.
Cell data is inherited by the four children of each parent triangle.
Cached entries are never carried over.
"""

import torch
from tensordict import TensorDict

from meshrefine.mesh.subdivision._stencil import evaluate_edge_stencil
from meshrefine.mesh.utilities._cache import without_cache


def interpolate_point_data(
    point_data: TensorDict,
    stencil: torch.Tensor,
    tension: float,
    source_rows: torch.Tensor,
) -> TensorDict:
    """Build the point data of the refined mesh.

    Candidate values are laid out as ``[original points..., half-edges...]``:
    row ``v`` is source vertex ``v`` and row ``n_original_points + e`` is the
    stencil evaluation for half-edge ``e``. ``source_rows`` selects one
    candidate row per refined vertex.

    Parameters
    ----------
    point_data : TensorDict
        Source point data, batch_size=(n_original_points,).
    stencil : torch.Tensor
        Stencil of every source half-edge, shape (n_half_edges, 8).
    tension : float
        Tension parameter ``w``.
    source_rows : torch.Tensor
        Candidate row of each refined vertex, shape (n_refined_points,).

    Returns
    -------
    TensorDict
        Refined point data, batch_size=(n_refined_points,).
    """
    point_data = without_cache(point_data)
    n_refined = len(source_rows)

    if len(point_data.keys()) == 0:
        return TensorDict(
            {},
            batch_size=torch.Size([n_refined]),
            device=source_rows.device,
        )

    def interpolate_tensor(tensor: torch.Tensor) -> torch.Tensor:
        """Evaluate one field at all candidate rows, then select the used rows."""
        # Integer/bool fields (IDs, flags) cannot be meaningfully blended
        if tensor.dtype.is_floating_point or tensor.dtype.is_complex:
            edge_values = evaluate_edge_stencil(tensor, stencil, tension)
        else:
            edge_values = torch.zeros(
                (len(stencil), *tensor.shape[1:]),
                dtype=tensor.dtype,
                device=tensor.device,
            )
        candidates = torch.cat([tensor, edge_values], dim=0)
        return candidates[source_rows]

    return point_data.apply(
        interpolate_tensor,
        batch_size=torch.Size([n_refined]),
    )


def propagate_cell_data_to_children(
    cell_data: TensorDict,
    parent_indices: torch.Tensor,
    n_total_children: int,
) -> TensorDict:
    """Propagate cell_data from parent cells to child cells.

    Each child cell inherits its parent's data values unchanged.

    Parameters
    ----------
    cell_data : TensorDict
        Original cell data, batch_size=(n_parent_cells,)
    parent_indices : torch.Tensor
        Parent cell index for each child, shape (n_total_children,)
    n_total_children : int
        Total number of child cells

    Returns
    -------
    TensorDict
        New cell_data with batch_size=(n_total_children,).

    Examples
    --------
        >>> import torch
        >>> from tensordict import TensorDict
        >>> # 2 parent cells, each splits into 4 children -> 8 total
        >>> cell_data = TensorDict({"pressure": torch.tensor([100.0, 200.0])}, batch_size=[2])
        >>> parent_indices = torch.tensor([0, 0, 0, 0, 1, 1, 1, 1])
        >>> new_data = propagate_cell_data_to_children(cell_data, parent_indices, 8)
        >>> new_data["pressure"].tolist()
        [100.0, 100.0, 100.0, 100.0, 200.0, 200.0, 200.0, 200.0]
    """
    cell_data = without_cache(cell_data)

    if len(cell_data.keys()) == 0:
        return TensorDict(
            {},
            batch_size=torch.Size([n_total_children]),
            device=parent_indices.device,
        )

    return cell_data.apply(
        lambda tensor: tensor[parent_indices],
        batch_size=torch.Size([n_total_children]),
    )
