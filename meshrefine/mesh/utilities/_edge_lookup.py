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

"""Edge hashing and lookup utilities.

Edges are identified by a single integer ``v0 * n + v1`` where ``n`` exceeds
every vertex index. Undirected edges are canonicalized to
``[min_vertex, max_vertex]`` before hashing so that an edge and its reverse
collide; directed edges are hashed as given. This module is used to pair
half-edges with their twins and to count unique edges.
"""

import torch


def hash_edges(edges: torch.Tensor, n_vertices: int, directed: bool = False) -> torch.Tensor:
    """Compute an integer hash for each edge.

    Parameters
    ----------
    edges : torch.Tensor
        Edge vertex indices, shape (n_edges, 2).
    n_vertices : int
        Strict upper bound on vertex indices.
    directed : bool
        If False (default), ``[a, b]`` and ``[b, a]`` hash identically.

    Returns
    -------
    torch.Tensor
        Shape (n_edges,), dtype int64.
    """
    if not directed:
        edges, _ = torch.sort(edges, dim=-1)
    edges = edges.to(torch.int64)
    return edges[:, 0] * n_vertices + edges[:, 1]


def find_edges_in_reference(
    reference_edges: torch.Tensor,
    query_edges: torch.Tensor,
    directed: bool = False,
) -> tuple[torch.Tensor, torch.Tensor]:
    """Find indices of query edges within a reference edge set.

    Uses hash-based lookup with O(n log n) complexity for sorting
    and O(m log n) for queries, where n = len(reference_edges)
    and m = len(query_edges).

    Parameters
    ----------
    reference_edges : torch.Tensor
        Reference edge set, shape (n_ref, 2). Each row is [v0, v1].
    query_edges : torch.Tensor
        Query edges to find, shape (n_query, 2). Each row is [v0, v1].
    directed : bool
        If False (default), edge order within each edge is ignored.
        If True, ``[a, b]`` only matches ``[a, b]``.

    Returns
    -------
    indices : torch.Tensor
        Shape (n_query,). For each query edge, the index in reference_edges
        where it was found. For unmatched edges, the value is undefined
        (use the matches mask to filter).
    matches : torch.Tensor
        Shape (n_query,) bool. True if query edge was found in reference_edges.

    Examples
    --------
    >>> ref = torch.tensor([[0, 1], [1, 2], [2, 3]])
    >>> query = torch.tensor([[2, 1], [5, 6], [3, 2]])
    >>> indices, matches = find_edges_in_reference(ref, query)
    >>> matches.tolist()
    [True, False, True]
    >>> _, matches = find_edges_in_reference(ref, query, directed=True)
    >>> matches.tolist()
    [False, False, False]
    """
    device = reference_edges.device

    ### Handle empty edge cases
    if len(reference_edges) == 0 or len(query_edges) == 0:
        return (
            torch.zeros(len(query_edges), dtype=torch.long, device=device),
            torch.zeros(len(query_edges), dtype=torch.bool, device=device),
        )

    ### Compute integer hash for each edge
    n_vertices = max(reference_edges.max().item(), query_edges.max().item()) + 1
    reference_hash = hash_edges(reference_edges, n_vertices, directed=directed)
    query_hash = hash_edges(query_edges, n_vertices, directed=directed)

    ### Sort reference hashes to enable binary search via searchsorted
    reference_hash_sorted, sort_indices = torch.sort(reference_hash)

    ### Find positions of query hashes in sorted reference
    positions = torch.searchsorted(reference_hash_sorted, query_hash)
    positions = positions.clamp(max=len(reference_hash_sorted) - 1)

    ### Verify that found positions are exact matches (not just insertion points)
    matches = reference_hash_sorted[positions] == query_hash

    ### Map back to original reference indices
    indices = sort_indices[positions]

    return indices, matches
