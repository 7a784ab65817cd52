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

"""Half-edge invariant checks for triangle meshes.

Verifies that a mesh forms a consistent half-edge structure: cell indices are
in range, cells are non-degenerate, every ``twin`` relation is mutual and
reverses the edge, every face loop has exactly 3 half-edges, and ``next`` /
``prev`` are mutual inverses.
"""

from collections.abc import Mapping
from typing import TYPE_CHECKING

import torch

from meshrefine.mesh.exceptions import MeshInvariantError, NonManifoldResultError
from meshrefine.mesh.halfedge import HalfEdges, follow

if TYPE_CHECKING:
    from meshrefine.mesh.mesh import Mesh


def _record_failures(
    results: dict,
    name: str,
    mask: torch.Tensor,
    description: str,
    raise_on_error: bool,
) -> None:
    """Count the entries of ``mask`` and mark the report invalid if any are set."""
    indices = torch.where(mask)[0]
    n_failures = len(indices)
    results[f"n_{name}"] = n_failures

    if n_failures > 0:
        results["valid"] = False
        results[f"{name}_indices"] = indices
        if raise_on_error:
            raise MeshInvariantError(
                f"Found {n_failures} {description}.\n"
                f"First offending indices: {indices.tolist()[:10]}"
            )


def validate_half_edges(
    mesh: "Mesh",
    half_edges: HalfEdges | None = None,
    check_closed: bool = False,
    raise_on_error: bool = False,
) -> Mapping[str, bool | int | torch.Tensor]:
    """Validate the half-edge structure of a triangle mesh.

    Parameters
    ----------
    mesh : Mesh
        Triangle mesh to validate.
    half_edges : HalfEdges | None
        Half-edge arena to check. Defaults to ``mesh.half_edges``.
    check_closed : bool
        If True, half-edges without a twin make the mesh invalid.
    raise_on_error : bool
        If True, raise :class:`MeshInvariantError` on the first failed check.
        If False, return a report with all results.

    Returns
    -------
    Mapping[str, bool | int | torch.Tensor]
        Dictionary with validation results:
            - "valid": bool, True if all checks passed
            - "n_out_of_bounds_cells": int, cells with invalid vertex indices
            - "n_degenerate_cells": int, cells repeating a vertex
            - "is_manifold": bool, False if twins could not be paired
            - "n_asymmetric_twins": int, half-edges with ``twin.twin != e``
            - "n_reversed_twin_mismatches": int, twins not running opposite
            - "n_endpoint_mismatches": int, half-edges with ``e.end != e.next.start``
            - "n_broken_face_loops": int, half-edges not in a 3-cycle of one face
            - "n_next_prev_mismatches": int, half-edges with ``e.next.prev != e``
            - "n_boundary_half_edges": int, half-edges without a twin
            - "<check>_indices": Tensor of offending indices, for failed checks

    Raises
    ------
    MeshInvariantError
        If raise_on_error=True and validation fails.
    NotImplementedError
        If the mesh is not a triangle mesh.

    Examples
    --------
    >>> from meshrefine.mesh.primitives.surfaces import tetrahedron_surface
    >>> report = validate_half_edges(tetrahedron_surface.load(), check_closed=True)
    >>> assert report["valid"] == True
    """
    if mesh.n_manifold_dims != 2:
        raise NotImplementedError(
            f"Half-edge validation only supports triangle meshes, got {mesh.n_manifold_dims=}."
        )

    results: dict = {"valid": True}

    ### Check for out-of-bounds indices FIRST (nothing else is meaningful otherwise)
    out_of_bounds = ((mesh.cells < 0) | (mesh.cells >= mesh.n_points)).any(dim=1)
    _record_failures(
        results,
        "out_of_bounds_cells",
        out_of_bounds,
        f"cells with vertex indices outside [0, {mesh.n_points})",
        raise_on_error,
    )
    if results["n_out_of_bounds_cells"] > 0:
        return results

    ### Degenerate cells (a vertex repeated within a triangle)
    c = mesh.cells
    degenerate = (c[:, 0] == c[:, 1]) | (c[:, 1] == c[:, 2]) | (c[:, 0] == c[:, 2])
    _record_failures(
        results,
        "degenerate_cells",
        degenerate,
        "degenerate cells repeating a vertex",
        raise_on_error,
    )

    ### Resolve half-edges
    if half_edges is None:
        try:
            half_edges = mesh.half_edges
        except NonManifoldResultError as e:
            results["valid"] = False
            results["is_manifold"] = False
            if raise_on_error:
                raise MeshInvariantError(str(e)) from e
            return results
    results["is_manifold"] = True

    he = half_edges
    index = torch.arange(he.n_half_edges, device=he.start.device)

    ### Twins must be mutual and run in the opposite direction
    has_twin = he.twin >= 0
    twin_of_twin = follow(he.twin, he.twin)
    _record_failures(
        results,
        "asymmetric_twins",
        has_twin & (twin_of_twin != index),
        "half-edges whose twin does not point back (e.twin.twin != e)",
        raise_on_error,
    )
    twin_start = follow(he.start, he.twin)
    twin_end = follow(he.end, he.twin)
    _record_failures(
        results,
        "reversed_twin_mismatches",
        has_twin & ((twin_start != he.end) | (twin_end != he.start)),
        "half-edges whose twin does not run in the opposite direction",
        raise_on_error,
    )

    ### Face loops: consecutive half-edges chain, and next^3 is the identity
    _record_failures(
        results,
        "endpoint_mismatches",
        he.end != he.start[he.next],
        "half-edges whose end is not the start of their next half-edge",
        raise_on_error,
    )
    loop_3 = he.next[he.next[he.next]]
    _record_failures(
        results,
        "broken_face_loops",
        (loop_3 != index)
        | (he.next == index)
        | (he.next[he.next] == index)
        | (he.face[he.next] != he.face),
        "half-edges that are not part of a 3-edge face loop",
        raise_on_error,
    )
    _record_failures(
        results,
        "next_prev_mismatches",
        (he.prev[he.next] != index) | (he.next[he.prev] != index),
        "half-edges whose next and prev links are not mutual inverses",
        raise_on_error,
    )

    ### Boundary half-edges (only an error for meshes expected to be closed)
    n_boundary = int((~has_twin).sum())
    results["n_boundary_half_edges"] = n_boundary
    if check_closed:
        _record_failures(
            results,
            "boundary_half_edges",
            ~has_twin,
            "half-edges without a twin in a mesh expected to be closed",
            raise_on_error,
        )

    return results
