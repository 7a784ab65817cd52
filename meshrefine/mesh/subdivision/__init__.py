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


"""Butterfly subdivision of closed triangle meshes.

The modified Butterfly scheme is interpolating: original vertices are kept
verbatim and one new vertex is inserted per edge, positioned by an 8-point
stencil of neighboring vertices. Every triangle is split into 4.

Building blocks:
- Stencil rules: :func:`vertex_rule`, :func:`edge_rule`, :func:`butterfly_weights`
- Builder: :class:`SubdivisionMeshBuilder` (deduplicating, two-phase)
- Driver: :func:`subdivide_butterfly`

Example:
    >>> from meshrefine.mesh.subdivision import subdivide_butterfly
    >>> from meshrefine.mesh.primitives.surfaces import tetrahedron_surface
    >>> mesh = tetrahedron_surface.load()
    >>> refined = subdivide_butterfly(mesh, tension=0.0)
    >>> assert refined.n_cells == mesh.n_cells * 4
"""

from meshrefine.mesh.subdivision._builder import (
    SourceEdge,
    SourceKey,
    SourceVertex,
    SubdivisionMeshBuilder,
)
from meshrefine.mesh.subdivision._stencil import (
    DEFAULT_TENSION,
    butterfly_weights,
    check_stencils,
    edge_rule,
    evaluate_edge_stencil,
    gather_stencil_vertices,
    vertex_rule,
)
from meshrefine.mesh.subdivision.butterfly import subdivide_butterfly
