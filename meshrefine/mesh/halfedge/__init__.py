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


"""Half-edge connectivity for triangle meshes.

Half-edges are stored as integer index arrays (an arena) addressed by stable
indices, with ``next``/``prev``/``twin`` stored as indices rather than object
references. See :class:`HalfEdges` for the layout.
"""

from meshrefine.mesh.halfedge._half_edges import (
    NO_TWIN,
    HalfEdges,
    compute_half_edge_twins,
    follow,
)
