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

"""Errors raised by half-edge construction, subdivision and validation.

All errors subclass ``ValueError`` through :class:`MeshTopologyError`, so
callers that already guard mesh operations with ``except ValueError`` keep
working. None of these are transient: they describe malformed geometric input
and re-running the same operation on the same mesh fails the same way.
"""


class MeshTopologyError(ValueError):
    """Base class for topological defects found in a mesh."""


class MalformedNeighborhoodError(MeshTopologyError):
    """An edge stencil references a half-edge link that does not exist.

    Raised when the 8-point Butterfly neighborhood of an edge cannot be
    resolved, typically because the edge (or one of its neighbors) lies on an
    open boundary and has no twin.
    """


class NonManifoldResultError(MeshTopologyError):
    """Twin pairing is not unique, or a half-edge is unmatched in a closed mesh."""


class MeshInvariantError(MeshTopologyError):
    """A finalized mesh violates a half-edge consistency invariant."""
