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

"""Derived-value cache stored inside a mesh's data TensorDicts.

Derived connectivity (e.g. half-edge twins, stored per cell with shape
(n_cells, 3)) lives under the reserved ``"_cache"`` key so that it travels
with the mesh under ``.to(device)`` and is dropped by ``strip_caches``.
"""

import torch
from tensordict import TensorDict

CACHE_KEY = "_cache"


def get_cached(data: TensorDict, key: str) -> torch.Tensor | None:
    """Return ``data["_cache", key]``, or ``None`` if it has not been computed."""
    return data.get((CACHE_KEY, key), None)


def set_cached(data: TensorDict, key: str, value: torch.Tensor) -> None:
    """Store ``value`` under ``data["_cache", key]``, creating the sub-dict on first use.

    ``value`` must share the leading batch dimension of ``data``.
    """
    if CACHE_KEY not in data.keys():
        data[CACHE_KEY] = TensorDict({}, batch_size=data.batch_size, device=data.device)
    data[(CACHE_KEY, key)] = value


def without_cache(data: TensorDict) -> TensorDict:
    """Return a view of ``data`` with the ``"_cache"`` sub-dict removed."""
    return data.exclude(CACHE_KEY)
