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


"""
Butterfly Refinement of Primitive Surfaces
==========================================

This example refines a closed primitive surface with the modified Butterfly
scheme and reports how the mesh grows level by level.

Run:

    # Refine an icosahedron twice with the classical tension (default)
    python butterfly_refinement.py

    # Override values from command line
    python butterfly_refinement.py levels=3 tension=0.0

    # Pick another primitive
    python butterfly_refinement.py \\
        primitive._target_=meshrefine.mesh.primitives.surfaces.octahedron_surface.load

Configuration Files
-------------------
- conf/butterfly_refinement.yaml  - primitive, levels, tension and device
"""

import logging

import hydra
import torch
from omegaconf import DictConfig, OmegaConf

from meshrefine.mesh import Mesh

logger = logging.getLogger(__name__)


@hydra.main(
    version_base=None,
    config_path="./conf",
    config_name="butterfly_refinement",
)
def main(cfg: DictConfig):
    """Build the configured primitive and refine it ``cfg.levels`` times."""
    logging.getLogger().setLevel(logging.INFO)
    logger.info("Resolved configuration:\n%s", OmegaConf.to_yaml(cfg))

    device = cfg.device
    if device == "cuda" and not torch.cuda.is_available():
        logger.warning("CUDA is not available, falling back to CPU")
        device = "cpu"

    mesh: Mesh = hydra.utils.instantiate(cfg.primitive, device=device)
    logger.info("Level 0: %s", dict(mesh.statistics))

    original_points = mesh.points
    for level in range(1, cfg.levels + 1):
        mesh = mesh.subdivide(levels=1, tension=cfg.tension)
        stats = mesh.statistics
        logger.info(
            "Level %d: %d points, %d triangles, %d edges, Euler characteristic %d",
            level,
            stats["n_points"],
            stats["n_cells"],
            stats["n_edges"],
            stats["euler_characteristic"],
        )

    ### Every original vertex is still a vertex of the refined mesh
    distances = torch.cdist(original_points, mesh.points).min(dim=1).values
    logger.info(
        "Largest distance from an original vertex to the refined mesh: %.3e",
        distances.max().item(),
    )

    radii = torch.norm(mesh.points, dim=-1)
    logger.info(
        "Radius range of the refined surface: [%.4f, %.4f]",
        radii.min().item(),
        radii.max().item(),
    )


if __name__ == "__main__":
    main()
