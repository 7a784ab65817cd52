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

from typing import TYPE_CHECKING, Any, Self

import torch
from tensordict import TensorDict, tensorclass

from meshrefine.mesh.halfedge import HalfEdges, compute_half_edge_twins
from meshrefine.mesh.utilities._cache import get_cached, set_cached, without_cache
from meshrefine.mesh.utilities.mesh_repr import format_mesh_repr


@tensorclass(tensor_only=True)
class Mesh:
    r"""A PyTorch-based triangle surface mesh with lazily derived half-edges.

    A ``Mesh`` stores vertex coordinates and cell connectivity as tensors, plus
    field data attached at each point, each cell, or globally. For triangle
    meshes (``n_manifold_dims == 2``) the half-edge connectivity used by the
    Butterfly subdivision is derived on first access of :attr:`half_edges`
    and cached alongside the cell data.

    **Core Data Structure**

    - ``points``: Vertex coordinates with shape :math:`(N_p, D_s)`. The row
      index of a point is its stable identity.
    - ``cells``: Cell connectivity with shape :math:`(N_c, D_m + 1)`. For
      triangles, each row lists 3 point indices in winding order; the winding
      defines the orientation of the face.

    **Attaching Field Data**

    - ``point_data``: Per-vertex quantities (temperature, colors, UVs)
    - ``cell_data``: Per-cell quantities (material ID, pressure)
    - ``global_data``: Mesh-level quantities

    All data is stored in ``TensorDict`` containers that move together with the
    mesh geometry under ``.to(device)`` calls.

    Parameters
    ----------
    points : torch.Tensor
        Vertex coordinates with shape :math:`(N_p, D_s)`. Must be floating-point.
    cells : torch.Tensor
        Cell connectivity with shape :math:`(N_c, D_m + 1)`. Must be integer dtype.
    point_data : TensorDict or dict[str, torch.Tensor], optional
        Per-vertex data. Dicts are automatically converted to TensorDict.
    cell_data : TensorDict or dict[str, torch.Tensor], optional
        Per-cell data. Dicts are automatically converted to TensorDict.
    global_data : TensorDict or dict[str, torch.Tensor], optional
        Mesh-level data. Dicts are automatically converted to TensorDict.

    Raises
    ------
    ValueError
        If ``points`` is not 2D, ``cells`` is not 2D, or manifold dimension
        exceeds spatial dimension.
    TypeError
        If ``cells`` has a floating-point dtype (indices must be integers).

    Examples
    --------
    A tetrahedron surface, refined once:

    >>> import torch
    >>> from meshrefine.mesh import Mesh
    >>> points = torch.tensor([
    ...     [1.0, 1.0, 1.0],
    ...     [1.0, -1.0, -1.0],
    ...     [-1.0, 1.0, -1.0],
    ...     [-1.0, -1.0, 1.0],
    ... ])
    >>> cells = torch.tensor([[0, 1, 2], [0, 3, 1], [0, 2, 3], [1, 3, 2]])
    >>> mesh = Mesh(points=points, cells=cells)
    >>> mesh.half_edges.is_closed
    True
    >>> refined = mesh.subdivide(levels=1, tension=0.0)
    >>> refined.n_points, refined.n_cells
    (10, 16)
    """

    points: torch.Tensor  # shape: (n_points, n_spatial_dimensions)
    cells: torch.Tensor  # shape: (n_cells, n_manifold_dimensions + 1)
    point_data: TensorDict
    cell_data: TensorDict
    global_data: TensorDict

    def __init__(
        self,
        points: torch.Tensor,
        cells: torch.Tensor,
        point_data: TensorDict | dict[str, torch.Tensor] | None = None,
        cell_data: TensorDict | dict[str, torch.Tensor] | None = None,
        global_data: TensorDict | dict[str, torch.Tensor] | None = None,
    ) -> None:
        ### Assign tensorclass fields
        self.points = points
        self.cells = cells

        self.point_data = _as_tensordict(
            point_data, batch_size=[self.n_points], device=self.points.device
        )
        self.cell_data = _as_tensordict(
            cell_data, batch_size=[self.n_cells], device=self.cells.device
        )
        self.global_data = _as_tensordict(
            global_data, batch_size=[], device=self.points.device
        )

        ### Validate shapes and dtypes
        if not torch.compiler.is_compiling():
            if self.points.ndim != 2:
                raise ValueError(
                    f"`points` must have shape (n_points, n_spatial_dimensions), but got {self.points.shape=}."
                )
            if self.cells.ndim != 2:
                raise ValueError(
                    f"`cells` must have shape (n_cells, n_manifold_dimensions + 1), but got {self.cells.shape=}."
                )
            if self.n_manifold_dims > self.n_spatial_dims:
                raise ValueError(
                    f"`n_manifold_dims` must be <= `n_spatial_dims`, but got {self.n_manifold_dims=} > {self.n_spatial_dims=}."
                )
            if torch.is_floating_point(self.cells):
                raise TypeError(
                    f"`cells` must have an int-like dtype, but got {self.cells.dtype=}."
                )
            if self.points.device != self.cells.device:
                raise ValueError(
                    f"`points` and `cells` must be on the same device, "
                    f"but got {self.points.device=} and {self.cells.device=}."
                )

    if TYPE_CHECKING:
        # Type stubs for methods dynamically added by @tensorclass.
        def to(self, *args: Any, **kwargs: Any) -> Self:
            """Move mesh and all attached data to another device and/or dtype."""
            ...

        def clone(self) -> Self:
            """Return a shallow clone of this Mesh."""
            ...

    @property
    def n_points(self) -> int:
        return self.points.shape[0]

    @property
    def n_spatial_dims(self) -> int:
        return self.points.shape[-1]

    @property
    def n_cells(self) -> int:
        return self.cells.shape[0]

    @property
    def n_manifold_dims(self) -> int:
        return self.cells.shape[-1] - 1

    @property
    def half_edges(self) -> HalfEdges:
        """Half-edge connectivity of this triangle mesh.

        The twin array is the only part that requires a search; it is cached
        in ``cell_data["_cache"]["half_edge_twins"]`` with shape (n_cells, 3).

        Returns
        -------
        HalfEdges
            Arena with ``3 * n_cells`` half-edges; see
            :class:`~meshrefine.mesh.halfedge.HalfEdges` for the layout.

        Raises
        ------
        NotImplementedError
            If the mesh is not a triangle mesh.
        NonManifoldResultError
            If an edge is shared by more than two faces or the winding is
            inconsistent.
        """
        if self.n_manifold_dims != 2:
            raise NotImplementedError(
                f"Half-edge connectivity is only defined for triangle meshes, "
                f"but got {self.n_manifold_dims=}."
            )
        twins = get_cached(self.cell_data, "half_edge_twins")
        if twins is None:
            twins = compute_half_edge_twins(self.cells).reshape(self.n_cells, 3)
            set_cached(self.cell_data, "half_edge_twins", twins)
        return HalfEdges.from_cells(self.cells, twin=twins.reshape(-1))

    def is_watertight(self) -> bool:
        """Check whether every edge of the triangle mesh is shared by exactly two faces."""
        return self.half_edges.is_closed

    def subdivide(
        self,
        levels: int = 1,
        tension: float | None = None,
        check_invariants: bool = True,
    ) -> "Mesh":
        """Refine the mesh with repeated Butterfly subdivision.

        Parameters
        ----------
        levels : int, optional
            Number of subdivision passes. Each pass splits every triangle into 4,
            so the result has ``n_cells * 4**levels`` triangles. ``0`` returns
            the mesh unchanged.
        tension : float, optional
            Butterfly tension weight ``w``. Defaults to
            :data:`~meshrefine.mesh.subdivision.DEFAULT_TENSION` (1/16).
        check_invariants : bool, optional
            Validate the half-edge structure after each pass.

        Returns
        -------
        Mesh
            Refined mesh. Original vertices keep their positions exactly.

        Raises
        ------
        ValueError
            If ``levels < 0``.

        Examples
        --------
        >>> from meshrefine.mesh.primitives.surfaces import octahedron_surface
        >>> mesh = octahedron_surface.load()
        >>> mesh.subdivide(levels=2).n_cells
        128
        """
        from meshrefine.mesh.subdivision import DEFAULT_TENSION, subdivide_butterfly

        if levels < 0:
            raise ValueError(f"levels must be >= 0, got {levels=}")
        if tension is None:
            tension = DEFAULT_TENSION

        mesh = self
        for _ in range(levels):
            mesh = subdivide_butterfly(
                mesh, tension=tension, check_invariants=check_invariants
            )
        return mesh

    def validate(
        self,
        check_closed: bool = False,
        raise_on_error: bool = False,
    ):
        """Validate the half-edge structure of this mesh.

        Convenience method that delegates to
        :func:`meshrefine.mesh.validation.validate_half_edges`.

        Returns
        -------
        dict
            Dictionary with validation results.
        """
        from meshrefine.mesh.validation import validate_half_edges

        return validate_half_edges(
            mesh=self,
            check_closed=check_closed,
            raise_on_error=raise_on_error,
        )

    @property
    def statistics(self):
        """Summary statistics (counts, Euler characteristic, closedness)."""
        from meshrefine.mesh.validation import compute_mesh_statistics

        return compute_mesh_statistics(self)

    def strip_caches(self) -> "Mesh":
        r"""Return a new mesh with all cached values removed.

        Returns
        -------
        Mesh
            A new mesh with the same geometry and data, but without cached values.
        """
        return Mesh(
            points=self.points,
            cells=self.cells,
            point_data=without_cache(self.point_data),
            cell_data=without_cache(self.cell_data),
            global_data=without_cache(self.global_data),
        )


def _as_tensordict(
    data: TensorDict | dict[str, torch.Tensor] | None,
    batch_size: list[int],
    device: torch.device,
) -> TensorDict:
    """Convert optional mesh data to a TensorDict with the given batch size."""
    if isinstance(data, TensorDict):
        data.batch_size = torch.Size(batch_size)  # Ensure shape-compatible
        return data
    return TensorDict(
        {} if data is None else dict(data),
        batch_size=torch.Size(batch_size),
        device=device,
    )


### Override the tensorclass __repr__ with custom formatting
# Note: Must be done after class definition because @tensorclass overrides __repr__
# even when defined inside the class body
def _mesh_repr(self) -> str:
    return format_mesh_repr(self, exclude_cache=True)


Mesh.__repr__ = _mesh_repr  # type: ignore
