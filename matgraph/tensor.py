"""
Dense tensor values.

A `Tensor` is a thin, immutable-by-convention wrapper around a CPU
`torch.Tensor`. It is what bindings hold after a run and what callers pass to
`new_matrix(..., value=...)` / `let(...)`.
"""

from __future__ import annotations

import math
from typing import Any, Dict, List, Literal, Sequence, Tuple

import numpy as np
import torch

from matgraph.errors import GraphError, ShapeError


DType = Literal["f32", "f64", "i32", "i64"]

SUPPORTED_DTYPES: set[str] = {"f32", "f64", "i32", "i64"}

_TORCH_DTYPES: Dict[str, torch.dtype] = {
    "f32": torch.float32,
    "f64": torch.float64,
    "i32": torch.int32,
    "i64": torch.int64,
}

_NUMPY_DTYPES: Dict[str, Any] = {
    "f32": np.float32,
    "f64": np.float64,
    "i32": np.int32,
    "i64": np.int64,
}


def check_dtype(dtype: str) -> str:
    if dtype not in SUPPORTED_DTYPES:
        raise GraphError(f"unsupported dtype: {dtype} (expected one of {sorted(SUPPORTED_DTYPES)})")
    return dtype


def torch_dtype(dtype: str) -> torch.dtype:
    return _TORCH_DTYPES[check_dtype(dtype)]


def numpy_dtype(dtype: str) -> Any:
    return _NUMPY_DTYPES[check_dtype(dtype)]


def dtype_of_torch(dt: torch.dtype) -> str:
    for name, t in _TORCH_DTYPES.items():
        if t == dt:
            return name
    raise GraphError(f"unsupported torch dtype: {dt}")


def dtype_of_numpy(dt: Any) -> str:
    d = np.dtype(dt)
    for name, n in _NUMPY_DTYPES.items():
        if np.dtype(n) == d:
            return name
    raise GraphError(f"unsupported numpy dtype: {d}")


def check_shape(shape: Sequence[int]) -> Tuple[int, ...]:
    out: List[int] = []
    for i, d in enumerate(shape):
        if isinstance(d, bool) or not isinstance(d, (int, np.integer)):
            raise ShapeError(f"shape[{i}] must be int, got {type(d).__name__}")
        if int(d) <= 0:
            raise ShapeError(f"shape[{i}] must be positive, got {d}")
        out.append(int(d))
    return tuple(out)


class Tensor:
    """
    Owns its storage: the wrapped tensor is copied on construction and
    `to_torch()` hands out a copy, so callers cannot mutate a node or binding
    value in place.
    """

    __slots__ = ("_t",)

    def __init__(self, t: torch.Tensor) -> None:
        dtype_of_torch(t.dtype)
        self._t = t.detach().to("cpu", copy=True)

    @property
    def shape(self) -> Tuple[int, ...]:
        return tuple(int(d) for d in self._t.shape)

    @property
    def dtype(self) -> str:
        return dtype_of_torch(self._t.dtype)

    @property
    def size(self) -> int:
        return int(self._t.numel())

    def data(self) -> np.ndarray:
        """Flat row-major copy of the backing buffer in the tensor's element type."""
        return self._t.contiguous().reshape(-1).numpy().copy()

    def numpy(self) -> np.ndarray:
        return self._t.numpy().copy()

    def to_torch(self) -> torch.Tensor:
        return self._t.clone()

    def __repr__(self) -> str:
        return f"Tensor(dtype={self.dtype}, shape={list(self.shape)}, data={self.data().tolist()})"

    def __str__(self) -> str:
        return format_tensor(self)


def new_tensor(shape: Sequence[int], backing: Any, dtype: str | None = None) -> Tensor:
    """
    Build a dense tensor from a shape and a flat row-major backing buffer.

    `dtype` defaults to the backing's dtype when it is a numpy array, else `f32`.
    """
    shp = check_shape(shape)
    if dtype is None:
        dtype = dtype_of_numpy(backing.dtype) if isinstance(backing, np.ndarray) else "f32"
    arr = np.asarray(backing, dtype=numpy_dtype(dtype)).reshape(-1)
    want = math.prod(shp)
    if arr.size != want:
        raise ShapeError(f"backing has {arr.size} elements, shape {list(shp)} needs {want}")
    return Tensor(torch.from_numpy(arr.copy()).reshape(shp))


def as_tensor(value: Any, dtype: str | None = None) -> Tensor:
    if isinstance(value, Tensor):
        return value
    if isinstance(value, torch.Tensor):
        return Tensor(value if dtype is None else value.to(torch_dtype(dtype)))
    arr = np.asarray(value)
    if dtype is None:
        dtype = dtype_of_numpy(arr.dtype) if arr.dtype.kind in "fi" else "f32"
    arr = arr.astype(numpy_dtype(dtype))
    if arr.ndim == 0:
        return Tensor(torch.tensor(arr.item(), dtype=torch_dtype(dtype)))
    return new_tensor(arr.shape, arr.reshape(-1), dtype)


def _fmt_elem(v: Any) -> str:
    if isinstance(v, float):
        return f"{v:g}"
    return str(v)


def format_tensor(t: Tensor) -> str:
    arr = t.numpy()
    if arr.ndim == 0:
        return _fmt_elem(arr.item())
    if arr.ndim == 1:
        return "[" + "  ".join(_fmt_elem(x) for x in arr.tolist()) + "]"
    if arr.ndim != 2:
        return repr(t)
    rows = [[_fmt_elem(x) for x in row] for row in arr.tolist()]
    widths = [max(len(r[j]) for r in rows) for j in range(len(rows[0]))]
    body = ["  ".join(cell.rjust(widths[j]) for j, cell in enumerate(r)) for r in rows]
    if len(body) == 1:
        return f"[{body[0]}]"
    lines: List[str] = []
    for i, line in enumerate(body):
        if i == 0:
            left, right = "⎡", "⎤"
        elif i == len(body) - 1:
            left, right = "⎣", "⎦"
        else:
            left, right = "⎢", "⎥"
        lines.append(f"{left}{line}{right}")
    return "\n".join(lines)


__all__ = [
    "DType",
    "SUPPORTED_DTYPES",
    "Tensor",
    "new_tensor",
    "as_tensor",
    "format_tensor",
    "check_dtype",
    "check_shape",
    "torch_dtype",
    "numpy_dtype",
    "dtype_of_torch",
    "dtype_of_numpy",
]
