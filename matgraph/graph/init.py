"""
Value initializers for input nodes.

An initializer is called once, when the node is declared, so the node's value
is visible before any machine run.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

import torch

from matgraph.errors import GraphError, ShapeError
from matgraph.tensor import torch_dtype


_InitFn = Callable[[torch.dtype, Tuple[int, ...], Optional[torch.Generator]], torch.Tensor]


@dataclass(frozen=True)
class Initializer:
    name: str
    params: Dict[str, Any]
    fn: _InitFn
    float_only: bool = False

    def __call__(self, dtype: str, shape: Tuple[int, ...], generator: Optional[torch.Generator] = None) -> torch.Tensor:
        tdt = torch_dtype(dtype)
        if self.float_only and not tdt.is_floating_point:
            raise GraphError(f"{self.name} initializer requires a float dtype, got {dtype}")
        return self.fn(tdt, tuple(shape), generator)

    def __str__(self) -> str:
        args = ", ".join(f"{k}={v}" for k, v in self.params.items())
        return f"{self.name}({args})"


def _glorot_fans(shape: Tuple[int, ...]) -> Tuple[int, int]:
    if len(shape) < 2:
        raise ShapeError(f"Glorot initialization needs at least 2 dimensions, got shape {list(shape)}")
    receptive = math.prod(shape[2:])
    return shape[1] * receptive, shape[0] * receptive


def glorot_u(gain: float = 1.0) -> Initializer:
    """Glorot/Xavier uniform: U(-a, a) with a = gain * sqrt(6 / (fan_in + fan_out))."""

    def fn(dt, shape, gen):
        fan_in, fan_out = _glorot_fans(shape)
        limit = float(gain) * math.sqrt(6.0 / float(fan_in + fan_out))
        return torch.empty(shape, dtype=dt).uniform_(-limit, limit, generator=gen)

    return Initializer("glorot_u", {"gain": gain}, fn, float_only=True)


def glorot_n(gain: float = 1.0) -> Initializer:
    """Glorot/Xavier normal: N(0, std^2) with std = gain * sqrt(2 / (fan_in + fan_out))."""

    def fn(dt, shape, gen):
        fan_in, fan_out = _glorot_fans(shape)
        std = float(gain) * math.sqrt(2.0 / float(fan_in + fan_out))
        return torch.empty(shape, dtype=dt).normal_(0.0, std, generator=gen)

    return Initializer("glorot_n", {"gain": gain}, fn, float_only=True)


def uniform(low: float = 0.0, high: float = 1.0) -> Initializer:
    if not low < high:
        raise GraphError(f"uniform initializer needs low < high, got low={low} high={high}")
    return Initializer(
        "uniform",
        {"low": low, "high": high},
        lambda dt, shape, gen: torch.empty(shape, dtype=dt).uniform_(float(low), float(high), generator=gen),
        float_only=True,
    )


def gaussian(mean: float = 0.0, std: float = 1.0) -> Initializer:
    if std < 0:
        raise GraphError(f"gaussian initializer needs std >= 0, got {std}")
    return Initializer(
        "gaussian",
        {"mean": mean, "std": std},
        lambda dt, shape, gen: torch.empty(shape, dtype=dt).normal_(float(mean), float(std), generator=gen),
        float_only=True,
    )


def zeroes() -> Initializer:
    return Initializer("zeroes", {}, lambda dt, shape, gen: torch.zeros(shape, dtype=dt))


def ones() -> Initializer:
    return Initializer("ones", {}, lambda dt, shape, gen: torch.ones(shape, dtype=dt))


def values_of(v: float | int) -> Initializer:
    return Initializer("values_of", {"v": v}, lambda dt, shape, gen: torch.full(shape, v, dtype=dt))


__all__ = [
    "Initializer",
    "glorot_u",
    "glorot_n",
    "uniform",
    "gaussian",
    "zeroes",
    "ones",
    "values_of",
]
