"""
Numerical tolerances for comparing tape results against references.

Picks a graph-level tolerance from the op mix and the element types: integer
graphs compare exactly, transcendentals and accumulations get looser bounds,
and f64-only graphs are tightened.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from matgraph.graph import Graph
from matgraph.ops import LINALG_OPS


@dataclass(frozen=True)
class Tolerances:
    atol: float
    rtol: float

    def to_dict(self) -> Dict[str, float]:
        return {"atol": float(self.atol), "rtol": float(self.rtol)}


EXACT = Tolerances(0.0, 0.0)

# Per-op baseline tolerances for f32 outputs; the graph takes the max across ops.
_OP_TOL_F32: Dict[str, Tolerances] = {
    "exp": Tolerances(3e-4, 3e-4),
    "tanh": Tolerances(1e-5, 1e-5),
    "sqrt": Tolerances(1e-5, 1e-5),
    "div": Tolerances(1e-5, 1e-5),
    # Dot products round differently across BLAS implementations and devices.
    "mm": Tolerances(1e-4, 1e-4),
    "mv": Tolerances(1e-4, 1e-4),
    "vm": Tolerances(1e-4, 1e-4),
    "dot": Tolerances(1e-4, 1e-4),
}

_BASE_F32 = Tolerances(1e-6, 1e-6)
_CAP = Tolerances(1e-3, 1e-3)
_F64_SCALE = 1e-6


def _graph_of(source: Any) -> Graph:
    return source if isinstance(source, Graph) else source.graph


def infer_tolerances(source: Any) -> Tolerances:
    """Infer (atol, rtol) for a `Graph` or a `TapeMachine`."""
    g = _graph_of(source)
    dtypes = {n.dtype for n in g.nodes}
    if dtypes and all(d.startswith("i") for d in dtypes):
        return EXACT

    tol = _BASE_F32
    for n in g.nodes:
        op_tol = _OP_TOL_F32.get(n.op)
        if op_tol is None:
            continue
        tol = Tolerances(atol=max(tol.atol, op_tol.atol), rtol=max(tol.rtol, op_tol.rtol))

    # Long accumulation chains compound rounding error.
    depth = sum(1 for n in g.nodes if n.op in LINALG_OPS and n.op != "transpose")
    if depth > 1:
        tol = Tolerances(atol=tol.atol * depth, rtol=tol.rtol * depth)

    float_dtypes = {d for d in dtypes if d.startswith("f")}
    if float_dtypes == {"f64"}:
        tol = Tolerances(atol=tol.atol * _F64_SCALE, rtol=tol.rtol * _F64_SCALE)

    return Tolerances(atol=min(tol.atol, _CAP.atol), rtol=min(tol.rtol, _CAP.rtol))


__all__ = ["Tolerances", "EXACT", "infer_tolerances"]
