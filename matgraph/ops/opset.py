"""
Canonical operator set for matgraph.

This module only defines op names and their classes. It intentionally does NOT
import `matgraph.graph` (to avoid cycles) or `backends/` (backends own their
kernel naming, keyed by these classes).
"""

from __future__ import annotations

from typing import Dict, Literal


OpClass = Literal["input", "elem_binary", "elem_unary", "linalg"]

# Pseudo-op for declared variables (matrix/vector/scalar nodes).
INPUT_OP = "input"

# Elementwise binary ops. Operands share a shape, or one of them is a scalar.
ELEM_BINARY_OPS: set[str] = {
    "add",
    "sub",
    "mul",
    "div",
}

ELEM_UNARY_OPS: set[str] = {
    "neg",
    "square",
    "sqrt",
    "exp",
    "tanh",
}

# Ops that dispatch to BLAS-style routines rather than elementwise kernels.
LINALG_OPS: set[str] = {
    "mm",
    "mv",
    "vm",
    "dot",
    "transpose",
}

SUPPORTED_OPS: set[str] = set().union(ELEM_BINARY_OPS, ELEM_UNARY_OPS, LINALG_OPS)


def op_class(op: str) -> OpClass:
    if op == INPUT_OP:
        return "input"
    if op in ELEM_BINARY_OPS:
        return "elem_binary"
    if op in ELEM_UNARY_OPS:
        return "elem_unary"
    if op in LINALG_OPS:
        return "linalg"
    raise KeyError(f"unsupported op: {op}")


def op_classes() -> Dict[str, OpClass]:
    return {op: op_class(op) for op in sorted(SUPPORTED_OPS)}


__all__ = [
    "OpClass",
    "INPUT_OP",
    "ELEM_BINARY_OPS",
    "ELEM_UNARY_OPS",
    "LINALG_OPS",
    "SUPPORTED_OPS",
    "op_class",
    "op_classes",
]
