"""
Graph construction API: declare input nodes, add op nodes, bind readers.

Every constructor validates operands first and only then appends to the
graph, so a failing call leaves the graph unchanged.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

import numpy as np
import torch

from matgraph.diagnostics import Diagnostic, format_node_snippet, format_rich
from matgraph.errors import GraphError, ShapeError
from matgraph.graph.graph_types import Binding, Graph, Node, TensorType
from matgraph.graph.init import Initializer
from matgraph.ops import ELEM_BINARY_OPS, ELEM_UNARY_OPS, INPUT_OP
from matgraph.tensor import Tensor, as_tensor, dtype_of_numpy, numpy_dtype, torch_dtype


__all__ = [
    "new_tensor_node",
    "new_matrix",
    "new_vector",
    "new_scalar",
    "mul",
    "add",
    "sub",
    "hadamard_prod",
    "hadamard_div",
    "neg",
    "square",
    "sqrt",
    "exp",
    "tanh",
    "transpose",
    "read",
    "let",
]

_FLOAT_ONLY_UNARY = {"sqrt", "exp", "tanh"}


def _operand_error(op: str, message: str, operands: Sequence[Node], *, shape_error: bool = False) -> GraphError:
    diag = Diagnostic("error", f"{op}: {message}")
    sides = ("left", "right") if len(operands) == 2 else ("operand",) * len(operands)
    for side, n in zip(sides, operands):
        diag.notes.append(f"{side} operand {n.name}: {n.type}")
    text = format_rich(diag, snippet=format_node_snippet(op, operands))
    return ShapeError(text) if shape_error else GraphError(text)


def _check_graph(op: str, *nodes: Node) -> Graph:
    g = nodes[0].graph
    for n in nodes[1:]:
        if n.graph is not g:
            raise _operand_error(op, f"operands belong to different graphs ('{g.name}' vs '{n.graph.name}')", nodes)
    return g


def _check_dtypes(op: str, a: Node, b: Node) -> None:
    if a.dtype != b.dtype:
        raise _operand_error(op, f"dtype mismatch: {a.dtype} vs {b.dtype}", (a, b))


def _coerce_value(node_name: str, ttype: TensorType, value: Any) -> Tensor:
    """
    Typed values (Tensor, numpy, torch) keep their own dtype and must match the
    node. Plain Python scalars and lists take the node's dtype, provided the
    conversion is exact (no fractional or out-of-range data in an int node).
    """
    if isinstance(value, (np.ndarray, np.generic)):
        t = as_tensor(value, dtype_of_numpy(np.asarray(value).dtype))
    elif isinstance(value, (Tensor, torch.Tensor)):
        t = as_tensor(value)
    else:
        arr = np.asarray(value)
        if arr.dtype.kind not in "biuf":
            raise GraphError(f"value for '{node_name}' is not numeric (numpy dtype {arr.dtype})")
        want = numpy_dtype(ttype.dtype)
        if np.dtype(want).kind == "i":
            exact = bool(np.all(np.isfinite(arr)))
            if exact:
                exact = np.array_equal(arr.astype(want).astype(np.float64), arr.astype(np.float64))
            if not exact:
                raise GraphError(
                    f"value for '{node_name}' cannot be stored as {ttype.dtype} without loss: {arr.reshape(-1).tolist()}"
                )
        t = as_tensor(arr, ttype.dtype)
    if t.dtype != ttype.dtype:
        raise GraphError(f"value for '{node_name}' has dtype {t.dtype}, node is declared {ttype.dtype}")
    if t.shape != ttype.shape:
        raise ShapeError(
            f"value for '{node_name}' has shape {list(t.shape)}, node is declared {list(ttype.shape)}"
        )
    return t


# ---------------------------------------------------------------------------
# Input nodes
# ---------------------------------------------------------------------------


def new_tensor_node(
    g: Graph,
    dtype: str,
    *,
    shape: Sequence[int],
    name: Optional[str] = None,
    init: Optional[Initializer] = None,
    value: Any = None,
    rank: Optional[int] = None,
) -> Node:
    """
    Declare an input node. With `init` the value is drawn immediately from the
    graph's generator; with `value` it is copied in; with neither the node must
    be given a value via `let` before a run.
    """
    label = name or "<unnamed>"
    if name is not None and g.has_node(name):
        raise GraphError(f"duplicate node name: {name}")
    if init is not None and value is not None:
        raise GraphError(f"node '{label}': pass either init or value, not both")
    ttype = TensorType(dtype=dtype, shape=tuple(shape))
    if rank is not None and ttype.rank != rank:
        kind = {0: "scalar", 1: "vector", 2: "matrix"}.get(rank, f"rank-{rank} tensor")
        raise ShapeError(f"node '{label}': a {kind} needs a rank-{rank} shape, got {list(ttype.shape)}")
    val: Optional[Tensor] = None
    if value is not None:
        val = _coerce_value(label, ttype, value)
    elif init is not None:
        val = Tensor(init(ttype.dtype, ttype.shape, g.generator))
    return g.add_node(INPUT_OP, (), ttype, name=name, value=val, init=init)


def new_matrix(g: Graph, dtype: str, *, shape: Sequence[int], name: Optional[str] = None, init: Optional[Initializer] = None, value: Any = None) -> Node:
    return new_tensor_node(g, dtype, shape=shape, name=name, init=init, value=value, rank=2)


def new_vector(g: Graph, dtype: str, *, shape: int | Sequence[int], name: Optional[str] = None, init: Optional[Initializer] = None, value: Any = None) -> Node:
    shp = (shape,) if isinstance(shape, int) else tuple(shape)
    return new_tensor_node(g, dtype, shape=shp, name=name, init=init, value=value, rank=1)


def new_scalar(g: Graph, dtype: str, *, name: Optional[str] = None, init: Optional[Initializer] = None, value: Any = None) -> Node:
    return new_tensor_node(g, dtype, shape=(), name=name, init=init, value=value, rank=0)


# ---------------------------------------------------------------------------
# Op nodes
# ---------------------------------------------------------------------------


def mul(a: Node, b: Node, *, name: Optional[str] = None) -> Node:
    """
    Multiply with dispatch on operand rank:
      scalar * any          -> elementwise product
      vector . vector       -> inner product (scalar)
      matrix x vector       -> vector
      vector x matrix       -> vector
      matrix x matrix       -> matrix
    """
    g = _check_graph("mul", a, b)
    _check_dtypes("mul", a, b)
    ra, rb = a.type.rank, b.type.rank
    if ra == 0 or rb == 0:
        return _elemwise("mul", a, b, name=name)
    if ra > 2 or rb > 2:
        raise _operand_error("mul", f"unsupported operand ranks {ra} and {rb}", (a, b), shape_error=True)
    if ra == 1 and rb == 1:
        op, ok, out = "dot", a.shape[0] == b.shape[0], ()
    elif ra == 2 and rb == 1:
        op, ok, out = "mv", a.shape[1] == b.shape[0], (a.shape[0],)
    elif ra == 1 and rb == 2:
        op, ok, out = "vm", a.shape[0] == b.shape[0], (b.shape[1],)
    else:
        op, ok, out = "mm", a.shape[1] == b.shape[0], (a.shape[0], b.shape[1])
    if not ok:
        raise _operand_error("mul", f"inner dimensions do not agree: {a.type} x {b.type}", (a, b), shape_error=True)
    return g.add_node(op, (a, b), TensorType(a.dtype, out), name=name)


def _elemwise(op: str, a: Node, b: Node, *, name: Optional[str] = None) -> Node:
    assert op in ELEM_BINARY_OPS
    g = _check_graph(op, a, b)
    _check_dtypes(op, a, b)
    if a.shape == b.shape or b.type.is_scalar:
        out = a.shape
    elif a.type.is_scalar:
        out = b.shape
    else:
        raise _operand_error(op, f"shapes do not match: {a.type} vs {b.type}", (a, b), shape_error=True)
    attrs = {}
    if op == "div" and not torch_dtype(a.dtype).is_floating_point:
        attrs["rounding"] = "trunc"
    return g.add_node(op, (a, b), TensorType(a.dtype, out), name=name, attrs=attrs)


def add(a: Node, b: Node, *, name: Optional[str] = None) -> Node:
    return _elemwise("add", a, b, name=name)


def sub(a: Node, b: Node, *, name: Optional[str] = None) -> Node:
    return _elemwise("sub", a, b, name=name)


def hadamard_prod(a: Node, b: Node, *, name: Optional[str] = None) -> Node:
    return _elemwise("mul", a, b, name=name)


def hadamard_div(a: Node, b: Node, *, name: Optional[str] = None) -> Node:
    return _elemwise("div", a, b, name=name)


def _unary(op: str, x: Node, name: Optional[str]) -> Node:
    assert op in ELEM_UNARY_OPS
    if op in _FLOAT_ONLY_UNARY and not torch_dtype(x.dtype).is_floating_point:
        raise _operand_error(op, f"requires a float dtype, got {x.dtype}", (x,))
    return x.graph.add_node(op, (x,), x.type, name=name)


def neg(x: Node, *, name: Optional[str] = None) -> Node:
    return _unary("neg", x, name)


def square(x: Node, *, name: Optional[str] = None) -> Node:
    return _unary("square", x, name)


def sqrt(x: Node, *, name: Optional[str] = None) -> Node:
    return _unary("sqrt", x, name)


def exp(x: Node, *, name: Optional[str] = None) -> Node:
    return _unary("exp", x, name)


def tanh(x: Node, *, name: Optional[str] = None) -> Node:
    return _unary("tanh", x, name)


def transpose(x: Node, *, name: Optional[str] = None) -> Node:
    if not x.type.is_matrix:
        raise _operand_error("transpose", f"requires a matrix, got {x.type}", (x,), shape_error=True)
    rows, cols = x.shape
    return x.graph.add_node("transpose", (x,), TensorType(x.dtype, (cols, rows)), name=name)


# ---------------------------------------------------------------------------
# Bindings
# ---------------------------------------------------------------------------


def read(node: Node) -> Binding:
    """Register an output reader; its value is set after each successful run."""
    return node.graph.add_binding(node)


def let(node: Node, value: Any) -> None:
    """Replace the value of an input node."""
    if not node.is_input:
        raise GraphError(f"cannot bind a value to '{node.name}': it is computed by op '{node.op}'")
    node.value = _coerce_value(node.name, node.type, value)

