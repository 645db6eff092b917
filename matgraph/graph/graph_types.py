"""
Core graph data structures: tensor types, nodes, output bindings, and the
graph container with its validation.

Nodes are appended in creation order and may only reference earlier nodes of
the same graph, so the node list is always a valid topological order.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

import torch

from matgraph.diagnostics import Diagnostic, closest_match, format_rich
from matgraph.errors import GraphError
from matgraph.graph.init import Initializer
from matgraph.ops import INPUT_OP, SUPPORTED_OPS
from matgraph.tensor import Tensor, check_dtype, check_shape


__all__ = [
    "TensorType",
    "Node",
    "Binding",
    "Graph",
    "default_seed",
]

# Default-name prefix for input nodes, keyed by rank.
_INPUT_KINDS = {0: "scalar", 1: "vector", 2: "matrix"}


def default_seed() -> Optional[int]:
    raw = os.getenv("MATGRAPH_SEED")
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw)
    except ValueError:
        return None


@dataclass(frozen=True)
class TensorType:
    dtype: str
    shape: Tuple[int, ...]

    def __post_init__(self) -> None:
        check_dtype(self.dtype)
        object.__setattr__(self, "shape", check_shape(self.shape))

    @property
    def rank(self) -> int:
        return len(self.shape)

    @property
    def is_scalar(self) -> bool:
        return self.rank == 0

    @property
    def is_vector(self) -> bool:
        return self.rank == 1

    @property
    def is_matrix(self) -> bool:
        return self.rank == 2

    def __str__(self) -> str:
        return f"{self.dtype}[{'x'.join(str(d) for d in self.shape)}]"


@dataclass(eq=False)
class Node:
    graph: "Graph" = field(repr=False)
    id: int
    name: str
    op: str
    inputs: Tuple["Node", ...]
    type: TensorType
    attrs: Dict[str, Any] = field(default_factory=dict)
    # Only input nodes carry values; op nodes are computed by a machine.
    value: Optional[Tensor] = None
    init: Optional[Initializer] = field(default=None, repr=False)

    @property
    def dtype(self) -> str:
        return self.type.dtype

    @property
    def shape(self) -> Tuple[int, ...]:
        return self.type.shape

    @property
    def is_input(self) -> bool:
        return self.op == INPUT_OP

    def __str__(self) -> str:
        return self.name


@dataclass(eq=False)
class Binding:
    """Output reader for a node; `value` is filled in by `TapeMachine.run_all`."""

    node: Node
    value: Optional[Tensor] = None

    def __str__(self) -> str:
        return "None" if self.value is None else str(self.value)


class Graph:
    def __init__(self, name: str = "main", *, seed: Optional[int] = None) -> None:
        self.name = name
        self.nodes: List[Node] = []
        self.bindings: List[Binding] = []
        self._by_name: Dict[str, Node] = {}
        self.generator = torch.Generator()
        if seed is None:
            seed = default_seed()
        if seed is None:
            self.seed = int(self.generator.seed())
        else:
            self.seed = int(seed)
            self.generator.manual_seed(self.seed)

    def __iter__(self) -> Iterator[Node]:
        return iter(self.nodes)

    def __len__(self) -> int:
        return len(self.nodes)

    def has_node(self, name: str) -> bool:
        return name in self._by_name

    def inputs(self) -> List[Node]:
        return [n for n in self.nodes if n.is_input]

    def by_name(self, name: str) -> Node:
        node = self._by_name.get(name)
        if node is not None:
            return node
        diag = Diagnostic("error", f"graph '{self.name}' has no node named '{name}'")
        sugg = closest_match(name, self._by_name.keys())
        if sugg:
            diag.notes.append(f"Did you mean '{sugg[0]}'?")
        diag.notes.append(f"Available nodes: {sorted(self._by_name)}")
        raise GraphError(format_rich(diag))

    def add_node(
        self,
        op: str,
        inputs: Tuple[Node, ...],
        type: TensorType,
        *,
        name: Optional[str] = None,
        attrs: Optional[Dict[str, Any]] = None,
        value: Optional[Tensor] = None,
        init: Optional[Initializer] = None,
    ) -> Node:
        if op != INPUT_OP and op not in SUPPORTED_OPS:
            raise GraphError(f"unsupported op: {op}")
        for i, inp in enumerate(inputs):
            if inp.graph is not self:
                raise GraphError(f"{op}: input[{i}] '{inp.name}' belongs to graph '{inp.graph.name}', not '{self.name}'")
        if name is None:
            name = self._fresh_name(op if op != INPUT_OP else _INPUT_KINDS.get(type.rank, "tensor"))
        elif name in self._by_name:
            raise GraphError(f"duplicate node name: {name}")
        node = Node(
            graph=self,
            id=len(self.nodes),
            name=name,
            op=op,
            inputs=tuple(inputs),
            type=type,
            attrs=dict(attrs or {}),
            value=value,
            init=init,
        )
        self.nodes.append(node)
        self._by_name[name] = node
        return node

    def add_binding(self, node: Node) -> Binding:
        if node.graph is not self:
            raise GraphError(f"cannot read node '{node.name}' of graph '{node.graph.name}' from graph '{self.name}'")
        b = Binding(node=node)
        self.bindings.append(b)
        return b

    def validate(self) -> None:
        seen: set[str] = set()
        for idx, node in enumerate(self.nodes):
            if node.id != idx:
                raise GraphError(f"node[{idx}] '{node.name}' has id {node.id}")
            if node.name in seen:
                raise GraphError(f"node[{idx}] duplicates name: {node.name}")
            seen.add(node.name)
            if node.is_input:
                if node.inputs:
                    raise GraphError(f"node[{idx}] input '{node.name}' must not have inputs")
                continue
            if node.op not in SUPPORTED_OPS:
                raise GraphError(f"node[{idx}].op unsupported: {node.op}")
            for inp in node.inputs:
                if inp.graph is not self or inp.id >= node.id:
                    raise GraphError(f"node[{idx}] '{node.name}' references '{inp.name}' out of order")

    def _fresh_name(self, prefix: str) -> str:
        base = f"{prefix}_{len(self.nodes)}"
        name = base
        k = 1
        while name in self._by_name:
            name = f"{base}_{k}"
            k += 1
        return name

    def __repr__(self) -> str:
        return f"Graph(name={self.name!r}, nodes={len(self.nodes)}, seed={self.seed})"
