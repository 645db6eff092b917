"""
Tape machine: compiles a graph into a linear torch.fx program and runs it.

The program (the "tape") has one placeholder per input node and one
call_function instruction per op node, in graph order. Execution is a single
blocking call into `torch.fx.Interpreter`; torch owns all numerics.
"""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

import torch
import torch.fx

from backends.cuda import CudaRuntimeError, dispatch_kernel, resolve_device
from matgraph.errors import ExecutionError, GraphError
from matgraph.graph.graph_types import Graph, Node
from matgraph.tensor import Tensor


_TORCH_OPS: Dict[str, Callable[..., Any]] = {
    "add": torch.add,
    "sub": torch.sub,
    "mul": torch.mul,
    "div": torch.div,
    "neg": torch.neg,
    "square": torch.square,
    "sqrt": torch.sqrt,
    "exp": torch.exp,
    "tanh": torch.tanh,
    "mm": torch.mm,
    "mv": torch.mv,
    "vm": torch.matmul,
    "dot": torch.dot,
    "transpose": torch.t,
}

_NODE_META_KEY = "matgraph_node"


def _log(msg: str) -> None:
    print(str(msg), file=sys.stderr, flush=True)


def _fx_name(node: Node) -> str:
    s = re.sub(r"\W", "_", node.name)
    return f"v{node.id}_{s}"


@dataclass(frozen=True)
class Instruction:
    index: int
    node: Node
    fx_node: torch.fx.Node
    # `<module>.<kernel>` the op would dispatch to on CUDA; None for inputs.
    kernel: Optional[str]

    @property
    def is_input(self) -> bool:
        return self.node.is_input


class _TapeInterpreter(torch.fx.Interpreter):
    def __init__(self, module: torch.fx.GraphModule, machine: "TapeMachine") -> None:
        super().__init__(module)
        self.extra_traceback = False
        self._machine = machine

    def run_node(self, n: torch.fx.Node) -> Any:
        node: Optional[Node] = n.meta.get(_NODE_META_KEY)
        try:
            result = super().run_node(n)
        except ExecutionError:
            raise
        except Exception as e:
            if node is None:
                raise
            raise ExecutionError(
                f"node '{node.name}' ({node.op}) failed: {type(e).__name__}: {e}", node=node.name
            ) from e
        if node is not None:
            self._machine._observe(node, result)
        return result


class TapeMachine:
    def __init__(
        self,
        g: Graph,
        *,
        device: Optional[str] = None,
        trace: bool = False,
        watch: Optional[Iterable[Node]] = None,
        log: Optional[Callable[[str], None]] = None,
    ) -> None:
        g.validate()
        self.graph = g
        try:
            self.device = resolve_device(device)
        except CudaRuntimeError as e:
            raise ExecutionError(str(e)) from e
        self.trace = bool(trace)
        self.log = log or _log
        self.watch: List[Node] = []
        for n in watch or []:
            if n.graph is not g:
                raise GraphError(f"cannot watch node '{n.name}' of graph '{n.graph.name}'")
            self.watch.append(n)
        self.watched: Dict[str, Tensor] = {}
        self.runs = 0
        self.program: List[Instruction] = []
        self.module: torch.fx.GraphModule
        self._outputs: List[Node] = []
        self._compiled_for: Tuple[int, int] = (-1, -1)
        self._compile()

    # ------------------------------------------------------------------
    # compilation
    # ------------------------------------------------------------------

    def _compile(self) -> None:
        g = self.graph
        fxg = torch.fx.Graph()
        env: Dict[int, torch.fx.Node] = {}
        program: List[Instruction] = []
        for node in g.nodes:
            if node.is_input:
                fx_node = fxg.placeholder(_fx_name(node))
                kernel = None
            else:
                args = tuple(env[i.id] for i in node.inputs)
                kwargs: Dict[str, Any] = {}
                if node.attrs.get("rounding"):
                    kwargs["rounding_mode"] = node.attrs["rounding"]
                fx_node = fxg.create_node("call_function", _TORCH_OPS[node.op], args, kwargs, name=_fx_name(node))
                kernel = dispatch_kernel(node.op, node.dtype)
            fx_node.meta[_NODE_META_KEY] = node
            env[node.id] = fx_node
            program.append(Instruction(index=len(program), node=node, fx_node=fx_node, kernel=kernel))

        wanted: Dict[int, Node] = {}
        for b in g.bindings:
            wanted[b.node.id] = b.node
        for n in self.watch:
            wanted[n.id] = n
        self._outputs = [wanted[k] for k in sorted(wanted)]
        fxg.output(tuple(env[n.id] for n in self._outputs))
        fxg.lint()

        self.program = program
        self.module = torch.fx.GraphModule(torch.nn.Module(), fxg, class_name=f"Tape_{re.sub(r'[^0-9A-Za-z_]', '_', g.name)}")
        self._compiled_for = (len(g.nodes), len(g.bindings))

    def _stale(self) -> bool:
        return self._compiled_for != (len(self.graph.nodes), len(self.graph.bindings))

    # ------------------------------------------------------------------
    # execution
    # ------------------------------------------------------------------

    def run_all(self) -> None:
        """
        Run the whole program once. On success every binding of the graph
        holds a fresh value; on failure bindings keep their previous values
        and `ExecutionError` is raised.
        """
        if self._stale():
            self._compile()
        args: List[torch.Tensor] = []
        for instr in self.program:
            if not instr.is_input:
                continue
            node = instr.node
            if node.value is None:
                raise ExecutionError(
                    f"input '{node.name}' has no value; declare it with init/value or bind one with let()",
                    node=node.name,
                )
            args.append(node.value.to_torch().to(self.device))

        self.watched = {}
        interp = _TapeInterpreter(self.module, self)
        try:
            results = interp.run(*args)
        except ExecutionError:
            raise
        except Exception as e:
            raise ExecutionError(f"tape execution failed: {type(e).__name__}: {e}") from e

        by_id = {n.id: Tensor(r) for n, r in zip(self._outputs, results)}
        for b in self.graph.bindings:
            b.value = by_id[b.node.id]
        self.runs += 1

    def _observe(self, node: Node, result: Any) -> None:
        if self.trace and not node.is_input:
            ins = ", ".join(i.name for i in node.inputs)
            self.log(f"[tape] {node.id:3d} {node.name} = {node.op}({ins}) : {node.type}")
        if any(w is node for w in self.watch):
            self.watched[node.name] = Tensor(result)

    def reset(self) -> None:
        for b in self.graph.bindings:
            b.value = None
        self.watched = {}

    # ------------------------------------------------------------------
    # introspection
    # ------------------------------------------------------------------

    def prog(self, **kwargs: Any) -> str:
        from matgraph.printer import ProgramPrinterOptions, print_program  # noqa: PLC0415

        if self._stale():
            self._compile()
        return print_program(self, ProgramPrinterOptions(**kwargs) if kwargs else None)

    def outputs(self) -> List[Node]:
        return list(self._outputs)

    def __repr__(self) -> str:
        return f"TapeMachine(graph={self.graph.name!r}, instructions={len(self.program)}, device={self.device})"


__all__ = ["Instruction", "TapeMachine"]
