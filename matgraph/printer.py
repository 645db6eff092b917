"""
MLIR-like program listing for graphs and compiled tape machines (pure Python).
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from backends.cuda import dispatch_kernel
from matgraph.graph.graph_types import Graph, Node


@dataclass
class ProgramPrinterOptions:
    indent: int = 2
    deterministic: bool = False
    emit_kernels: bool = True
    emit_inits: bool = True
    emit_attrs: bool = True


def print_program(source: Union[Graph, Any], opts: Optional[ProgramPrinterOptions] = None) -> str:
    """
    Render a listing. `source` is a `Graph` or anything with a `.graph` and a
    compiled `.program` (a `TapeMachine`).
    """
    opts = opts or ProgramPrinterOptions()
    g: Graph = source if isinstance(source, Graph) else source.graph
    kernels: Dict[int, Optional[str]] = {}
    if isinstance(source, Graph):
        nodes = list(g.nodes)
        for n in nodes:
            kernels[n.id] = None if n.is_input else dispatch_kernel(n.op, n.dtype)
    else:
        nodes = [instr.node for instr in source.program]
        kernels = {instr.node.id: instr.kernel for instr in source.program}

    ind = " " * opts.indent
    inputs = [n for n in nodes if n.is_input]
    if opts.deterministic:
        inputs = sorted(inputs, key=lambda n: n.name)

    lines: List[str] = [f"tape @{g.name}("]
    sig = [f"{ind}%{n.name}: {n.type}{_fmt_source(n) if opts.emit_inits else ''}" for n in inputs]
    if sig:
        lines.append(",\n".join(sig))
    lines.append(") {")

    for n in nodes:
        if n.is_input:
            continue
        args = ", ".join(f"%{i.name}" for i in n.inputs)
        line = f"{ind}%{n.name} = tape.{n.op}({args})"
        if opts.emit_attrs and n.attrs:
            line += f" {{{_fmt_dict(n.attrs)}}}"
        line += f" : {n.type}"
        if opts.emit_kernels and kernels.get(n.id):
            line += f"  // kernel: {kernels[n.id]}"
        lines.append(line)

    reads = _unique_names(b.node for b in g.bindings)
    if reads:
        lines.append("")
        lines.append(f"{ind}read {', '.join('%' + r for r in reads)}")
    lines.append("}")
    return "\n".join(lines)


def write_program(source: Union[Graph, Any], path: str | Path, opts: Optional[ProgramPrinterOptions] = None) -> None:
    Path(path).write_text(print_program(source, opts) + "\n", encoding="utf-8")


def _fmt_source(n: Node) -> str:
    if n.init is not None:
        return f" = {n.init}"
    if n.value is not None:
        return " = value"
    return " = unbound"


def _unique_names(nodes: Any) -> List[str]:
    out: List[str] = []
    for n in nodes:
        if n.name not in out:
            out.append(n.name)
    return out


def _fmt_dict(d: Dict[str, Any]) -> str:
    return ", ".join(f"{k}={_fmt_value_any(d[k])}" for k in sorted(d))


def _fmt_value_any(v: Any) -> str:
    if isinstance(v, bool):
        return "true" if v else "false"
    if isinstance(v, str):
        return f'"{v}"'
    if isinstance(v, dict):
        return "{" + _fmt_dict(v) + "}"
    if isinstance(v, (list, tuple)):
        return "[" + ", ".join(_fmt_value_any(x) for x in v) + "]"
    return str(v)


__all__ = ["ProgramPrinterOptions", "print_program", "write_program"]
