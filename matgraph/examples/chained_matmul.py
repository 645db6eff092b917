"""
Chained matrix multiply on randomly initialised matrices.

Declares three 2x2 f32 matrices (Glorot uniform / normal), builds
z = mat1 x mat2 and z2 = z x mat3, runs the tape machine and prints the
bound outputs before and after the run. z2 is checked against a direct torch
computation on the same inputs.

Examples:
  python -m matgraph.examples.chained_matmul --seed 7
  python -m matgraph.examples.chained_matmul --prog --trace
"""

from __future__ import annotations

import argparse
from typing import List, Optional, Tuple

from matgraph.errors import ExecutionError, GraphError
from matgraph.graph import Binding, Graph, Node, glorot_n, glorot_u, mul, new_matrix, read
from matgraph.vm import TapeMachine
from verify.compare import compare_flat
from verify.tolerances import infer_tolerances


def build(seed: Optional[int] = None) -> Tuple[Graph, List[Node], Binding, Binding]:
    g = Graph("chained_matmul", seed=seed)
    mat1 = new_matrix(g, "f32", shape=(2, 2), name="mat1", init=glorot_u(1.0))
    mat2 = new_matrix(g, "f32", shape=(2, 2), name="mat2", init=glorot_n(1.0))
    mat3 = new_matrix(g, "f32", shape=(2, 2), name="mat3", init=glorot_n(1.0))

    z = mul(mat1, mat2, name="z")
    z_out = read(z)
    z2 = mul(z, mat3, name="z2")
    z2_out = read(z2)
    return g, [mat1, mat2, mat3], z_out, z2_out


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    ap.add_argument("--seed", type=int, default=None, help="generator seed (default: $MATGRAPH_SEED or random)")
    ap.add_argument("--device", default=None, help="cpu | cuda | auto (default: $MATGRAPH_DEVICE or cpu)")
    ap.add_argument("--trace", action="store_true", help="log every executed instruction to stderr")
    ap.add_argument("--prog", action="store_true", help="print the compiled program before running")
    args = ap.parse_args(argv)

    try:
        g, (mat1, mat2, mat3), z_out, z2_out = build(args.seed)
    except GraphError as e:
        raise SystemExit(str(e))

    print(mat1.value.data())
    print(mat2.value.data())

    try:
        machine = TapeMachine(g, device=args.device, trace=args.trace)
    except ExecutionError as e:
        raise SystemExit(str(e))
    if args.prog:
        print(machine.prog())

    print(z_out)
    try:
        machine.run_all()
    except ExecutionError as e:
        raise SystemExit(str(e))
    print(z_out)

    ref = (mat1.value.to_torch() @ mat2.value.to_torch()) @ mat3.value.to_torch()
    tol = infer_tolerances(machine)
    diff = compare_flat(z2_out.value.data(), ref.reshape(-1).numpy(), tol)
    if not diff.ok:
        raise SystemExit(f"z2 disagrees with the torch reference: {diff.summary} (atol={tol.atol}, rtol={tol.rtol})")
    print(z2_out)
    print(f"seed: {g.seed}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
