"""
Chained matrix multiply on fixed inputs with an exact regression check.

  A = [1 2; 3 4], B = [5 6; 7 8], C = [9 10; 11 12]   (f32, row-major)
  (A x B) x C must be exactly [413 454; 937 1030].

Any mismatch is fatal: the message goes to stderr and the exit status is 1.
"""

from __future__ import annotations

import argparse
from typing import List, Optional, Tuple

from matgraph.errors import ExecutionError, GraphError
from matgraph.graph import Binding, Graph, mul, new_matrix, read
from matgraph.tensor import new_tensor
from matgraph.vm import TapeMachine
from verify.compare import compare_flat


SHAPE = (2, 2)
MAT1 = [1, 2, 3, 4]
MAT2 = [5, 6, 7, 8]
MAT3 = [9, 10, 11, 12]
EXPECTED = [413, 454, 937, 1030]


def build() -> Tuple[Graph, Binding, Binding]:
    g = Graph("chained_matmul_deterministic")
    mat1 = new_matrix(g, "f32", shape=SHAPE, name="mat1", value=new_tensor(SHAPE, MAT1, "f32"))
    mat2 = new_matrix(g, "f32", shape=SHAPE, name="mat2", value=new_tensor(SHAPE, MAT2, "f32"))
    mat3 = new_matrix(g, "f32", shape=SHAPE, name="mat3", value=new_tensor(SHAPE, MAT3, "f32"))

    z = mul(mat1, mat2, name="z")
    z_out = read(z)
    z2 = mul(z, mat3, name="z2")
    z2_out = read(z2)
    return g, z_out, z2_out


def check(result: Binding) -> Optional[str]:
    """Return a failure message, or None when the result matches exactly."""
    expected = new_tensor(SHAPE, EXPECTED, "f32")
    if result.value is None:
        return "Deterministic test failed! Output was never computed."
    actual_data = result.value.data()
    expected_data = expected.data()
    if len(actual_data) != len(expected_data):
        return f"Deterministic test failed! Length mismatch. Expected: {len(expected_data)}, Got: {len(actual_data)}"
    diff = compare_flat(actual_data, expected_data, exact=True)
    if not diff.ok:
        i = diff.first_bad_index
        return (
            f"Deterministic test failed! Mismatch at index {i}. "
            f"Expected: {expected_data[i]:f}, Got: {actual_data[i]:f}\n"
            f"Expected:\n{expected}\nGot:\n{result}"
        )
    return None


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    ap.add_argument("--device", default=None, help="cpu | cuda | auto (default: $MATGRAPH_DEVICE or cpu)")
    ap.add_argument("--trace", action="store_true", help="log every executed instruction to stderr")
    ap.add_argument("--prog", action="store_true", help="print the compiled program before running")
    args = ap.parse_args(argv)

    try:
        g, _z_out, z2_out = build()
        machine = TapeMachine(g, device=args.device, trace=args.trace)
        if args.prog:
            print(machine.prog())
        machine.run_all()
    except (GraphError, ExecutionError) as e:
        raise SystemExit(str(e))

    failure = check(z2_out)
    if failure is not None:
        raise SystemExit(failure)
    print("Deterministic test passed!")
    print(f"Result:\n{z2_out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
