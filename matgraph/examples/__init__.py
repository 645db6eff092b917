"""
Runnable example programs (also installed as console scripts).

- `chained_matmul`: Glorot-initialised matrices, (mat1 x mat2) x mat3 on a tape machine.
- `chained_matmul_deterministic`: the same chain on fixed inputs with an exact regression check.
"""
