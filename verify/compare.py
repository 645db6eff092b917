"""
Flat-buffer comparison used by regression checks.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import numpy as np

from verify.tolerances import EXACT, Tolerances


@dataclass
class DiffResult:
    ok: bool
    max_abs_err: float
    max_rel_err: float
    first_bad_index: Optional[int]
    summary: str


def compare_flat(actual: Any, expected: Any, tol: Optional[Tolerances] = None, *, exact: bool = False) -> DiffResult:
    """
    Compare two buffers element by element after flattening (row-major).

    With `exact=True` (or an all-zero tolerance) values must be identical;
    otherwise an element passes when |a - e| <= atol + rtol * |e|.
    """
    a = np.asarray(actual).reshape(-1)
    e = np.asarray(expected).reshape(-1)
    if a.size != e.size:
        return DiffResult(False, float("inf"), float("inf"), None, f"length mismatch: expected {e.size}, got {a.size}")
    if a.size == 0:
        return DiffResult(True, 0.0, 0.0, None, "ok")

    tol = EXACT if exact else (tol or Tolerances(1e-3, 1e-3))
    a_f = a.astype(np.float64, copy=False)
    e_f = e.astype(np.float64, copy=False)

    # Non-finite values must match in position and value (NaN matches NaN).
    a_nf = ~np.isfinite(a_f)
    e_nf = ~np.isfinite(e_f)
    if np.any(a_nf) or np.any(e_nf):
        bad_nf = (a_nf != e_nf) | (a_nf & e_nf & ~((a_f == e_f) | (np.isnan(a_f) & np.isnan(e_f))))
        if np.any(bad_nf):
            idx = int(np.argmax(bad_nf))
            return DiffResult(False, float("inf"), float("inf"), idx, f"non-finite mismatch at {idx}: expected {e[idx]}, got {a[idx]}")
    finite = ~(a_nf | e_nf)

    abs_err = np.zeros_like(e_f)
    abs_err[finite] = np.abs(a_f[finite] - e_f[finite])
    rel_err = np.zeros_like(e_f)
    rel_err[finite] = abs_err[finite] / (np.abs(e_f[finite]) + 1e-8)
    max_abs = float(abs_err.max())
    max_rel = float(rel_err.max())

    thresh = np.zeros_like(e_f)
    thresh[finite] = tol.atol + tol.rtol * np.abs(e_f[finite])
    viol = (abs_err > thresh) & finite
    if np.any(viol):
        idx = int(np.argmax(viol))
        return DiffResult(False, max_abs, max_rel, idx, f"mismatch at index {idx}: expected {e[idx]}, got {a[idx]}")
    return DiffResult(True, max_abs, max_rel, None, "ok")


__all__ = ["DiffResult", "compare_flat"]
