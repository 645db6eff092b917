"""
Built-in CUDA kernel modules.

The elementwise kernels are produced by the `cudagen` generator into two
modules, one for binary and one for unary ops. This file only names those
modules and maps graph ops onto kernel names; it does not generate or load
any CUDA source. The built-in modules are not shipped for macOS on arm64.
"""

from __future__ import annotations

import platform
from typing import Optional, Tuple

from matgraph.ops import op_class


CUDAGEN = "cudagen"

ELEM_BIN_OP_MOD = "elembinop"
ELEM_UNARY_OP_MOD = "elemunaryop"
# Linalg ops go to the vendor BLAS rather than a generated module.
BLAS_MOD = "blas"

BUILTIN_MODULES: Tuple[str, ...] = (ELEM_BIN_OP_MOD, ELEM_UNARY_OP_MOD)

_BLAS_ROUTINES = {
    "mm": "gemm",
    "mv": "gemv",
    "vm": "gemv_t",
    "dot": "dot",
    "transpose": "geam",
}


class CudaKernelError(KeyError):
    pass


def builtin_modules_available(system: Optional[str] = None, machine: Optional[str] = None) -> bool:
    s = (system if system is not None else platform.system()).lower()
    m = (machine if machine is not None else platform.machine()).lower()
    return not (s == "darwin" and m in {"arm64", "aarch64"})


def builtin_modules(system: Optional[str] = None, machine: Optional[str] = None) -> Tuple[str, ...]:
    return BUILTIN_MODULES if builtin_modules_available(system, machine) else ()


def kernel_module_for(op: str) -> str:
    try:
        cls = op_class(op)
    except KeyError:
        raise CudaKernelError(f"no CUDA kernel module for op: {op}") from None
    if cls == "elem_binary":
        return ELEM_BIN_OP_MOD
    if cls == "elem_unary":
        return ELEM_UNARY_OP_MOD
    if cls == "linalg":
        return BLAS_MOD
    raise CudaKernelError(f"op {op} does not dispatch a kernel")


def kernel_name(op: str, dtype: str) -> str:
    """Kernel symbol inside its module, e.g. `add_f32` or `gemm_f64`."""
    module = kernel_module_for(op)
    base = _BLAS_ROUTINES[op] if module == BLAS_MOD else op
    return f"{base}_{dtype}"


def qualified_kernel_name(op: str, dtype: str) -> str:
    return f"{kernel_module_for(op)}.{kernel_name(op, dtype)}"


def dispatch_kernel(op: str, dtype: str, system: Optional[str] = None, machine: Optional[str] = None) -> Optional[str]:
    """
    Kernel an op would dispatch to on this platform, or None when its module
    is one of the built-in modules and those are not shipped here.
    """
    module = kernel_module_for(op)
    if module in BUILTIN_MODULES and not builtin_modules_available(system, machine):
        return None
    return f"{module}.{kernel_name(op, dtype)}"


__all__ = [
    "CUDAGEN",
    "ELEM_BIN_OP_MOD",
    "ELEM_UNARY_OP_MOD",
    "BLAS_MOD",
    "BUILTIN_MODULES",
    "CudaKernelError",
    "builtin_modules_available",
    "builtin_modules",
    "kernel_module_for",
    "kernel_name",
    "qualified_kernel_name",
    "dispatch_kernel",
]
