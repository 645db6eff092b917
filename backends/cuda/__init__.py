"""
CUDA backend entrypoints.

Names the built-in kernel modules, maps graph ops onto kernels, and resolves
the torch device a tape machine runs on.
"""

from .builtin import (  # noqa: F401
    BLAS_MOD,
    BUILTIN_MODULES,
    CUDAGEN,
    ELEM_BIN_OP_MOD,
    ELEM_UNARY_OP_MOD,
    CudaKernelError,
    builtin_modules,
    builtin_modules_available,
    kernel_module_for,
    kernel_name,
    qualified_kernel_name,
    dispatch_kernel,
)
from .runtime import CudaRuntimeError, cuda_available, default_device_pref, resolve_device  # noqa: F401

__all__ = [
    "BLAS_MOD",
    "BUILTIN_MODULES",
    "CUDAGEN",
    "ELEM_BIN_OP_MOD",
    "ELEM_UNARY_OP_MOD",
    "CudaKernelError",
    "builtin_modules",
    "builtin_modules_available",
    "kernel_module_for",
    "kernel_name",
    "qualified_kernel_name",
    "dispatch_kernel",
    "CudaRuntimeError",
    "cuda_available",
    "default_device_pref",
    "resolve_device",
]
