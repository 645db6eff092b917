"""
CUDA device helpers.

Execution itself is delegated to torch; this module only decides which
device a machine runs on and reports why CUDA cannot be used.
"""

from __future__ import annotations

import os
from typing import Optional

import torch


class CudaRuntimeError(RuntimeError):
    pass


DEVICE_PREFS = ("cpu", "cuda", "auto")


def cuda_available() -> bool:
    try:
        return bool(torch.cuda.is_available())
    except RuntimeError:
        return False


def default_device_pref() -> str:
    raw = os.getenv("MATGRAPH_DEVICE", "cpu").strip().lower()
    return raw if raw in DEVICE_PREFS else "cpu"


def resolve_device(pref: Optional[str] = None) -> torch.device:
    """
    Map a preference (`cpu`, `cuda`, `auto`, or `cuda:N`) to a torch device.

    `auto` falls back to CPU silently; an explicit `cuda` request without a
    usable device is an error.
    """
    p = (pref or default_device_pref()).strip().lower()
    if p == "cpu":
        return torch.device("cpu")
    if p == "auto":
        return torch.device("cuda") if cuda_available() else torch.device("cpu")
    if p == "cuda" or p.startswith("cuda:"):
        if not cuda_available():
            raise CudaRuntimeError(f"device '{p}' requested but CUDA is not available (torch.cuda.is_available() is false)")
        return torch.device(p)
    raise CudaRuntimeError(f"unknown device preference: {pref!r} (expected one of {list(DEVICE_PREFS)})")


__all__ = ["CudaRuntimeError", "DEVICE_PREFS", "cuda_available", "default_device_pref", "resolve_device"]
