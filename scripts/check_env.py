"""
Environment validation script.

Reports what is available in the current environment: interpreter, core
libraries, CUDA, and whether the built-in kernel modules exist on this
platform.
"""

from __future__ import annotations

import argparse
import importlib
import os
import platform
import sys
from dataclasses import dataclass
from pathlib import Path


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@dataclass(frozen=True)
class CheckResult:
    name: str
    ok: bool
    detail: str = ""
    hint: str = ""


def _check_python() -> CheckResult:
    v = sys.version_info
    ok = (v.major, v.minor) >= (3, 10)
    return CheckResult("python", ok, detail=f"{v.major}.{v.minor}.{v.micro}", hint="need Python>=3.10" if not ok else "")


def _check_import(mod: str, *, required: bool, hint: str) -> CheckResult:
    try:
        m = importlib.import_module(mod)
        ver = getattr(m, "__version__", None)
        detail = f"ok{(' ' + str(ver)) if ver else ''}"
        return CheckResult(mod, True, detail=detail)
    except Exception as e:
        return CheckResult(mod, False, detail=f"{type(e).__name__}: {e}", hint=(hint if required else f"optional: {hint}"))


def _check_cuda(*, required: bool) -> CheckResult:
    from backends.cuda import cuda_available  # noqa: PLC0415

    if cuda_available():
        import torch  # noqa: PLC0415

        return CheckResult("cuda", True, detail=torch.cuda.get_device_name(0))
    hint = "install a CUDA build of torch and check the driver"
    return CheckResult("cuda", not required, detail="not available", hint=hint if required else f"optional: {hint}")


def _check_builtin_kernels() -> CheckResult:
    from backends.cuda import builtin_modules, builtin_modules_available  # noqa: PLC0415

    if builtin_modules_available():
        return CheckResult("builtin_kernels", True, detail=", ".join(builtin_modules()))
    return CheckResult(
        "builtin_kernels",
        True,
        detail=f"not shipped for {platform.system()}/{platform.machine()}",
    )


def _check_device_pref() -> CheckResult:
    from backends.cuda import CudaRuntimeError, default_device_pref, resolve_device  # noqa: PLC0415

    pref = default_device_pref()
    try:
        dev = resolve_device(pref)
    except CudaRuntimeError as e:
        return CheckResult("device", False, detail=str(e), hint="unset MATGRAPH_DEVICE or set it to cpu/auto")
    return CheckResult("device", True, detail=f"MATGRAPH_DEVICE={os.getenv('MATGRAPH_DEVICE', '')!r} -> {dev}")


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--strict", action="store_true", help="treat optional components as required (fail if missing)")
    args = ap.parse_args()

    print(f"platform: {platform.platform()}")
    print(f"cwd: {os.getcwd()}")

    required = True
    opt = bool(args.strict)

    checks: list[CheckResult] = []
    checks.append(_check_python())
    checks.append(_check_import("numpy", required=required, hint="pip install -e ."))
    checks.append(_check_import("torch", required=required, hint="pip install -e ."))
    checks.append(_check_import("pytest", required=opt, hint="pip install -e '.[test]'"))
    checks.append(_check_cuda(required=opt))
    checks.append(_check_builtin_kernels())
    checks.append(_check_device_pref())

    ok_all = True
    for c in checks:
        status = "OK" if c.ok else "FAIL"
        print(f"[{status}] {c.name}: {c.detail}")
        if (not c.ok) and c.hint:
            print(f"  hint: {c.hint}")
        ok_all = ok_all and bool(c.ok)

    raise SystemExit(0 if ok_all else 1)


if __name__ == "__main__":
    main()
