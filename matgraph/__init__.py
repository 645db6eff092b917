"""
matgraph: declare matrix computations as a graph and run them on a tape machine.

Architecture:
* `matgraph.graph`: graph construction (input nodes, ops, initializers, output bindings).
* `matgraph.tensor`: dense tensor values built from a shape and a flat backing buffer.
* `matgraph.vm`: the tape machine, a linear torch.fx program run by torch.
* `matgraph.printer`: MLIR-like program listings.
* `backends.cuda`: CUDA kernel module naming and device selection.
* `verify`: tolerances and flat-buffer comparison for regression checks.
"""
