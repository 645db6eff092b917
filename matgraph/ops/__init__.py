from .opset import (
    INPUT_OP,
    ELEM_BINARY_OPS,
    ELEM_UNARY_OPS,
    LINALG_OPS,
    SUPPORTED_OPS,
    op_class,
    op_classes,
)

__all__ = [
    "INPUT_OP",
    "ELEM_BINARY_OPS",
    "ELEM_UNARY_OPS",
    "LINALG_OPS",
    "SUPPORTED_OPS",
    "op_class",
    "op_classes",
]
