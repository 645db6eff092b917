import pytest

from backends.cuda.builtin import kernel_module_for
from matgraph.ops import INPUT_OP, SUPPORTED_OPS, op_class, op_classes


def test_op_classes_cover_supported_ops():
    classes = op_classes()
    assert set(classes) == SUPPORTED_OPS
    assert classes["mm"] == "linalg"
    assert classes["add"] == "elem_binary"
    assert classes["tanh"] == "elem_unary"


def test_input_is_not_a_supported_op():
    assert INPUT_OP not in SUPPORTED_OPS
    assert op_class(INPUT_OP) == "input"


def test_unknown_op():
    with pytest.raises(KeyError):
        op_class("conv2d")


@pytest.mark.parametrize("op", sorted(SUPPORTED_OPS))
def test_every_supported_op_has_a_kernel_module(op):
    assert kernel_module_for(op) in {"elembinop", "elemunaryop", "blas"}
