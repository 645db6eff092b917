from .graph_types import Binding, Graph, Node, TensorType, default_seed
from .init import Initializer, gaussian, glorot_n, glorot_u, ones, uniform, values_of, zeroes
from .build import (
    add,
    exp,
    hadamard_div,
    hadamard_prod,
    let,
    mul,
    neg,
    new_matrix,
    new_scalar,
    new_tensor_node,
    new_vector,
    read,
    sqrt,
    square,
    sub,
    tanh,
    transpose,
)

__all__ = [
    "Binding",
    "Graph",
    "Node",
    "TensorType",
    "default_seed",
    "Initializer",
    "gaussian",
    "glorot_n",
    "glorot_u",
    "ones",
    "uniform",
    "values_of",
    "zeroes",
    "add",
    "exp",
    "hadamard_div",
    "hadamard_prod",
    "let",
    "mul",
    "neg",
    "new_matrix",
    "new_scalar",
    "new_tensor_node",
    "new_vector",
    "read",
    "sqrt",
    "square",
    "sub",
    "tanh",
    "transpose",
]
