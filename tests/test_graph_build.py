import numpy as np
import pytest
import torch

from matgraph.errors import GraphError, ShapeError
from matgraph.graph import (
    Graph,
    add,
    glorot_u,
    hadamard_div,
    hadamard_prod,
    let,
    mul,
    neg,
    new_matrix,
    new_scalar,
    new_vector,
    read,
    sqrt,
    transpose,
)
from matgraph.tensor import new_tensor


def _mats(g, m=2, k=2, n=2, dtype="f32"):
    a = new_matrix(g, dtype, shape=(m, k), name="a", value=new_tensor((m, k), list(range(m * k)), dtype))
    b = new_matrix(g, dtype, shape=(k, n), name="b", value=new_tensor((k, n), list(range(k * n)), dtype))
    return a, b


def test_declare_matrix_with_value():
    g = Graph("g", seed=0)
    m = new_matrix(g, "f32", shape=(2, 2), name="mat1", value=new_tensor((2, 2), [1, 2, 3, 4]))
    assert m.is_input
    assert str(m.type) == "f32[2x2]"
    assert m.value.data().tolist() == [1.0, 2.0, 3.0, 4.0]
    assert g.by_name("mat1") is m
    assert g.inputs() == [m]


def test_declare_without_value_is_unbound():
    g = Graph(seed=0)
    m = new_matrix(g, "f64", shape=(3, 1))
    assert m.value is None
    assert m.name == "matrix_0"


def test_default_input_names_follow_kind_and_id():
    g = Graph(seed=0)
    m = new_matrix(g, "f32", shape=(2, 2))
    v = new_vector(g, "f32", shape=2)
    s = new_scalar(g, "f32")
    assert [m.name, v.name, s.name] == ["matrix_0", "vector_1", "scalar_2"]
    z = mul(m, v)
    assert z.name == "mv_3"


def test_mul_dispatches_on_rank():
    g = Graph(seed=0)
    a = new_matrix(g, "f32", shape=(2, 3), name="a")
    b = new_matrix(g, "f32", shape=(3, 4), name="b")
    v3 = new_vector(g, "f32", shape=3, name="v3")
    v2 = new_vector(g, "f32", shape=2, name="v2")
    s = new_scalar(g, "f32", name="s")

    mm = mul(a, b)
    assert (mm.op, mm.shape) == ("mm", (2, 4))
    mv = mul(a, v3)
    assert (mv.op, mv.shape) == ("mv", (2,))
    vm = mul(v2, a)
    assert (vm.op, vm.shape) == ("vm", (3,))
    dot = mul(v3, v3)
    assert (dot.op, dot.shape) == ("dot", ())
    scaled = mul(s, a)
    assert (scaled.op, scaled.shape) == ("mul", (2, 3))
    assert mul(a, s).shape == (2, 3)


def test_mul_inner_dimension_mismatch_leaves_graph_unchanged():
    g = Graph(seed=0)
    a = new_matrix(g, "f32", shape=(2, 3), name="a")
    b = new_matrix(g, "f32", shape=(2, 2), name="b")
    before = len(g)
    with pytest.raises(ShapeError) as ei:
        mul(a, b)
    msg = str(ei.value)
    assert "inner dimensions do not agree" in msg
    assert "mul(a, b)" in msg
    assert "left operand a: f32[2x3]" in msg
    assert len(g) == before


def test_mul_dtype_mismatch():
    g = Graph(seed=0)
    a = new_matrix(g, "f32", shape=(2, 2), name="a")
    b = new_matrix(g, "f64", shape=(2, 2), name="b")
    with pytest.raises(GraphError, match="dtype mismatch"):
        mul(a, b)


def test_operands_from_different_graphs_rejected():
    a = new_matrix(Graph("g1", seed=0), "f32", shape=(2, 2), name="a")
    b = new_matrix(Graph("g2", seed=0), "f32", shape=(2, 2), name="b")
    with pytest.raises(GraphError, match="different graphs"):
        mul(a, b)


def test_elementwise_shape_rules():
    g = Graph(seed=0)
    a, b = _mats(g)
    assert add(a, b).shape == (2, 2)
    assert hadamard_prod(a, b).op == "mul"
    c = new_matrix(g, "f32", shape=(2, 3), name="c")
    with pytest.raises(ShapeError, match="shapes do not match"):
        add(a, c)


def test_integer_division_truncates():
    g = Graph(seed=0)
    a, b = _mats(g, dtype="i32")
    assert hadamard_div(a, b).attrs == {"rounding": "trunc"}
    fa, fb = new_matrix(g, "f32", shape=(1, 1)), new_matrix(g, "f32", shape=(1, 1))
    assert hadamard_div(fa, fb).attrs == {}


def test_unary_float_only():
    g = Graph(seed=0)
    a, _ = _mats(g, dtype="i64")
    assert neg(a).type == a.type
    with pytest.raises(GraphError, match="float dtype"):
        sqrt(a)


def test_transpose_requires_matrix():
    g = Graph(seed=0)
    a = new_matrix(g, "f32", shape=(2, 3), name="a")
    assert transpose(a).shape == (3, 2)
    v = new_vector(g, "f32", shape=3)
    with pytest.raises(ShapeError, match="requires a matrix"):
        transpose(v)


def test_init_and_value_are_exclusive():
    g = Graph(seed=0)
    with pytest.raises(GraphError, match="either init or value"):
        new_matrix(g, "f32", shape=(2, 2), init=glorot_u(1.0), value=new_tensor((2, 2), [1, 2, 3, 4]))


def test_rank_and_value_shape_checks():
    g = Graph(seed=0)
    with pytest.raises(ShapeError, match="rank-2"):
        new_matrix(g, "f32", shape=(4,))
    with pytest.raises(ShapeError, match="declared"):
        new_matrix(g, "f32", shape=(2, 2), value=new_tensor((4,), [1, 2, 3, 4]))
    with pytest.raises(GraphError, match="dtype"):
        new_matrix(g, "f32", shape=(2, 2), value=new_tensor((2, 2), [1, 2, 3, 4], "f64"))


def test_duplicate_names_rejected():
    g = Graph(seed=0)
    new_matrix(g, "f32", shape=(2, 2), name="m")
    with pytest.raises(GraphError, match="duplicate node name"):
        new_matrix(g, "f32", shape=(2, 2), name="m")


def test_by_name_suggests_closest_match():
    g = Graph("demo", seed=0)
    new_matrix(g, "f32", shape=(2, 2), name="mat1")
    with pytest.raises(GraphError) as ei:
        g.by_name("mat_1")
    assert "Did you mean 'mat1'?" in str(ei.value)


def test_let_binds_inputs_only():
    g = Graph(seed=0)
    a, b = _mats(g)
    let(a, new_tensor((2, 2), [9, 9, 9, 9]))
    assert a.value.data().tolist() == [9.0] * 4
    let(b, [[1, 0], [0, 1]])
    assert b.value.data().tolist() == [1.0, 0.0, 0.0, 1.0]
    z = mul(a, b)
    with pytest.raises(GraphError, match="computed by op 'mm'"):
        let(z, new_tensor((2, 2), [0, 0, 0, 0]))


def test_read_registers_binding():
    g = Graph(seed=0)
    a, b = _mats(g)
    z = mul(a, b, name="z")
    out = read(z)
    assert out.node is z
    assert out.value is None
    assert str(out) == "None"
    assert g.bindings == [out]


def test_validate_accepts_built_graph():
    g = Graph(seed=0)
    a, b = _mats(g)
    mul(mul(a, b), b)
    g.validate()


def test_typed_values_must_match_node_dtype():
    g = Graph(seed=0)
    with pytest.raises(GraphError, match="has dtype f64, node is declared f32"):
        new_matrix(g, "f32", shape=(1, 1), value=np.array([[0.1]], dtype=np.float64))
    with pytest.raises(GraphError, match="has dtype f32, node is declared i32"):
        new_vector(g, "i32", shape=2, value=torch.tensor([1.0, 2.0]))
    with pytest.raises(GraphError, match="unsupported numpy dtype"):
        new_vector(g, "f32", shape=2, value=np.array([1, 2], dtype=np.uint8))
    m = new_matrix(g, "f64", shape=(1, 1), value=np.array([[0.1]], dtype=np.float64))
    assert m.value.dtype == "f64"
    assert len(g) == 1


def test_plain_values_into_int_nodes_must_be_exact():
    g = Graph(seed=0)
    with pytest.raises(GraphError, match="cannot be stored as i32 without loss"):
        new_matrix(g, "i32", shape=(1, 2), value=[[1.7, -2.9]])
    with pytest.raises(GraphError, match="without loss"):
        new_vector(g, "i32", shape=1, value=[2**40])
    with pytest.raises(GraphError, match="without loss"):
        new_scalar(g, "i64", value=float("nan"))
    m = new_matrix(g, "i32", shape=(1, 2), value=[[2.0, -3.0]])
    assert m.dtype == "i32"
    assert m.value.data().tolist() == [2, -3]
    f = new_vector(g, "f32", shape=2, value=[1, 2])
    assert f.value.dtype == "f32"


def test_let_checks_dtype():
    g = Graph(seed=0)
    a = new_vector(g, "i64", shape=2, name="a")
    with pytest.raises(GraphError, match="without loss"):
        let(a, [0.5, 1.0])
    with pytest.raises(GraphError, match="has dtype i32, node is declared i64"):
        let(a, np.array([1, 2], dtype=np.int32))
    assert a.value is None
    let(a, np.array([1, 2], dtype=np.int64))
    assert a.value.data().tolist() == [1, 2]
