import numpy as np

from matgraph.graph import Graph, exp, mul, new_matrix
from verify.tolerances import EXACT, infer_tolerances


def _mats(dtype):
    g = Graph(seed=0)
    a = new_matrix(g, dtype, shape=(2, 2), name="a")
    b = new_matrix(g, dtype, shape=(2, 2), name="b")
    return g, a, b


def test_integer_graphs_compare_exactly():
    g, a, b = _mats("i64")
    mul(a, b)
    assert infer_tolerances(g) == EXACT


def test_matmul_chain_is_looser_than_single_matmul():
    g1, a, b = _mats("f32")
    mul(a, b)
    single = infer_tolerances(g1)
    g2, a2, b2 = _mats("f32")
    mul(mul(a2, b2), b2)
    chain = infer_tolerances(g2)
    assert single.atol < chain.atol
    assert np.isclose(chain.atol, 2 * single.atol)


def test_transcendentals_raise_tolerance():
    g, a, _ = _mats("f32")
    exp(a)
    tol = infer_tolerances(g).to_dict()
    assert np.isclose(tol["atol"], 3e-4)
    assert np.isclose(tol["rtol"], 3e-4)


def test_f64_graphs_are_tighter():
    g32, a, b = _mats("f32")
    mul(a, b)
    g64, a64, b64 = _mats("f64")
    mul(a64, b64)
    assert infer_tolerances(g64).atol < infer_tolerances(g32).atol
