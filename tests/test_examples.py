import pytest

from matgraph.examples import chained_matmul, chained_matmul_deterministic as det
from matgraph.graph import Binding
from matgraph.tensor import new_tensor


def test_deterministic_example_passes(capsys):
    assert det.main([]) == 0
    out = capsys.readouterr().out
    assert "Deterministic test passed!" in out
    assert "Result:\n⎡413   454⎤\n⎣937  1030⎦" in out


def test_deterministic_example_prints_program(capsys):
    assert det.main(["--prog"]) == 0
    out = capsys.readouterr().out
    assert "tape @chained_matmul_deterministic(" in out
    assert "%z2 = tape.mm(%z, %mat3)" in out


def test_deterministic_mismatch_is_fatal(monkeypatch):
    monkeypatch.setattr(det, "EXPECTED", [413, 454, 937, 1031])
    with pytest.raises(SystemExit) as ei:
        det.main([])
    msg = str(ei.value.code)
    assert "Mismatch at index 3" in msg
    assert "Expected: 1031.000000, Got: 1030.000000" in msg


def test_check_reports_length_mismatch():
    g, _z, z2_out = det.build()
    short = Binding(node=z2_out.node, value=new_tensor((3,), [413, 454, 937]))
    assert det.check(short) == "Deterministic test failed! Length mismatch. Expected: 4, Got: 3"
    assert det.check(Binding(node=z2_out.node)) is not None


def test_random_example_runs_and_reports_seed(capsys):
    assert chained_matmul.main(["--seed", "3"]) == 0
    out = capsys.readouterr().out.splitlines()
    # mat1 data, mat2 data, z before the run.
    assert out[2] == "None"
    assert out[-1] == "seed: 3"


def test_random_example_is_reproducible(capsys):
    chained_matmul.main(["--seed", "11"])
    first = capsys.readouterr().out
    chained_matmul.main(["--seed", "11"])
    assert capsys.readouterr().out == first


def test_random_example_trace_goes_to_stderr(capsys):
    chained_matmul.main(["--seed", "5", "--trace"])
    err = capsys.readouterr().err
    assert err.count("[tape]") == 2
