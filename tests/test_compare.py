import warnings

import numpy as np

from verify.compare import compare_flat
from verify.tolerances import Tolerances


def test_exact_match():
    diff = compare_flat(np.array([413, 454, 937, 1030], np.float32), [413, 454, 937, 1030], exact=True)
    assert diff.ok
    assert diff.summary == "ok"
    assert diff.first_bad_index is None


def test_exact_reports_first_bad_index():
    diff = compare_flat([1.0, 2.0, 3.5, 4.5], [1.0, 2.0, 3.0, 4.0], exact=True)
    assert not diff.ok
    assert diff.first_bad_index == 2
    assert "mismatch at index 2" in diff.summary
    assert np.isclose(diff.max_abs_err, 0.5)


def test_length_mismatch():
    diff = compare_flat([1, 2, 3], [1, 2, 3, 4], exact=True)
    assert not diff.ok
    assert diff.first_bad_index is None
    assert diff.summary == "length mismatch: expected 4, got 3"


def test_tolerance_allows_small_errors():
    tol = Tolerances(1e-4, 1e-4)
    assert compare_flat([1.00001, 2.0], [1.0, 2.0], tol).ok
    assert not compare_flat([1.01, 2.0], [1.0, 2.0], tol).ok


def test_shapes_are_flattened():
    assert compare_flat(np.eye(2), [1, 0, 0, 1], exact=True).ok


def test_non_finite_values_must_match():
    assert compare_flat([np.nan, np.inf], [np.nan, np.inf], exact=True).ok
    diff = compare_flat([np.nan, 1.0], [0.0, 1.0], Tolerances(1.0, 1.0))
    assert not diff.ok
    assert diff.first_bad_index == 0


def test_exact_with_infinite_expected_emits_no_warning():
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        diff = compare_flat([np.inf, 2.0, -np.inf], [np.inf, 2.0, -np.inf], exact=True)
    assert diff.ok
    assert diff.max_abs_err == 0.0
