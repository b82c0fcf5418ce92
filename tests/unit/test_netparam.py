import numpy as np
import pytest

from netopt.core.netparam import NetParam, PlainMatrix, copy_params


def _param():
    return NetParam(np.arange(6.0).reshape(3, 2), np.array([0.5, -0.5]))


def test_add_then_subtract_restores_original():
    p = _param()
    original = p.copy()
    delta = NetParam(np.full((3, 2), 0.25), np.array([1.0, 2.0]))
    p += delta
    assert not p.approx_equal(original, tol=1e-9)
    p -= delta
    assert p.approx_equal(original, tol=1e-12)
    np.testing.assert_allclose(p.w, original.w)
    np.testing.assert_allclose(p.b, original.b)


def test_delta_without_bias_leaves_bias_untouched():
    p = _param()
    p -= NetParam(np.ones((3, 2)))
    np.testing.assert_allclose(p.b, [0.5, -0.5])
    np.testing.assert_allclose(p.w, np.arange(6.0).reshape(3, 2) - 1.0)


def test_copy_is_independent():
    p = _param()
    q = p.copy()
    q.w[0, 0] = 99.0
    q.b[0] = 99.0
    assert p.w[0, 0] == 0.0
    assert p.b[0] == 0.5


def test_apply_and_matmul_alias_broadcast_bias():
    p = _param()
    x = np.array([[1.0, 0.0, 0.0], [0.0, 1.0, 1.0]])
    expected = x @ p.w + p.b
    np.testing.assert_allclose(p.apply(x), expected)
    np.testing.assert_allclose(x @ p, expected)


def test_dot_on_vector_and_plain_matrix():
    w = np.array([[1.0, 2.0], [3.0, 4.0]])
    v = np.array([1.0, 1.0])
    np.testing.assert_allclose(NetParam(w).dot(v), [4.0, 6.0])
    np.testing.assert_allclose(NetParam(w, np.array([1.0, 1.0])).dot(v), [5.0, 7.0])
    np.testing.assert_allclose(PlainMatrix(w).dot(v), [4.0, 6.0])
    np.testing.assert_allclose(np.array([[1.0, 1.0]]) @ PlainMatrix(w), [[4.0, 6.0]])


def test_trim_restricts_weights_and_bias():
    trimmed = _param().trim(2, 1)
    np.testing.assert_allclose(trimmed.w, [[0.0], [2.0]])
    np.testing.assert_allclose(trimmed.b, [0.5])


def test_set_adopts_other_param_in_place():
    p = _param()
    holder = [p]
    p.set(NetParam(np.zeros((3, 2)), np.zeros(2)))
    assert holder[0].approx_equal(NetParam(np.zeros((3, 2)), np.zeros(2)))


def test_to_matrix_stacks_bias_first():
    m = _param().to_matrix()
    assert m.shape == (4, 2)
    np.testing.assert_allclose(m[0], [0.5, -0.5])


def test_approx_equal_requires_matching_bias_presence():
    w = np.ones((2, 2))
    assert not NetParam(w).approx_equal(NetParam(w, np.zeros(2)))
    assert NetParam(w).approx_equal(NetParam(w + 0.01))


def test_shape_mismatch_raises_value_error():
    p = _param()
    with pytest.raises(ValueError):
        p.apply(np.ones((2, 4)))
    with pytest.raises(ValueError):
        p += NetParam(np.ones((2, 2)))


def test_copy_params_deep_copies_each_layer():
    params = [_param(), NetParam(np.ones((2, 1)))]
    copies = copy_params(params)
    copies[1].w += 1.0
    np.testing.assert_allclose(params[1].w, np.ones((2, 1)))
