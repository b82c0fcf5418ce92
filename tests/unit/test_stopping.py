import numpy as np

from netopt.core.netparam import NetParam
from netopt.training.stopping import StoppingRule


def test_best_loss_is_non_increasing():
    rule = StoppingRule(up_limit=100)
    params = [NetParam(np.zeros((1, 1)))]
    history = []
    for loss in [5.0, 4.0, 6.0, 3.0, 3.5, 2.0, 9.0]:
        _, best = rule.stop_when(params, loss)
        history.append(best)
    assert history == sorted(history, reverse=True)
    assert history[-1] == 2.0


def test_stops_after_up_limit_plus_one_increases():
    rule = StoppingRule(up_limit=2)
    params = [NetParam(np.zeros((1, 1)))]
    assert rule.stop_when(params, 1.0)[0] is None
    params[0].w += 1.0
    assert rule.stop_when(params, 2.0)[0] is None
    assert rule.stop_when(params, 3.0)[0] is None
    snapshot, best = rule.stop_when(params, 4.0)
    assert snapshot is not None
    assert best == 1.0
    # snapshot holds the parameters from the best epoch, not the current ones
    np.testing.assert_allclose(snapshot[0].w, [[0.0]])


def test_increase_below_epsilon_does_not_count():
    rule = StoppingRule(up_limit=0)
    params = np.zeros(3)
    rule.stop_when(params, 1.0)
    snapshot, _ = rule.stop_when(params, 1.0 + 1e-9)
    assert snapshot is None
    assert rule.up == 0


def test_drop_resets_upward_streak():
    rule = StoppingRule(up_limit=1)
    params = np.zeros(2)
    for loss in [1.0, 2.0, 0.5, 0.6]:
        snapshot, _ = rule.stop_when(params, loss)
        assert snapshot is None


def test_vector_parameters_are_snapshotted_by_copy():
    rule = StoppingRule(up_limit=0)
    b = np.array([1.0, 2.0])
    rule.stop_when(b, 1.0)
    b[:] = 7.0
    snapshot, best = rule.stop_when(b, 2.0)
    np.testing.assert_allclose(snapshot, [1.0, 2.0])
    assert best == 1.0


def test_reset_restores_initial_state():
    rule = StoppingRule()
    rule.stop_when(np.zeros(1), 1.0)
    rule.reset()
    assert rule.best_loss == float("inf")
    assert rule.loss0 == float("inf")
    assert rule.snapshot is None
