import numpy as np
import pytest

from netopt.core.activations import f_id, f_sigmoid
from netopt.core.netparam import NetParam
from netopt.errors import InvalidConfigurationError
from netopt.training.config import HyperParameters
from netopt.training.optimizers import (
    OptimizerAdam,
    OptimizerSGD,
    OptimizerSGDM,
    build_optimizer,
    predict,
)


def _line(m=20):
    x = np.linspace(0.0, 1.0, m).reshape(-1, 1)
    return x, 2.0 * x


def _sse(x, y, params, families):
    return float(np.sum((y - predict(x, params, families)) ** 2))


def test_adam_fits_line_without_bias():
    x, y = _line()
    rng = np.random.default_rng(0)
    params = [NetParam(rng.uniform(0.0, 1.0, size=(1, 1)))]
    hp = HyperParameters(eta=1.0, batch_size=20, max_epochs=1000, up_limit=1000)
    result = OptimizerAdam(seed=0).optimize2(x, y, params, hp.eta, [f_id], hparams=hp)
    assert result.loss < 1e-3
    assert result.epochs == 1000
    assert params[0].w[0, 0] == pytest.approx(2.0, abs=0.02)


def test_sgd_fits_line_and_reports_loss_curve():
    x, y = _line()
    params = [NetParam(np.array([[0.5]]))]
    hp = HyperParameters(eta=0.5, batch_size=20, max_epochs=200)
    opt = OptimizerSGD(seed=0)
    result = opt.optimize2(x, y, params, hp.eta, [f_id], hparams=hp)
    assert result.loss < 1e-6
    assert len(opt.losses) == result.epochs
    assert opt.losses[-1] <= opt.losses[0]


def _affine(m=40):
    x = np.linspace(0.0, 1.0, m).reshape(-1, 1)
    return x, 2.0 * x + 3.0


def _three_layer(rng, hidden=3):
    return [
        NetParam(rng.uniform(0.0, 1.0, size=(1, hidden)), np.zeros(hidden)),
        NetParam(rng.uniform(0.0, 1.0 / np.sqrt(hidden), size=(hidden, 1)), np.zeros(1)),
    ]


def test_sgdm_reduces_loss_on_three_layer_net():
    x, y = _affine()
    families = [f_sigmoid, f_id]
    params = _three_layer(np.random.default_rng(5))
    initial = _sse(x, y, params, families)
    hp = HyperParameters(eta=0.1, batch_size=10, max_epochs=200)
    result = OptimizerSGDM(seed=5).optimize3(x, y, params, hp.eta, families, hparams=hp)
    assert result.loss < 0.2 * initial
    # params hold the returned (best) state
    assert _sse(x, y, params, families) == pytest.approx(result.loss)


def test_sgd_reduces_loss_on_three_layer_net():
    x, y = _affine()
    families = [f_sigmoid, f_id]
    params = _three_layer(np.random.default_rng(2))
    initial = _sse(x, y, params, families)
    hp = HyperParameters(eta=0.1, batch_size=10, max_epochs=200)
    result = OptimizerSGD(seed=2).optimize3(x, y, params, hp.eta, families, hparams=hp)
    assert result.loss < 0.2 * initial


def test_adam_reduces_loss_on_deep_net():
    x, y = _affine()
    families = [f_sigmoid, f_sigmoid, f_id]
    rng = np.random.default_rng(11)
    params = [
        NetParam(rng.uniform(0.0, 1.0, size=(1, 4)), np.zeros(4)),
        NetParam(rng.uniform(0.0, 0.5, size=(4, 3)), np.zeros(3)),
        NetParam(rng.uniform(0.0, 0.5, size=(3, 1)), np.zeros(1)),
    ]
    initial = _sse(x, y, params, families)
    hp = HyperParameters(eta=0.2, batch_size=10, max_epochs=300)
    result = OptimizerAdam(seed=11).optimize(x, y, params, hp.eta, families, hparams=hp)
    assert result.loss < 0.25 * initial
    assert result.eta == pytest.approx(0.2)


def test_early_stop_rolls_back_to_best_snapshot():
    x, y = _line()
    params = [NetParam(np.array([[0.0]]))]
    # a learning rate this large makes every epoch overshoot further
    hp = HyperParameters(eta=20.0, batch_size=20, max_epochs=100, up_limit=2)
    opt = OptimizerSGD(seed=0)
    result = opt.optimize2(x, y, params, hp.eta, [f_id], hparams=hp)
    assert result.epochs < 100
    assert result.loss == pytest.approx(min(opt.losses))
    assert _sse(x, y, params, [f_id]) == pytest.approx(result.loss)
    assert result.epochs == len(opt.losses) - hp.up_limit


def test_callbacks_receive_every_epoch():
    x, y = _line()
    seen = []

    class Recorder:
        def on_epoch(self, epoch, metrics):
            seen.append((epoch, metrics["loss"], metrics["eta"]))

    plain = []
    opt = OptimizerSGD(seed=0, callbacks=[Recorder(), lambda e, m: plain.append(e)])
    hp = HyperParameters(eta=0.1, batch_size=5, max_epochs=12)
    opt.optimize2(x, y, [NetParam(np.array([[0.3]]))], None, [f_id], hparams=hp)
    assert [e for e, _, _ in seen] == list(range(1, 13))
    assert plain == list(range(1, 13))
    assert all(eta == 0.1 for _, _, eta in seen)


def test_learning_rate_grows_every_adjust_period():
    x, y = _line()
    etas = []
    opt = OptimizerSGD(seed=0, callbacks=[lambda e, m: etas.append(m["eta"])])
    hp = HyperParameters(eta=0.01, batch_size=20, max_epochs=201, up_limit=1000)
    opt.optimize2(x, y, [NetParam(np.array([[0.0]]))], None, [f_id], hparams=hp)
    assert etas[99] == pytest.approx(0.01)
    assert etas[100] == pytest.approx(0.011)
    assert etas[200] == pytest.approx(0.0121)


def test_same_seed_gives_same_training_run():
    x, y = _affine()
    families = [f_sigmoid, f_id]
    hp = HyperParameters(eta=0.1, batch_size=8, max_epochs=30)
    a = _three_layer(np.random.default_rng(0))
    b = _three_layer(np.random.default_rng(0))
    ra = OptimizerSGDM(seed=9).optimize(x, y, a, None, families, hparams=hp)
    rb = OptimizerSGDM(seed=9).optimize(x, y, b, None, families, hparams=hp)
    assert ra == rb
    for pa, pb in zip(a, b):
        np.testing.assert_array_equal(pa.w, pb.w)


def test_remainder_batches_are_merged_when_not_dropped():
    x, y = _line(m=23)
    hp = HyperParameters(eta=0.1, batch_size=5, max_epochs=3, drop_remainder=False)
    result = OptimizerSGD(seed=0).optimize2(x, y, [NetParam(np.array([[0.1]]))], None, [f_id], hparams=hp)
    assert np.isfinite(result.loss)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"x": np.zeros((0, 1)), "y": np.zeros((0, 1))},
        {"x": np.zeros((4, 1)), "y": np.zeros((3, 1))},
    ],
)
def test_bad_data_raises(kwargs):
    with pytest.raises(InvalidConfigurationError):
        OptimizerSGD().optimize(kwargs["x"], kwargs["y"], [NetParam(np.ones((1, 1)))], 0.1, [f_id])


def test_layer_count_checks():
    x, y = _line()
    one = [NetParam(np.ones((1, 1)))]
    with pytest.raises(InvalidConfigurationError):
        OptimizerSGD().optimize3(x, y, one, 0.1, [f_id])
    with pytest.raises(InvalidConfigurationError):
        OptimizerSGD().optimize(x, y, one, 0.1, [f_id, f_id])
    with pytest.raises(InvalidConfigurationError):
        OptimizerSGD().optimize2(x, y, one, -1.0, [f_id])


def test_shape_mismatch_propagates_value_error():
    x, y = _line()
    with pytest.raises(ValueError):
        OptimizerSGD().optimize2(x, y, [NetParam(np.ones((3, 1)))], 0.1, [f_id])


def test_build_optimizer_by_name():
    assert isinstance(build_optimizer("ADAM"), OptimizerAdam)
    assert isinstance(build_optimizer("sgdm", seed=1), OptimizerSGDM)
    with pytest.raises(InvalidConfigurationError):
        build_optimizer("rmsprop")
