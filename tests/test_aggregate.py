import numpy as np
import pandas as pd
import pytest

from aggregate import summarise_simulations
from simulate import param_grid, run_simulations


def _rows(beta, lags, true_effect, estimates):
    return pd.DataFrame(
        {
            "rel_lag": lags,
            "estimate": estimates,
            "se": np.nan,
            "p_value": np.nan,
            "true_effect": true_effect,
            "beta": beta,
            "staggered": True,
        }
    )


@pytest.fixture
def results():
    lags = [-2, 0, 1, 7]
    truth = [0.0, 2.0, 4.0, 50.0]
    return pd.concat(
        [
            _rows(1.0, lags, truth, [0.2, 2.4, 4.0, 100.0]),
            _rows(1.0, lags, truth, [-0.2, 1.6, 4.8, 100.0]),
            _rows(0.0, lags, 0.0, [0.1, 0.3, -0.2, 1.0]),
        ],
        ignore_index=True,
    )


def test_summary_values(results):
    summary = summarise_simulations(results).set_index("beta")
    row = summary.loc[1.0]

    # normaliser is the window mean of the truth, pre lag included: 2
    assert row["bias_pre"] == pytest.approx(0.0, abs=1e-12)
    assert row["bias_post"] == pytest.approx((0.0 + 0.2) / 2)
    assert row["rmse_post"] == pytest.approx((0.2 + np.sqrt(0.08)) / 2)


def test_summary_columns(results):
    summary = summarise_simulations(results)

    assert list(summary.columns) == ["beta", "staggered", "bias_post", "bias_pre", "rmse_post"]
    assert "rmse_pre" not in summary.columns
    assert len(summary) == 2


def test_zero_true_effect_gives_nan(results):
    summary = summarise_simulations(results).set_index("beta")
    row = summary.loc[0.0]

    assert np.isnan(row["bias_post"])
    assert np.isnan(row["bias_pre"])
    assert np.isnan(row["rmse_post"])
    assert not np.isinf(summary[["bias_post", "bias_pre", "rmse_post"]].values).any()


def test_summary_is_deterministic(results):
    a = summarise_simulations(results)
    b = summarise_simulations(results.copy())

    pd.testing.assert_frame_equal(a, b)


def test_summary_input_untouched(results):
    before = results.copy()
    summarise_simulations(results)

    pd.testing.assert_frame_equal(results, before)


def test_missing_pre_lags(results):
    summary = summarise_simulations(results.query("rel_lag >= 0")).set_index("beta")

    assert np.isnan(summary.loc[1.0, "bias_pre"])
    assert not np.isnan(summary.loc[1.0, "bias_post"])


def test_summary_of_simulations():
    grid = param_grid(
        N_i=30,
        N_t=8,
        sigma_e=0.5,
        p_treat=0.5,
        staggered=True,
        het_indiv=["homogeneous", "large_first"],
        het_time="constant",
        alpha=1,
        beta=1,
    )
    results = run_simulations(grid, n_iter=3, seed=0, progress=False)
    summary = summarise_simulations(results)

    assert len(summary) == 2
    assert set(summary["het_indiv"]) == {"homogeneous", "large_first"}
    assert summary[["bias_post", "bias_pre", "rmse_post"]].notna().all().all()
    assert (summary["rmse_post"] >= 0).all()


@pytest.mark.parametrize(
    "p_treat,staggered", [(0.0, True), (0.0, False), (1.0, False)]
)
def test_unestimable_configuration_kept(p_treat, staggered):
    grid = param_grid(
        N_i=20,
        N_t=6,
        sigma_e=1,
        p_treat=[p_treat, 0.5],
        staggered=staggered,
        het_indiv="homogeneous",
        het_time="constant",
        alpha=1,
        beta=1,
    )
    results = run_simulations(grid, n_iter=2, seed=0, progress=False)
    summary = summarise_simulations(results).set_index("p_treat")
    stats = ["bias_post", "bias_pre", "rmse_post"]

    assert len(summary) == 2
    assert summary.loc[p_treat, stats].isna().all()
    assert summary.loc[0.5, stats].notna().all()


def test_unestimable_configuration_alone():
    grid = param_grid(
        N_i=10,
        N_t=5,
        sigma_e=1,
        p_treat=0.0,
        staggered=True,
        het_indiv="homogeneous",
        het_time="constant",
        alpha=1,
        beta=1,
    )
    summary = summarise_simulations(run_simulations(grid, n_iter=2, seed=0, progress=False))

    assert len(summary) == 1
    assert summary[["bias_post", "bias_pre", "rmse_post"]].isna().all().all()
