import logging

import numpy as np
import pandas as pd

from twfe import ESTIMATE_COLUMNS

logger = logging.getLogger(__name__)

RESULT_COLUMNS = ESTIMATE_COLUMNS + ["true_effect"]
LAG_WINDOW = (-5, 5)


def _mean(s):
    return s.mean(skipna=False)


def summarise_simulations(results: pd.DataFrame, window=LAG_WINDOW) -> pd.DataFrame:
    """Normalised bias and RMSE per simulation configuration.

    Every column of ``results`` other than the estimate and truth columns
    identifies a configuration. Errors ``estimate - true_effect`` are divided
    by the configuration's mean true effect over the lag window (pre-onset
    lags included), averaged over replicates per lag, then over the pre
    (lag < 0) and post (lag >= 0) lags.

    A configuration whose mean true effect is zero, or where nothing could
    be estimated, gets NaN statistics rather than being dropped. Missing
    values are not skipped.

    Returns one row per configuration with ``bias_post``, ``bias_pre`` and
    ``rmse_post``.
    """
    lo, hi = window
    # NaN lags mark replicates where nothing could be estimated
    lags = results["rel_lag"]
    df = results.loc[lags.between(lo, hi) | lags.isna()].copy()
    config = [c for c in results.columns if c not in RESULT_COLUMNS]

    mean_true_effect = df.groupby(config, dropna=False)["true_effect"].transform(_mean)
    # zero normaliser -> NaN, not inf
    df["norm_error"] = (df["estimate"] - df["true_effect"]) / mean_true_effect.where(
        mean_true_effect != 0
    )
    df["norm_sq_error"] = df["norm_error"] ** 2

    by_lag = df.groupby(config + ["rel_lag"], dropna=False).agg(
        bias=("norm_error", _mean), mse=("norm_sq_error", _mean)
    )
    by_lag["rmse"] = np.sqrt(by_lag["mse"])
    by_lag = by_lag.reset_index()
    by_lag["period"] = np.where(by_lag["rel_lag"] >= 0, "post", "pre")

    by_period = by_lag.groupby(config + ["period"], dropna=False).agg(
        bias=("bias", _mean), rmse=("rmse", _mean)
    )
    summary = by_period.unstack("period")
    summary.columns = [f"{stat}_{period}" for stat, period in summary.columns]
    summary = summary.reindex(columns=["bias_post", "bias_pre", "rmse_post"])

    n_nan = int(summary["bias_post"].isna().sum())
    if n_nan:
        logger.info("%d configurations have undefined post-period bias", n_nan)
    return summary.reset_index()
