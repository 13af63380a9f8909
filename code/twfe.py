import contextlib
import io
import logging
import warnings

import numpy as np
import pandas as pd
import pyfixest as pf

logger = logging.getLogger(__name__)

ESTIMATE_COLUMNS = ["rel_lag", "estimate", "se", "p_value"]


def empty_estimates():
    return pd.DataFrame(
        {
            "rel_lag": pd.Series(dtype="int64"),
            "estimate": pd.Series(dtype="float64"),
            "se": pd.Series(dtype="float64"),
            "p_value": pd.Series(dtype="float64"),
        }
    )


@contextlib.contextmanager
def suppress_stdout():
    stdout = io.StringIO()
    with contextlib.redirect_stdout(stdout):
        yield stdout


def lag_dummy_name(lag):
    # formula-safe name: lag_m3 for -3, lag_2 for 2
    return f"lag_m{-lag}" if lag < 0 else f"lag_{lag}"


def estimate_TWFE(
    df: pd.DataFrame,
    outcome: str = "y",
    unit_id: str = "unit",
    time_id: str = "time",
    ref: int = -1,
    vcov=None,
):
    """Dynamic two-way fixed effects event study.

    Regresses ``outcome`` on ``ever_treated x 1{rel_lag == k}`` for every
    relative lag ``k`` observed among treated units except ``ref``, with
    unit and time fixed effects absorbed. Never-treated units enter only
    through the fixed effects. Lags that pyfixest drops as collinear are
    absent from the result.

    Returns a frame with columns ``rel_lag, estimate, se, p_value`` sorted
    by lag; empty when there is nothing to estimate.
    """
    treated = df["ever_treated"].astype(bool)
    lags = df.loc[treated, "rel_lag"].dropna().astype(int)
    levels = sorted(set(lags.tolist()) - {ref})
    if not levels:
        logger.debug("no treated lags to estimate, skipping fit")
        return empty_estimates()
    # a single onset without controls makes every lag dummy a time dummy
    if treated.all() and df.loc[treated, "event_time"].nunique() == 1:
        logger.debug("common onset without never-treated units, skipping fit")
        return empty_estimates()

    dummies = {lag_dummy_name(k): k for k in levels}
    df_int = df[[outcome, unit_id, time_id]].copy()
    for name, k in dummies.items():
        df_int[name] = (treated & (df["rel_lag"] == k)).astype(int)

    ff = f"{outcome} ~ {'+'.join(dummies)} | {unit_id} + {time_id}"
    with suppress_stdout(), warnings.catch_warnings():
        warnings.simplefilter("ignore")
        m = pf.feols(ff, df_int, vcov=vcov or {"CRV1": unit_id})

    coefs = m.coef()
    res = pd.DataFrame(
        {
            "rel_lag": [dummies[c] for c in coefs.index],
            "estimate": coefs.values,
            "se": m.se().reindex(coefs.index).values,
            "p_value": m.pvalue().reindex(coefs.index).values,
        }
    )
    dropped = sorted(set(dummies.values()) - set(res["rel_lag"]))
    if dropped:
        logger.debug("lags dropped as collinear: %s", dropped)
    res["rel_lag"] = res["rel_lag"].astype(np.int64)
    return res.sort_values("rel_lag").reset_index(drop=True)
