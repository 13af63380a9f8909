import itertools
import logging

import numpy as np
import pandas as pd
from joblib import Parallel, delayed
from tqdm import tqdm

from dgp import PARAM_NAMES, SimulationParams, generate_data_TWFE
from twfe import ESTIMATE_COLUMNS, estimate_TWFE

logger = logging.getLogger(__name__)


def compute_true_effect_TWFE(df):
    """Mean realised effect among ever-treated units at each relative lag.

    Rows not under treatment contribute zero, so pre-onset lags are 0.
    """
    treated = df.loc[df["ever_treated"].astype(bool)]
    realised = treated["treat"].astype(float) * (treated["y1"] - treated["y0"])
    true_effect = (
        realised.groupby(treated["rel_lag"].astype(np.int64))
        .mean()
        .rename("true_effect")
        .rename_axis("rel_lag")
        .reset_index()
    )
    return true_effect


def compute_simulation_TWFE(
    N_i,
    N_t,
    sigma_e,
    p_treat,
    staggered,
    het_indiv,
    het_time,
    alpha,
    beta,
    mu_indiv_fe=0,
    sigma_indiv_fe=0,
    mu_time_fe=0,
    sigma_time_fe=0,
    mu_x=0,
    sigma_x=0,
    gamma=0,
    random_state=None,
):
    """One Monte-Carlo replicate: simulate, estimate, attach the truth.

    Returns the event-study rows with a ``true_effect`` column and one
    constant column per generative parameter, so replicates can later be
    grouped back by configuration.
    """
    params = dict(
        N_i=N_i,
        N_t=N_t,
        sigma_e=sigma_e,
        p_treat=p_treat,
        staggered=staggered,
        het_indiv=het_indiv,
        het_time=het_time,
        alpha=alpha,
        beta=beta,
        mu_indiv_fe=mu_indiv_fe,
        sigma_indiv_fe=sigma_indiv_fe,
        mu_time_fe=mu_time_fe,
        sigma_time_fe=sigma_time_fe,
        mu_x=mu_x,
        sigma_x=sigma_x,
        gamma=gamma,
    )
    df = generate_data_TWFE(**params, random_state=random_state)
    estimates = estimate_TWFE(df)
    true_effect = compute_true_effect_TWFE(df)
    if estimates.empty:
        # nothing estimable: keep the configuration visible with NaN estimates
        logger.debug("no estimates for configuration %s", params)
        if true_effect.empty:
            true_effect = pd.DataFrame({"rel_lag": [np.nan], "true_effect": [np.nan]})
        res = true_effect.assign(estimate=np.nan, se=np.nan, p_value=np.nan)
        res = res[ESTIMATE_COLUMNS + ["true_effect"]]
    else:
        # left join: lags without a true effect keep their estimate
        res = estimates.merge(true_effect, on="rel_lag", how="left")
    return res.assign(**params)


def param_grid(**values):
    """Cartesian product of parameter values.

    Each keyword is a list of values (a scalar counts as a single value);
    keywords left out take the ``SimulationParams`` defaults.

    >>> grid = param_grid(N_i=100, N_t=[10, 20], sigma_e=1, p_treat=0.5,
    ...                   staggered=[True, False], het_indiv="homogeneous",
    ...                   het_time="constant", alpha=1, beta=1)
    >>> len(grid)
    4
    """
    unknown = set(values) - set(PARAM_NAMES)
    if unknown:
        raise TypeError(f"unknown simulation parameters: {sorted(unknown)}")
    names = list(values)
    lists = [v if isinstance(v, (list, tuple)) else [v] for v in values.values()]
    return [SimulationParams(**dict(zip(names, combo))) for combo in itertools.product(*lists)]


def run_simulations(grid, n_iter, n_jobs=1, seed=None, progress=True):
    """Run every configuration in ``grid`` ``n_iter`` times and stack results.

    With ``n_jobs == 1`` and no ``seed`` the replicates draw from numpy's
    global generator in a fixed order, so ``np.random.seed`` at the top of
    the run makes it reproducible. Otherwise replicate ``k`` gets its own
    ``RandomState(base + k)``, with ``base`` taken from ``seed`` or, when no
    seed is given, from the global generator; the result then does not
    depend on scheduling.
    """
    tasks = [p for p in grid for _ in range(n_iter)]
    logger.info("running %d configurations x %d replicates", len(grid), n_iter)
    if n_jobs == 1 and seed is None:
        results = [
            compute_simulation_TWFE(**p.asdict())
            for p in tqdm(tasks, desc="Simulating", disable=not progress)
        ]
    else:
        base = np.random.randint(2**31 - 1) if seed is None else seed
        results = Parallel(n_jobs=n_jobs)(
            delayed(compute_simulation_TWFE)(**p.asdict(), random_state=base + k)
            for k, p in enumerate(tqdm(tasks, desc="Simulating", disable=not progress))
        )
    return pd.concat(results, ignore_index=True)
