import logging
from dataclasses import asdict, dataclass, fields

import numpy as np
import pandas as pd

from errors import InvalidParameterError

logger = logging.getLogger(__name__)

HET_INDIV = ("homogeneous", "random", "large_first")
HET_TIME = ("constant", "linear")


@dataclass
class SimulationParams:
    """Generative parameters for one simulated panel.

    Field names match the keyword arguments of :func:`generate_data_TWFE`,
    so ``generate_data_TWFE(**params.asdict())`` draws one dataset.
    """

    N_i: int
    N_t: int
    sigma_e: float
    p_treat: float
    staggered: bool
    het_indiv: str
    het_time: str
    alpha: float
    beta: float
    mu_indiv_fe: float = 0
    sigma_indiv_fe: float = 0
    mu_time_fe: float = 0
    sigma_time_fe: float = 0
    mu_x: float = 0
    sigma_x: float = 0
    gamma: float = 0

    def asdict(self):
        return asdict(self)


PARAM_NAMES = tuple(f.name for f in fields(SimulationParams))


def check_random_state(random_state=None):
    # None -> the np.random module, i.e. the process-wide generator
    if random_state is None:
        return np.random
    if isinstance(random_state, (int, np.integer)):
        return np.random.RandomState(random_state)
    if isinstance(random_state, np.random.RandomState):
        return random_state
    raise InvalidParameterError(
        f"random_state must be None, an int or a RandomState, got {random_state!r}"
    )


def validate_params(N_i, N_t, p_treat, staggered, het_indiv, het_time, sigmas):
    if not isinstance(staggered, (bool, np.bool_)):
        raise InvalidParameterError(f"staggered must be a boolean, got {staggered!r}")
    if het_indiv not in HET_INDIV:
        raise InvalidParameterError(
            f"het_indiv must be one of {list(HET_INDIV)}, got {het_indiv!r}"
        )
    if het_time not in HET_TIME:
        raise InvalidParameterError(
            f"het_time must be one of {list(HET_TIME)}, got {het_time!r}"
        )
    for name, value in (("N_i", N_i), ("N_t", N_t)):
        if isinstance(value, (bool, np.bool_)) or not isinstance(value, (int, np.integer)):
            raise InvalidParameterError(f"{name} must be an integer, got {value!r}")
    if N_i < 1:
        raise InvalidParameterError(f"N_i must be at least 1, got {N_i}")
    # staggered onsets are drawn from the interior periods 2..N_t-1
    if N_t < 3:
        raise InvalidParameterError(f"N_t must be at least 3, got {N_t}")
    if not 0 <= p_treat <= 1:
        raise InvalidParameterError(f"p_treat must lie in [0, 1], got {p_treat}")
    for name, value in sigmas.items():
        if value < 0:
            raise InvalidParameterError(f"{name} must be non-negative, got {value}")


def generate_data_TWFE(
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
    """Simulate a balanced unit x period panel with known treatment effects.

    Periods run from 1 to ``N_t``; a unit is treated strictly after its onset.
    """
    validate_params(
        N_i,
        N_t,
        p_treat,
        staggered,
        het_indiv,
        het_time,
        {
            "sigma_e": sigma_e,
            "sigma_indiv_fe": sigma_indiv_fe,
            "sigma_time_fe": sigma_time_fe,
            "sigma_x": sigma_x,
        },
    )
    rng = check_random_state(random_state)
    units = np.arange(1, N_i + 1)
    periods = np.arange(1, N_t + 1)
    ####################################################################
    # random assignment
    num_treated = int(np.floor(N_i * p_treat))
    treated_units = rng.choice(units, num_treated, replace=False)
    ever_treated = np.isin(units, treated_units)
    ####################################################################
    # unit level draws: FE, onset, effect size
    unit_intercepts = rng.normal(mu_indiv_fe, sigma_indiv_fe, N_i)
    if staggered:
        event_time = rng.randint(2, N_t, N_i).astype(float)
    else:
        event_time = np.full(N_i, np.floor(N_t / 2))
    event_time[~ever_treated] = np.nan

    if het_indiv == "homogeneous":
        unit_effects = np.full(N_i, float(beta))
    elif het_indiv == "random":
        unit_effects = rng.uniform(0.5 * beta, 1.5 * beta, N_i)
    else:
        unit_effects = N_t - event_time
    unit_effects[~ever_treated] = 0.0
    ####################################################################
    # time FEs, one draw per period
    time_intercepts = rng.normal(mu_time_fe, sigma_time_fe, N_t)
    ####################################################################
    # unit x period rows
    unit_ids = np.repeat(units, N_t)
    time_ids = np.tile(periods, N_i)
    ever_treated_it = np.repeat(ever_treated, N_t)
    event_time_it = np.repeat(event_time, N_t)
    rel_lag = time_ids - event_time_it
    # NaN onsets compare False, so never-treated rows are never post
    post = time_ids > event_time_it
    treat = ever_treated_it & post

    tau = np.repeat(unit_effects, N_t)
    if het_time == "linear":
        tau = np.where(post, tau * rel_lag, tau)

    x = rng.normal(mu_x, sigma_x, N_i * N_t)
    e = rng.normal(0, sigma_e, N_i * N_t)
    unit_fe = np.repeat(unit_intercepts, N_t)
    time_fe = np.tile(time_intercepts, N_i)

    y0 = alpha + gamma * x + unit_fe + time_fe + e
    y1 = y0 + tau
    y = np.where(treat, y1, y0)

    logger.debug(
        "generated panel: %d units, %d periods, %d ever treated",
        N_i,
        N_t,
        num_treated,
    )
    return pd.DataFrame(
        {
            "unit": unit_ids,
            "time": time_ids,
            "unit_fe": unit_fe,
            "time_fe": time_fe,
            "x": x,
            "e": e,
            "ever_treated": ever_treated_it,
            "event_time": event_time_it,
            "tau": tau,
            "post": post,
            "treat": treat,
            "rel_lag": rel_lag,
            "y0": y0,
            "y1": y1,
            "y": y,
        }
    )
