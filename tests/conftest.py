"""
Pytest configuration providing shared simulation parameters.
"""
import matplotlib

matplotlib.use("Agg")

import pytest


@pytest.fixture
def base_params():
    """Moderate staggered panel with noise and fixed effects."""
    return dict(
        N_i=40,
        N_t=10,
        sigma_e=1.0,
        p_treat=0.5,
        staggered=True,
        het_indiv="homogeneous",
        het_time="constant",
        alpha=1.0,
        beta=2.0,
        sigma_indiv_fe=1.0,
        sigma_time_fe=0.5,
        sigma_x=1.0,
        gamma=0.3,
    )


@pytest.fixture
def noiseless_params():
    """Same design with every standard deviation at zero."""
    return dict(
        N_i=40,
        N_t=10,
        sigma_e=0.0,
        p_treat=0.5,
        staggered=True,
        het_indiv="homogeneous",
        het_time="constant",
        alpha=1.0,
        beta=2.0,
    )
