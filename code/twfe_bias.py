# ---
# jupyter:
#   jupytext:
#     text_representation:
#       extension: .py
#       format_name: percent
#       format_version: '1.3'
#       jupytext_version: 1.16.4
#   kernelspec:
#     display_name: py311
#     language: python
#     name: python3
# ---

# %%
import logging

import matplotlib.pyplot as plt
import numpy as np

np.random.seed(42)
logging.basicConfig(level=logging.INFO)
# %%
from aggregate import summarise_simulations
from plotters import plot_bias, plot_event_study, show_estimates
from simulate import compute_simulation_TWFE, param_grid, run_simulations

# %% [markdown]
# ## one replicate

# %%
res = compute_simulation_TWFE(
    N_i=2,
    N_t=8,
    sigma_e=1,
    p_treat=0.8,
    staggered=True,
    het_indiv="homogeneous",
    het_time="constant",
    alpha=1,
    beta=1,
)
show_estimates(res)

# %% [markdown]
# ## grid

# %%
base_params = {
    "N_i": 200,
    "N_t": 20,
    "sigma_e": 1,
    "p_treat": [0.5, 1.0],
    "staggered": [True, False],
    "het_indiv": ["homogeneous", "random", "large_first"],
    "het_time": ["constant", "linear"],
    "alpha": 1,
    "beta": 1,
    "sigma_indiv_fe": 1,
    "sigma_time_fe": 1,
}
n_iter = 100

grid = param_grid(**base_params)
results = run_simulations(grid, n_iter=n_iter)
summary = summarise_simulations(results)
summary

# %%
results.to_pickle("../tmp/twfe_simulations.pkl")
summary.to_csv("../figtab/twfe_bias_summary.csv", index=False)

# %% [markdown]
# ## figures

# %%
f, ax = plt.subplots(2, 2, figsize=(10, 7), sharex=True)
ax = ax.flatten()
panels = [
    ("homogeneous", "constant"),
    ("homogeneous", "linear"),
    ("random", "constant"),
    ("large_first", "linear"),
]
for a, (hi, ht) in zip(ax, panels):
    sub = results.query(
        "staggered and p_treat == 0.5 and het_indiv == @hi and het_time == @ht"
    )
    plot_event_study(sub, ax=a, title=f"{hi} / {ht}")
f.tight_layout()
f.savefig("../figtab/twfe_event_studies.png")

# %%
plot_bias(summary.query("staggered"), x="p_treat", hue="het_indiv")
plt.savefig("../figtab/twfe_bias.png")
