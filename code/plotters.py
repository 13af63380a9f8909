import matplotlib.pyplot as plt
import numpy as np
import pandas as pd


def plot_event_study(results, ax=None, title=None):
    """Mean TWFE estimate vs mean true effect by lag across replicates.

    ``results`` holds the stacked runner output for one configuration.
    """
    if ax is None:
        _, ax = plt.subplots(figsize=(8, 4))
    by_lag = results.groupby("rel_lag").agg(
        estimate=("estimate", "mean"),
        lo=("estimate", lambda s: s.quantile(0.025)),
        hi=("estimate", lambda s: s.quantile(0.975)),
        true_effect=("true_effect", "mean"),
    )
    cmp = plt.get_cmap("Set1")
    ax.plot(by_lag.index, by_lag["estimate"], marker=".", label="2wfe", color=cmp(1))
    ax.fill_between(by_lag.index, by_lag["lo"], by_lag["hi"], alpha=0.2, color=cmp(1))
    ax.plot(by_lag.index, by_lag["true_effect"], marker=".", label="true", color="black")
    ax.axvline(-1, color="black", linestyle="--")
    ax.axhline(0, color="black", linestyle=":")
    if title:
        ax.set_title(title)
    ax.legend()
    return ax


def plot_bias(summary, x, hue=None, stats=("bias_pre", "bias_post", "rmse_post")):
    """One panel per summary statistic, plotted against parameter ``x``."""
    f, ax = plt.subplots(1, len(stats), figsize=(4 * len(stats), 3.5), sharex=True)
    ax = np.atleast_1d(ax)
    groups = [(None, summary)] if hue is None else summary.groupby(hue)
    cmp = plt.get_cmap("viridis", max(len(groups), 2))
    for i, (key, g) in enumerate(groups):
        g = g.groupby(x)[list(stats)].mean()
        for a, stat in zip(ax, stats):
            a.plot(g.index, g[stat], marker=".", color=cmp(i), label=key)
    for a, stat in zip(ax, stats):
        a.axhline(0, color="black", linestyle=":")
        a.set_title(stat)
        a.set_xlabel(x)
    if hue is not None:
        ax[0].legend(title=hue)
    f.tight_layout()
    return f


def show_estimates(results, n=15):
    """First ``n`` runner rows, for eyeballing a single replicate."""
    cols = ["rel_lag", "estimate", "se", "p_value", "true_effect"]
    return pd.DataFrame(results[cols].head(n))
