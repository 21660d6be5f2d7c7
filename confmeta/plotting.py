"""Plotting of p-value functions and forest plots.

Requires matplotlib, which is an optional dependency (``pip install confmeta[plot]``).
The data-preparation helpers in this module only depend on numpy and pandas.
"""

import numpy as np
import pandas as pd
import scipy.stats as ss

from .results import PointKind


def get_xlim(results, i_set=0, ext_perc=5):
    """Determine x-axis limits that cover all intervals of a result.

    The limits span the individual, joint and comparison intervals, extended
    by ``ext_perc`` percent of the range on both sides.
    """
    cs = results.conf_sets[i_set]
    candidates = [results.individual_cis[:, :, i_set].ravel(), cs.ci.ravel()]
    if results.comparison_cis is not None:
        candidates.append(results.comparison_cis.values.ravel())
    candidates = np.concatenate(candidates)
    candidates = candidates[np.isfinite(candidates)]
    lower, upper = candidates.min(), candidates.max()
    margin = (upper - lower) * ext_perc / 100
    return lower - margin, upper + margin


def get_drapery_df(y, se, mu, names=None):
    """Compute two-sided p-value functions of the individual studies.

    Parameters
    ----------
    y, se : array_like of shape (K,)
        Study-level estimates and standard errors.
    mu : array_like of shape (M,)
        Grid of null values.
    names : :obj:`list` of :obj:`str`, optional
        Study labels. Defaults to 1..K.

    Returns
    -------
    :obj:`pandas.DataFrame`
        Long DataFrame with columns "x", "y" and "study" (K * M rows).
    """
    y = np.asarray(y, dtype=float).ravel()
    se = np.broadcast_to(np.asarray(se, dtype=float).ravel(), y.shape)
    mu = np.asarray(mu, dtype=float).ravel()
    if names is None:
        names = list(range(1, y.size + 1))

    p = 2 * ss.norm.sf(np.abs(y[:, None] - mu[None, :]) / se[:, None])
    return pd.DataFrame(
        {
            "x": np.tile(mu, y.size),
            "y": p.ravel(),
            "study": np.repeat(np.asarray(names, dtype=object), mu.size),
        }
    )


def calculate_polygons(conf_set, p_value, estimates, diamond_height=0.5, scale_diamonds=True):
    """Build diamond-like polygons that trace the p-value function within each interval.

    Parameters
    ----------
    conf_set : :obj:`~confmeta.results.ConfidenceSetResults`
        The confidence set to draw.
    p_value : callable
        p-value function of ``mu``.
    estimates : array_like
        Study-level estimates, used as additional vertices.
    diamond_height : :obj:`float`, optional
        Maximal height of the polygons. Default = 0.5.
    scale_diamonds : :obj:`bool`, optional
        Rescale so that the highest vertex has height 1 before applying
        ``diamond_height``. Default = True.

    Returns
    -------
    None or :obj:`pandas.DataFrame`
        None if the confidence set is empty; otherwise a DataFrame with
        columns "x", "y" and "id" listing the vertices of each polygon in
        drawing order.
    """
    if not conf_set.exists:
        return None

    estimates = np.asarray(estimates, dtype=float).ravel()
    p_max_x, p_max = conf_set.p_max
    vertices = [(p_max_x, p_max)]
    vertices += list(zip(estimates, np.asarray(p_value(estimates), dtype=float)))
    if not np.all(np.isnan(conf_set.gamma)):
        vertices += [tuple(g) for g in conf_set.gamma]
    vertices += [
        (p.x, p.y + conf_set.alpha)
        for p in conf_set.points
        if p.kind in (PointKind.LOCAL_MAX, PointKind.ESTIMATE)
    ]

    pts = np.unique(np.array(vertices, dtype=float), axis=0)
    pts = pts[np.isfinite(pts).all(1)]

    height = np.nan_to_num(pts[:, 1])
    if scale_diamonds and height.max() > 0:
        height = height / height.max()
    height = height * diamond_height / 2
    pts = np.c_[pts[:, 0], height]

    frames = []
    for i, (lower, upper) in enumerate(conf_set.ci, start=1):
        inside = pts[(pts[:, 0] > lower) & (pts[:, 0] < upper)]
        inside = inside[np.argsort(inside[:, 0])]
        x = np.r_[lower, inside[:, 0], upper, inside[::-1, 0]]
        yy = np.r_[0.0, inside[:, 1], 0.0, -inside[::-1, 1]]
        frames.append(pd.DataFrame({"x": x, "y": yy, "id": i}))
    return pd.concat(frames, ignore_index=True)


def plot_pvalue_function(
    results, i_set=0, ax=None, xlim=None, drapery=True, xlab=None, n_points=10_000
):
    """Plot the combined p-value function with its confidence set.

    Parameters
    ----------
    results : :obj:`~confmeta.results.ConfMetaResults`
        Results to plot.
    i_set : :obj:`int`, optional
        Index of the parallel study set to plot. Default = 0.
    ax : :obj:`matplotlib.axes.Axes`, optional
        Axes to draw into. A new figure is created if None.
    xlim : :obj:`tuple`, optional
        x-axis limits. Determined by :func:`get_xlim` if None.
    drapery : :obj:`bool`, optional
        Whether to draw the p-value functions of the individual studies.
        Default = True.
    xlab : :obj:`str`, optional
        x-axis label. Default = "mu".
    n_points : :obj:`int`, optional
        Number of grid points for the curves.

    Returns
    -------
    :obj:`matplotlib.axes.Axes`
    """
    import matplotlib.pyplot as plt

    if ax is None:
        _, ax = plt.subplots()
    if xlim is None:
        xlim = get_xlim(results, i_set)

    cs = results.conf_sets[i_set]
    alpha = 1 - results.level
    mu = np.linspace(xlim[0], xlim[1], n_points)

    if drapery:
        dp = get_drapery_df(
            results.y[:, i_set], results.se[:, i_set], mu, names=results.study_names
        )
        for _, study in dp.groupby("study", sort=False):
            ax.plot(study["x"], study["y"], linestyle="--", color="lightgrey", linewidth=0.8)
    else:
        for est in results.y[:, i_set]:
            ax.axvline(est, linestyle="--", color="grey", linewidth=0.8)

    line = ax.plot(mu, results.p_value(mu, i_set), label=results.fun_name)[0]
    ax.axhline(alpha, linestyle="--", color="black", linewidth=0.8)
    ax.axhline(0, color="black", linewidth=0.8)

    eb = 0.025
    for lower, upper in cs.ci:
        ax.hlines(alpha, lower, upper, color=line.get_color())
        ax.vlines([lower, upper], alpha - eb, alpha + eb, color=line.get_color())

    if xlim[0] < 0 < xlim[1]:
        ax.axvline(0, color="black", linewidth=0.8)
        ax.plot([0], [results.p_0[i_set]], "o", color=line.get_color())

    ax.set_xlim(xlim)
    ax.set_ylim(0, 1)
    ax.set_ylabel("p-value")
    ax.set_xlabel(xlab or "mu")
    secax = ax.secondary_yaxis("right", functions=(lambda p: (1 - p) * 100, lambda c: 1 - c / 100))
    secax.set_ylabel("Confidence level [%]")
    ax.legend(loc="upper right", frameon=False)
    return ax


def plot_forest(
    results,
    i_set=0,
    ax=None,
    diamond_height=0.5,
    v_space=1.5,
    scale_diamonds=True,
    show_studies=True,
    xlim=None,
    xlab=None,
):
    """Draw a forest plot with p-value function shaped diamonds.

    Individual studies are shown with their Wald intervals. The combined
    result is drawn as one polygon per interval of the confidence set, with
    comparison intervals (if any) as classical diamonds. An empty confidence
    set is annotated with "CI does not exist".

    Returns
    -------
    :obj:`matplotlib.axes.Axes`
    """
    import matplotlib.pyplot as plt

    if ax is None:
        _, ax = plt.subplots()
    if xlim is None:
        xlim = get_xlim(results, i_set)

    cs = results.conf_sets[i_set]
    y = results.y[:, i_set]
    ind = results.individual_cis[:, :, i_set]
    names = results.study_names
    comparison = results.comparison_cis
    n_methods = 1 + (0 if comparison is None else comparison.shape[0])

    spacing = np.arange(len(y) + n_methods + 1, 0, -1) * v_space
    study_pos = spacing[: len(y)]
    method_pos = spacing[len(y) + 1:]

    if show_studies:
        ax.hlines(study_pos, ind[:, 0], ind[:, 1], color="black")
        ax.plot(y, study_pos, "s", color="black", markersize=4)

    labels = []
    if comparison is not None:
        for pos, (name, row) in zip(method_pos, comparison.iterrows()):
            est = (row["lower"] + row["upper"]) / 2
            h = diamond_height / 2
            ax.fill(
                [row["lower"], est, row["upper"], est],
                [pos, pos - h, pos, pos + h],
                color="0.2",
            )
            labels.append(name)

    pos = method_pos[-1]
    polygons = calculate_polygons(
        cs,
        lambda m: results.p_value(m, i_set),
        y,
        diamond_height=diamond_height,
        scale_diamonds=scale_diamonds,
    )
    if polygons is None:
        ax.text(np.mean(xlim), pos, "CI does not exist", ha="center", va="center")
    else:
        for _, poly in polygons.groupby("id"):
            ax.fill(poly["x"], poly["y"] + pos, color="C0")
    labels.append(results.fun_name)

    if xlim[0] < 0 < xlim[1]:
        ax.axvline(0, linestyle="--", color="grey", linewidth=0.8)
    ax.set_xlim(xlim)
    ax.set_yticks(np.r_[study_pos, method_pos])
    ax.set_yticklabels(list(names) + labels)
    ax.set_xlabel(xlab or "mu")
    for side in ("top", "right", "left"):
        ax.spines[side].set_visible(False)
    return ax


def plot_results(results, type=("p", "forest"), i_set=0, figsize=None, **kwargs):
    """Plot the p-value function and/or forest plot of a result.

    Parameters
    ----------
    results : :obj:`~confmeta.results.ConfMetaResults`
        Results to plot.
    type : :obj:`str` or :obj:`tuple` of {"p", "forest"}, optional
        Which plots to draw. Default = ("p", "forest").
    i_set : :obj:`int`, optional
        Index of the parallel study set to plot.
    figsize : :obj:`tuple`, optional
        Figure size passed to matplotlib.
    **kwargs
        Passed on to :func:`plot_pvalue_function` and :func:`plot_forest`
        (``xlim`` and ``xlab`` are shared).

    Returns
    -------
    :obj:`matplotlib.figure.Figure`
    """
    import matplotlib.pyplot as plt

    types = [type] if isinstance(type, str) else list(type)
    invalid = set(types) - {"p", "forest"}
    if invalid or not types:
        raise ValueError("type must contain 'p' and/or 'forest'; got {}.".format(types))

    kwargs.setdefault("xlim", get_xlim(results, i_set))
    p_keys = {"xlim", "drapery", "xlab", "n_points"}
    f_keys = {"xlim", "xlab", "diamond_height", "v_space", "scale_diamonds", "show_studies"}

    fig, axes = plt.subplots(len(types), 1, figsize=figsize, squeeze=False)
    for ax, t in zip(axes[:, 0], types):
        if t == "p":
            plot_pvalue_function(
                results, i_set=i_set, ax=ax, **{k: v for k, v in kwargs.items() if k in p_keys}
            )
        else:
            plot_forest(
                results, i_set=i_set, ax=ax, **{k: v for k, v in kwargs.items() if k in f_keys}
            )
    fig.tight_layout()
    return fig
