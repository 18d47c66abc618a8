"""
Graph builder for the balance scale.

Plots each pan's total as a function of the unknown the solver worked on.
Where the two lines cross the scale balances; parallel lines never balance
and overlapping lines balance everywhere.
"""

import numpy as np

from balance.evaluator import compile_expression
from balance.solver import SOLVED, NO_SOLUTION, BALANCED_FOR_ANY_VALUE, pan_total

# ── palette ────────────────────────────────────────────────────────────────
C_BG       = "#0f0f0f"
C_AX       = "#181818"
C_GRID     = "#252525"
C_TICK     = "#666666"
C_SPINE    = "#333333"
C_LINE1    = "#1a8cff"   # left pan
C_LINE2    = "#ff8c42"   # right pan
C_DOT      = "#4caf50"   # balance point
C_TEXT     = "#cccccc"

DEFAULT_POINTS = 200
HALF_WIDTH = 5.0


def _style_axes(ax, fig):
    fig.patch.set_facecolor(C_BG)
    ax.set_facecolor(C_AX)
    ax.tick_params(colors=C_TICK, labelsize=9)
    ax.xaxis.label.set_color(C_TEXT)
    ax.yaxis.label.set_color(C_TEXT)
    ax.title.set_color(C_TEXT)
    for spine in ax.spines.values():
        spine.set_edgecolor(C_SPINE)
    ax.grid(True, color=C_GRID, linewidth=0.8, linestyle="--", alpha=0.7)
    ax.axhline(0, color=C_SPINE, linewidth=0.8)
    ax.axvline(0, color=C_SPINE, linewidth=0.8)


def pan_curves(left_exprs, right_exprs, variables, target, x_range):
    """Left and right totals at every point of *x_range*."""
    left = [compile_expression(e) for e in left_exprs]
    right = [compile_expression(e) for e in right_exprs]
    probe_vars = dict(variables or {})
    y_left, y_right = [], []
    for x in x_range:
        probe_vars[target] = float(x)
        y_left.append(pan_total(left, probe_vars))
        y_right.append(pan_total(right, probe_vars))
    return np.array(y_left, dtype=float), np.array(y_right, dtype=float)


def build_figure(left_exprs, right_exprs, variables, outcome, points: int = DEFAULT_POINTS):
    """
    Build and return a dark-themed matplotlib Figure for a solve *outcome*.
    Returns None when the outcome has no unknown to plot against.
    """
    from matplotlib.figure import Figure

    if outcome.target is None:
        return None

    target = outcome.target
    cx = outcome.value if outcome.kind == SOLVED else 0.0
    x_range = np.linspace(cx - HALF_WIDTH, cx + HALF_WIDTH, points)
    y_left, y_right = pan_curves(left_exprs, right_exprs, variables, target, x_range)

    fig = Figure(figsize=(7, 3.4), dpi=100)
    ax = fig.add_subplot(111)
    _style_axes(ax, fig)

    ax.plot(x_range, y_left, color=C_LINE1, linewidth=2, label="Left pan")
    ax.plot(x_range, y_right, color=C_LINE2, linewidth=2, label="Right pan")

    if outcome.kind == NO_SOLUTION:
        ax.set_title("No solution — the pans never balance", color=C_TEXT, fontsize=10)
    elif outcome.kind == BALANCED_FOR_ANY_VALUE:
        ax.set_title(f"Balanced for every value of {target}", color=C_TEXT, fontsize=10)
    else:
        y_at = pan_curves(left_exprs, right_exprs, variables, target, [outcome.value])[0][0]
        ax.scatter([outcome.value], [y_at], color=C_DOT, s=80, zorder=5,
                   label=f"Balance: {target} = {outcome.value:g}")
        ax.axvline(outcome.value, color=C_DOT, linewidth=1, linestyle=":", alpha=0.6)
        ax.set_title(f"Balance: {target} = {outcome.value:g}", color=C_TEXT, fontsize=10)

    ax.set_xlabel(target, color=C_TEXT)
    ax.set_ylabel("total", color=C_TEXT)

    # Clip y-axis to avoid extreme values
    y_all = np.concatenate([y_left, y_right])
    y_finite = y_all[np.isfinite(y_all)]
    if len(y_finite):
        ylo, yhi = np.percentile(y_finite, 2), np.percentile(y_finite, 98)
        pad = max((yhi - ylo) * 0.2, 1.0)
        ax.set_ylim(ylo - pad, yhi + pad)

    ax.legend(fontsize=8, facecolor="#1e1e1e", edgecolor=C_SPINE, labelcolor=C_TEXT)
    fig.tight_layout(pad=1.2)
    return fig
