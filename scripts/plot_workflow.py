#!/usr/bin/env python3
# scripts/plot_workflow.py

from __future__ import annotations

from pathlib import Path
import sys
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from typing import Any, Dict, Optional, Tuple
import typer
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from matplotlib.patches import FancyBboxPatch
from matplotlib.lines import Line2D
import networkx as nx
import numpy as np

from agen8.editor.layout import layered_layout
from agen8.model.result import ValidationResult
from agen8.model.workflow import Workflow
from agen8.structural import catalog
from agen8.structural.repair import auto_repair
from agen8.structural.validator import validate
from agen8.utils.graph import build_digraph
from agen8.utils.io import load_workflow, save_fig
from agen8.utils.logger import log


app = typer.Typer(help="Plot an n8n workflow graph decorated with validation results.")

# ---------- color/theme ----------
BASE_NODE = "#5B8FD9"     # ok: blue
TRIGGER   = "#2AA876"     # trigger: green
WARN_NODE = "#F4D35E"     # has warnings: yellow
ERR_NODE  = "#E4572E"     # has errors: red
LOOSE     = "#BBBBBB"     # disconnected: grey
EDGE_BASE = "#888888"
FONT_FAMILY = "DejaVu Sans"

BOX_W, BOX_H = 0.28, 0.14


def _node_color(wf: Workflow, name: str, result: ValidationResult) -> Tuple[str, str]:
    """(facecolor, edge linestyle) for one node."""
    node = wf.node_by_name(name)
    linestyle = "--" if node is not None and node.id in result.disconnected_node_ids else "-"
    issues = result.issues_for(name)
    if any(i.severity == "error" for i in issues):
        return ERR_NODE, linestyle
    if issues:
        return WARN_NODE, linestyle
    if linestyle == "--":
        return LOOSE, linestyle
    if node is not None and catalog.is_trigger_type(node.type):
        return TRIGGER, linestyle
    return BASE_NODE, linestyle


def _draw_rounded_node(ax, xy, text, facecolor, linestyle="-", alpha=1.0, edgecolor="#3c3c3c"):
    """Draw a rounded box with a soft shadow and centered label."""
    x, y = xy
    w, h = BOX_W, BOX_H
    shadow_box = FancyBboxPatch(
        (x - w/2 + 0.015, y - h/2 - 0.015), w, h,
        boxstyle="round,pad=0.03,rounding_size=0.04",
        linewidth=0, facecolor="0.80", alpha=0.4, zorder=1
    )
    ax.add_patch(shadow_box)
    box = FancyBboxPatch(
        (x - w/2, y - h/2), w, h,
        boxstyle="round,pad=0.03,rounding_size=0.02",
        linewidth=1.2, linestyle=linestyle, edgecolor=edgecolor,
        facecolor=facecolor, alpha=alpha, zorder=2
    )
    ax.add_patch(box)
    ax.text(x, y, text, ha="center", va="center", fontsize=10, zorder=3)


def data_to_points(dx: float, dy: float, ax) -> float:
    """Convert data-unit delta to points (approx length)."""
    x0, y0 = ax.transData.transform((0, 0))
    x1, y1 = ax.transData.transform((dx, dy))
    pix_len = np.hypot(x1 - x0, y1 - y0)
    return 72.0 * pix_len / ax.figure.dpi


def _layout(H: nx.DiGraph) -> Dict[Any, Tuple[float, float]]:
    pos = layered_layout(H, horizontal=True, layer_gap=3.0 * BOX_W, row_gap=2.4 * BOX_H)
    if pos is None:
        log.warning("Graph contains cycles - falling back to spring layout.")
        pos = nx.spring_layout(H, k=0.7, iterations=200, seed=42)
    return pos


@app.command()
def plot(
    input: Path = typer.Option(..., "--input", "-i", exists=True, readable=True, help="Path to n8n workflow JSON"),
    out: Path = typer.Option(Path("experiments/results/workflow.png"), "--out", "-o", help="Output image path"),
    title: Optional[str] = typer.Option(None, "--title", help="Figure title"),
    repair: bool = typer.Option(False, "--repair", help="Auto-connect before plotting"),
    show_legend: bool = typer.Option(True, "--legend/--no-legend", help="Show legend"),
):
    """Plot the workflow with nodes colored by validation status."""
    matplotlib.rcParams["font.family"] = FONT_FAMILY

    wf = load_workflow(input)
    if repair:
        wf = auto_repair(wf)
    result = validate(wf)
    log.info(f"Loaded workflow: {input} (valid={result.is_valid})")

    H = build_digraph(wf)
    log.info(f"Graph built: {H.number_of_nodes()} nodes, {H.number_of_edges()} edges")
    pos = _layout(H)

    fig = plt.figure(figsize=(8.5, 6.2), dpi=180)
    ax = plt.gca()
    ax.set_axis_off()
    xs = [x for x, y in pos.values()]
    ys = [y for x, y in pos.values()]
    if xs and ys:
        ax.set_xlim(min(xs) - BOX_W * 0.9, max(xs) + BOX_W * 0.9)
        ax.set_ylim(min(ys) - BOX_H * 0.9, max(ys) + BOX_H * 0.9)
    ax.set_aspect("equal")

    src_margin = max(6.0, data_to_points(BOX_W * 0.45, BOX_H * 0.45, ax) + 1.0)
    tgt_margin = max(6.0, data_to_points(BOX_W * 0.48, BOX_H * 0.48, ax) + 1.0)

    arts = nx.draw_networkx_edges(
        H, pos, ax=ax,
        width=1.4,
        alpha=0.7,
        arrows=True,
        arrowstyle="simple",
        arrowsize=28,
        edge_color=EDGE_BASE,
        connectionstyle="arc3,rad=0.0",
        min_source_margin=src_margin,
        min_target_margin=tgt_margin,
    )
    for a in arts or []:
        a.set_zorder(2.2)
        a.set_clip_on(False)

    for name, (x, y) in pos.items():
        node = wf.node_by_name(name)
        fc, ls = _node_color(wf, name, result)
        alpha = 0.45 if node is not None and node.disabled else 1.0
        _draw_rounded_node(ax, (x, y), str(name), facecolor=fc, linestyle=ls, alpha=alpha)

    ax.set_title(title or f"Workflow: {wf.name}", fontsize=13, pad=26)
    status = "valid" if result.is_valid else f"{len(result.errors)} error(s)"
    fig.text(0.02, 0.02, f"{status}, {len(result.warnings)} warning(s)", fontsize=9, ha="left", va="bottom")

    leg = None
    if show_legend:
        legend_elems = [
            Line2D([0], [0], marker="s", color="w", label="Trigger", markerfacecolor=TRIGGER, markersize=12),
            Line2D([0], [0], marker="s", color="w", label="OK", markerfacecolor=BASE_NODE, markersize=12),
            Line2D([0], [0], marker="s", color="w", label="Warning", markerfacecolor=WARN_NODE, markersize=12),
            Line2D([0], [0], marker="s", color="w", label="Error", markerfacecolor=ERR_NODE, markersize=12),
            Line2D([0], [0], marker="s", color="w", label="Disconnected", markerfacecolor=LOOSE, markersize=12),
        ]
        leg = fig.legend(
            handles=legend_elems,
            loc="upper left",
            bbox_to_anchor=(0.05, 0.90),
            frameon=False,
            fontsize=10,
            ncol=3,
            handlelength=1.6,
            columnspacing=1.8,
        )

    ax.margins(0.12)
    plt.tight_layout()
    extra = dict(bbox_extra_artists=(leg,)) if leg else {}
    save_fig(plt.gcf(), out, bbox_inches="tight", pad_inches=0.05, **extra)
    log.info(f"[ok] wrote plot to {out}")


if __name__ == "__main__":
    app()
