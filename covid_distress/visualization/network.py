"""
Correlation Network
===================

Undirected graph of the Observation Table: one node per predictor, one edge
per pair with |r| above the threshold (strictly). Written only when graph
export is switched on.

Node attributes: label, category, strength (sum of |r| over incident edges).
Edge attributes: weight (signed r), abs_weight, distance (1 / |r|).
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Optional, Sequence

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
import networkx as nx
from matplotlib.patches import Patch

from covid_distress.comparison import CATEGORY_COLORS, CATEGORY_ORDER, get_category, get_label
from covid_distress.errors import require_columns
from covid_distress.preprocessing.constants import CORRELATION_EDGE_THRESHOLD, DEFAULT_SEED, FIGURE_DPI


def correlation_edges(corr: pd.DataFrame, columns: Sequence[str], threshold: float) -> pd.DataFrame:
    """Upper-triangle pairs with |r| > ``threshold``."""
    rows = []
    for i, a in enumerate(columns):
        for b in columns[i + 1:]:
            r = corr.loc[a, b]
            if pd.notna(r) and abs(r) > threshold:
                rows.append({"node_i": a, "node_j": b, "weight": float(r), "abs_weight": float(abs(r))})
    return pd.DataFrame(rows, columns=["node_i", "node_j", "weight", "abs_weight"])


def build_correlation_graph(
    corr: pd.DataFrame,
    columns: Optional[Sequence[str]] = None,
    threshold: float = CORRELATION_EDGE_THRESHOLD,
    lookup: Optional[Mapping] = None,
    drop_isolates: bool = True,
) -> nx.Graph:
    """
    Build the thresholded correlation graph.

    Parameters
    ----------
    corr : pd.DataFrame
        Square Pearson correlation matrix
    columns : sequence of str, optional
        Nodes to consider (default: every column of ``corr``)
    threshold : float
        Minimum absolute correlation for an edge (exclusive)
    drop_isolates : bool
        Remove predictors without any edge

    Returns
    -------
    nx.Graph
    """
    columns = list(corr.columns if columns is None else columns)
    require_columns(corr, columns, table="correlation matrix")
    edge_df = correlation_edges(corr, columns, threshold)

    G = nx.Graph()
    for node in columns:
        G.add_node(node, label=get_label(node, lookup), category=get_category(node, lookup))

    for _, row in edge_df.iterrows():
        G.add_edge(
            row["node_i"],
            row["node_j"],
            weight=row["weight"],
            abs_weight=row["abs_weight"],
        )

    for u, v, data in G.edges(data=True):
        data["distance"] = 1.0 / max(abs(data["weight"]), 1e-6)

    if drop_isolates:
        G.remove_nodes_from(list(nx.isolates(G)))

    for node in G.nodes():
        G.nodes[node]["strength"] = float(sum(abs(d["weight"]) for d in G[node].values()))
    return G


def plot_correlation_network(
    G: nx.Graph,
    output_path: Optional[Path] = None,
    title: str = "Predictor correlation network",
    seed: int = DEFAULT_SEED,
) -> plt.Figure:
    """Spring-layout drawing; red edges are negative correlations."""
    fig, ax = plt.subplots(figsize=(12, 10))

    if G.number_of_nodes() == 0:
        ax.text(0.5, 0.5, "No correlations above threshold", ha="center", va="center")
    else:
        pos = nx.spring_layout(G, k=2, iterations=50, seed=seed)

        node_colors = [CATEGORY_COLORS.get(G.nodes[n]["category"], "#cccccc") for n in G.nodes()]
        node_sizes = [G.nodes[n]["strength"] * 1500 + 500 for n in G.nodes()]

        weights = [G[u][v]["weight"] for u, v in G.edges()]
        edge_colors = ["red" if w < 0 else "black" for w in weights]
        edge_widths = [abs(w) * 5 for w in weights]

        nx.draw_networkx_nodes(G, pos, node_color=node_colors, node_size=node_sizes,
                               alpha=0.9, edgecolors="black", linewidths=1.5, ax=ax)
        nx.draw_networkx_labels(G, pos, labels=nx.get_node_attributes(G, "label"),
                                font_size=9, font_weight="bold", ax=ax)
        nx.draw_networkx_edges(G, pos, edge_color=edge_colors, width=edge_widths, alpha=0.6, ax=ax)

        present = {G.nodes[n]["category"] for n in G.nodes()}
        legend_elements = [Patch(facecolor=CATEGORY_COLORS[c], label=c) for c in CATEGORY_ORDER if c in present]
        if legend_elements:
            ax.legend(handles=legend_elements, loc="upper left", fontsize=10)

    ax.set_title(title, fontsize=14, fontweight="bold", pad=16)
    ax.axis("off")
    plt.tight_layout()

    if output_path:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(output_path, dpi=FIGURE_DPI, bbox_inches="tight")
        plt.close(fig)
    return fig


def network_summary(G: nx.Graph) -> dict:
    """Node / edge counts, density and mean |r| of the graph."""
    weights = np.array([abs(d["weight"]) for _, _, d in G.edges(data=True)], dtype=float)
    return {
        "n_nodes": G.number_of_nodes(),
        "n_edges": G.number_of_edges(),
        "density": float(nx.density(G)) if G.number_of_nodes() > 1 else 0.0,
        "mean_abs_r": float(weights.mean()) if len(weights) else np.nan,
    }
