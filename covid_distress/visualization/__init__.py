"""
Visualization
=============

Figures, regression tables and the correlation network.

Figures are always produced by the pipeline; tables and the network graph
only when their export toggles are on.
"""

from .figures import (
    COLORS,
    plot_coefficients,
    plot_cv_vs_simple,
    plot_prediction_scatter,
    save_figure,
    set_publication_style,
)
from .tables import export_regression_tables, regression_table_html, results_to_apa_table
from .network import (
    build_correlation_graph,
    correlation_edges,
    network_summary,
    plot_correlation_network,
)

__all__ = [
    "COLORS",
    "plot_coefficients",
    "plot_cv_vs_simple",
    "plot_prediction_scatter",
    "save_figure",
    "set_publication_style",
    "export_regression_tables",
    "regression_table_html",
    "results_to_apa_table",
    "build_correlation_graph",
    "correlation_edges",
    "network_summary",
    "plot_correlation_network",
]
