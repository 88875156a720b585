import logging
import os
from typing import Any, Dict, Optional

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns


class PlottingService:
    def __init__(self, logger: logging.Logger, output_dir_base: str,
                 reporting_figure_format_config: str = 'png',
                 reporting_dpi_config: int = 150):
        self.logger = logger
        self.output_dir_base = output_dir_base
        self.reporting_figure_format = reporting_figure_format_config
        self.reporting_dpi = reporting_dpi_config
        if not all([self.reporting_figure_format, self.reporting_dpi is not None]):
            self.logger.warning("PlottingService initialized with missing critical configurations (figure_format, dpi). Using defaults if possible or errors may occur.")
        self.logger.info(f"PlottingService initialized. Plots will be saved in subdirectories of: {self.output_dir_base}")

    def _save_plot(self, fig, plot_name, subdirectory="general") -> Optional[str]:
        """Helper function to save matplotlib figures."""
        plot_dir = os.path.join(self.output_dir_base, subdirectory)
        os.makedirs(plot_dir, exist_ok=True)
        plot_path = os.path.join(plot_dir, f"{plot_name}.{self.reporting_figure_format}")
        try:
            fig.savefig(plot_path, dpi=self.reporting_dpi, bbox_inches='tight')
            self.logger.info(f"Plot saved: {plot_path}")
            return plot_path
        except Exception as e:
            self.logger.error(f"Failed to save plot {plot_name}: {e}")
            return None
        finally:
            plt.close(fig)

    def plot_scree(self, eigenvalues_df: pd.DataFrame, analysis_name: str = "efa") -> Optional[str]:
        """
        Scree plot with the Kaiser criterion line.
        Args:
            eigenvalues_df (pd.DataFrame): Columns 'factor' and 'eigenvalue' (see EFAAnalyzer.eigenvalues).
            analysis_name (str): Used in title and filename.
        """
        if eigenvalues_df is None or eigenvalues_df.empty:
            self.logger.warning(f"PlottingService - No eigenvalues for '{analysis_name}'. Skipping scree plot.")
            return None
        fig, ax = plt.subplots(figsize=(8, 5))
        ax.plot(eigenvalues_df['factor'], eigenvalues_df['eigenvalue'], marker='o', linestyle='--', color='b')
        ax.axhline(y=1, color='r', linestyle='-', label='Kaiser criterion (1.0)')
        ax.set_title(f"Scree Plot - {analysis_name}")
        ax.set_xlabel("Factor")
        ax.set_ylabel("Eigenvalue")
        ax.set_xticks(eigenvalues_df['factor'])
        ax.grid(True, alpha=0.3)
        ax.legend()
        return self._save_plot(fig, f"{analysis_name}_scree", subdirectory="efa_plots")

    def plot_loadings(self, loadings: pd.DataFrame, analysis_name: str = "efa") -> Optional[str]:
        """Heatmap of an items x factors loading matrix."""
        if loadings is None or loadings.empty:
            self.logger.warning(f"PlottingService - No loadings for '{analysis_name}'. Skipping heatmap.")
            return None
        height = max(4, 0.4 * len(loadings))
        fig, ax = plt.subplots(figsize=(2 + 1.5 * loadings.shape[1], height))
        sns.heatmap(loadings, annot=True, fmt=".2f", cmap="RdBu_r", vmin=-1, vmax=1, center=0, ax=ax)
        ax.set_title(f"Factor Loadings - {analysis_name}")
        return self._save_plot(fig, f"{analysis_name}_loadings", subdirectory="efa_plots")

    def plot_correlation_matrix(self, matrix: pd.DataFrame, analysis_name: str = "composites") -> Optional[str]:
        """Lower-triangle heatmap of a square correlation matrix."""
        if matrix is None or matrix.empty:
            self.logger.warning(f"PlottingService - Empty correlation matrix for '{analysis_name}'. Skipping.")
            return None
        mask = np.triu(np.ones_like(matrix, dtype=bool), k=1)
        size = max(5, 0.8 * len(matrix))
        fig, ax = plt.subplots(figsize=(size, size * 0.8))
        sns.heatmap(matrix.astype(float), mask=mask, annot=True, fmt=".2f", cmap="coolwarm", vmin=-1, vmax=1, center=0, square=True, ax=ax)
        ax.set_title(f"Correlations - {analysis_name}")
        return self._save_plot(fig, f"{analysis_name}_correlations", subdirectory="correlation_plots")

    def plot_composite_by_condition(self, data_df: pd.DataFrame, composite: str, condition_column: str,
                                    level_labels: Optional[Dict[Any, str]] = None) -> Optional[str]:
        """
        Mean composite score (with SE) per vignette condition.
        level_labels maps condition codes to names (e.g. {1: 'ability'}); codes are
        matched by their string form, so 1, 1.0 and '1' share a label.
        """
        if composite not in data_df.columns or condition_column not in data_df.columns:
            self.logger.warning(f"PlottingService - '{composite}' or '{condition_column}' not in data. Skipping.")
            return None
        plot_df = data_df[[composite, condition_column]].dropna()
        if plot_df.empty:
            self.logger.warning(f"PlottingService - No complete rows for '{composite}' by '{condition_column}'.")
            return None
        order = None
        if level_labels:
            labels = {str(code): str(label) for code, label in level_labels.items()}
            codes = plot_df[condition_column].map(lambda v: str(int(v)) if isinstance(v, float) and v.is_integer() else str(v))
            plot_df = plot_df.assign(**{condition_column: codes.map(labels).fillna(codes)})
            shown = set(plot_df[condition_column])
            order = [label for label in labels.values() if label in shown] + sorted(shown - set(labels.values()))
        fig, ax = plt.subplots(figsize=(7, 5))
        sns.barplot(data=plot_df, x=condition_column, y=composite, order=order, errorbar='se', capsize=.1, ax=ax)
        ax.set_title(f"{composite} by {condition_column}")
        ax.set_ylabel(f"Mean {composite}")
        return self._save_plot(fig, f"{composite}_by_{condition_column}", subdirectory="composite_plots")
