import itertools
import logging
from typing import Iterable, Optional

import numpy as np
import pandas as pd
import pingouin as pg

from ..errors import MissingColumnError
from ..utils.stats_utils import apply_fdr_correction


class CorrelationAnalyzer:
    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self.logger.info("CorrelationAnalyzer initialized.")

    def calculate_correlation(self, series1, series2, method='pearson', name1='Series1', name2='Series2'):
        """
        Calculates correlation between two pandas Series.
        Returns:
            dict: Correlation results (r, p-val, CI95%, n) or None if error.
        """
        if not isinstance(series1, (pd.Series, np.ndarray)) or not isinstance(series2, (pd.Series, np.ndarray)):
            self.logger.error("CorrelationAnalyzer - Input must be pandas Series or numpy arrays.")
            return None

        if isinstance(series1, np.ndarray): series1 = pd.Series(series1, name=name1)
        if isinstance(series2, np.ndarray): series2 = pd.Series(series2, name=name2)

        # Drop NaN pairs for correlation
        combined = pd.concat([series1.reset_index(drop=True), series2.reset_index(drop=True)], axis=1).dropna()
        base = {'name1': name1, 'name2': name2, 'method': method, 'n': len(combined)}
        if len(combined) < 3:  # Need at least 3 pairs for meaningful correlation
            self.logger.warning(f"CorrelationAnalyzer - Insufficient valid data points after NaN removal for {name1} vs {name2} (n={len(combined)}). Skipping.")
            return {**base, 'r': np.nan, 'p-val': np.nan, 'CI95%': [np.nan, np.nan]}

        try:
            corr_result = pg.corr(combined.iloc[:, 0], combined.iloc[:, 1], method=method)
            result_dict = corr_result.iloc[0].to_dict()
            # newer pingouin releases name these 'p_val' and 'CI95'
            p_val = float(result_dict.get('p-val', result_dict.get('p_val', np.nan)))
            ci = result_dict.get('CI95%', result_dict.get('CI95', [np.nan, np.nan]))
            self.logger.debug(f"CorrelationAnalyzer - Result ({name1} vs {name2}): r={result_dict.get('r', np.nan):.3f}, p={p_val:.3f}")
            return {**base, 'r': float(result_dict['r']), 'p-val': p_val, 'CI95%': list(ci)}
        except Exception as e:
            self.logger.error(f"CorrelationAnalyzer - Error calculating correlation between {name1} and {name2}: {e}", exc_info=True)
            return None

    def correlation_table(self, data_df: pd.DataFrame, columns: Iterable[str], method: str = 'pearson',
                          alpha: float = 0.05) -> pd.DataFrame:
        """
        Pairwise correlations of the given columns (e.g. composite scores), with
        FDR-corrected p-values across all pairs.
        """
        columns = list(columns)
        missing_cols = [c for c in columns if c not in data_df.columns]
        if missing_cols:
            raise MissingColumnError(missing_cols, context="correlation table")
        rows = []
        for name1, name2 in itertools.combinations(columns, 2):
            result = self.calculate_correlation(data_df[name1], data_df[name2], method=method, name1=name1, name2=name2)
            if result is not None:
                rows.append({'x': name1, 'y': name2, 'n': result['n'], 'r': result['r'], 'p-val': result['p-val']})
        table = pd.DataFrame(rows, columns=['x', 'y', 'n', 'r', 'p-val'])
        _, corrected = apply_fdr_correction(table['p-val'].to_numpy(dtype=float), alpha=alpha)
        table['p-corr-fdr'] = corrected
        self.logger.info(f"CorrelationAnalyzer - Computed {len(table)} pairwise {method} correlation(s).")
        return table

    @staticmethod
    def to_matrix(table: pd.DataFrame, columns: Optional[Iterable[str]] = None) -> pd.DataFrame:
        """Square r matrix from a correlation_table (diagonal 1)."""
        names = list(columns) if columns is not None else list(dict.fromkeys(list(table['x']) + list(table['y'])))
        matrix = pd.DataFrame(np.eye(len(names)), index=names, columns=names)
        for _, row in table.iterrows():
            matrix.loc[row['x'], row['y']] = row['r']
            matrix.loc[row['y'], row['x']] = row['r']
        return matrix
