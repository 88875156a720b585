"""
Descriptive Analyzer Module
---------------------------
Sample descriptives of items and composite scores.
"""
import logging
from typing import Iterable

import pandas as pd

from ..errors import MissingColumnError


class DescriptiveAnalyzer:
    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self.logger.info("DescriptiveAnalyzer initialized.")

    def describe(self, data_df: pd.DataFrame, columns: Iterable[str]) -> pd.DataFrame:
        """n, n_missing, mean, sd, min and max per column (missing values excluded)."""
        columns = list(columns)
        missing_cols = [c for c in columns if c not in data_df.columns]
        if missing_cols:
            raise MissingColumnError(missing_cols, context="descriptives")
        rows = []
        for col in columns:
            values = data_df[col].astype(float)
            rows.append({
                'variable': col,
                'n': int(values.notna().sum()),
                'n_missing': int(values.isna().sum()),
                'mean': values.mean(),
                'sd': values.std(ddof=1),
                'min': values.min(),
                'max': values.max(),
            })
        self.logger.info(f"DescriptiveAnalyzer - Described {len(rows)} variable(s).")
        return pd.DataFrame(rows, columns=['variable', 'n', 'n_missing', 'mean', 'sd', 'min', 'max'])
