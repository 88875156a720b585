"""
Mean Imputation Processor Module
--------------------------------
Replaces missing cells of selected item columns with the column mean.
Each column is imputed from its own present values only, so the order of
the columns never matters. The input DataFrame is never mutated.
"""
import logging
from typing import Dict, Iterable, List

import numpy as np
import pandas as pd

from ..errors import InvalidInputError, MissingColumnError


class MeanImputationProcessor:
    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self.logger.info("MeanImputationProcessor initialized.")

    def _check_columns(self, data_df: pd.DataFrame, columns: Iterable[str]) -> List[str]:
        columns = list(dict.fromkeys(columns))
        missing_cols = [col for col in columns if col not in data_df.columns]
        if missing_cols:
            self.logger.error(f"MeanImputationProcessor - Missing columns for imputation: {missing_cols}")
            raise MissingColumnError(missing_cols, context="mean imputation")
        return columns

    def count_missing(self, data_df: pd.DataFrame, columns: Iterable[str]) -> Dict[str, int]:
        """Number of cells per column the imputer would fill."""
        columns = self._check_columns(data_df, columns)
        return {col: int(data_df[col].isna().sum()) for col in columns}

    def column_means(self, data_df: pd.DataFrame, columns: Iterable[str]) -> Dict[str, float]:
        """
        Mean of the present values of each column.
        Raises InvalidInputError if any column has no present value (undefined mean).
        """
        columns = self._check_columns(data_df, columns)
        non_numeric = [col for col in columns if not pd.api.types.is_numeric_dtype(data_df[col])]
        if non_numeric:
            self.logger.error(f"MeanImputationProcessor - Non-numeric columns: {non_numeric}")
            raise InvalidInputError(f"Cannot impute non-numeric column(s): {non_numeric}")
        empty_cols = [col for col in columns if data_df[col].notna().sum() == 0]
        if empty_cols:
            self.logger.error(f"MeanImputationProcessor - No present values, mean undefined for: {empty_cols}")
            raise InvalidInputError(f"Cannot impute column(s) with no present values: {empty_cols}")
        return {col: float(np.mean(data_df[col].dropna().to_numpy(dtype=float))) for col in columns}

    def impute(self, data_df: pd.DataFrame, columns: Iterable[str]) -> pd.DataFrame:
        """
        Fills every missing cell of the given columns with that column's mean.

        Args:
            data_df (pd.DataFrame): Respondent-level table.
            columns (Iterable[str]): Columns to impute. Other columns are left untouched.

        Returns:
            pd.DataFrame: A new table with the same rows and columns.
        """
        means = self.column_means(data_df, columns)
        counts = self.count_missing(data_df, means.keys())
        imputed_df = data_df.copy()
        for col, mean in means.items():
            if counts[col]:
                imputed_df[col] = imputed_df[col].astype(float).fillna(mean)
        total = sum(counts.values())
        self.logger.info(f"MeanImputationProcessor - Imputed {total} cell(s) across {len(means)} column(s).")
        for col, n in counts.items():
            if n:
                self.logger.debug(f"MeanImputationProcessor - '{col}': {n} cell(s) set to {means[col]:.4f}")
        return imputed_df
