"""
Survey Loader Module
--------------------
Reads the respondent-level survey CSV into a pandas DataFrame.
Config-driven, robust, and maintainable.
"""
import logging
import os
from typing import Iterable, List, Optional

import pandas as pd

from ..errors import InvalidInputError

DEFAULT_MISSING_VALUES = ['', 'NA', 'N/A', 'NaN', 'nan', '-99', '-999']


class SurveyLoader:
    def __init__(self, logger: logging.Logger,
                 missing_values: Optional[List[str]] = None,
                 id_column: Optional[str] = None,
                 sep: str = ','):
        self.logger = logger
        self.missing_values = list(missing_values) if missing_values is not None else list(DEFAULT_MISSING_VALUES)
        self.id_column = id_column
        self.sep = sep
        self.logger.info("SurveyLoader initialized.")

    def load(self, csv_path: str, numeric_columns: Optional[Iterable[str]] = None) -> pd.DataFrame:
        """
        Loads the survey CSV.

        Args:
            csv_path (str): Path to the CSV file (header row required).
            numeric_columns (Iterable[str], optional): Item columns to coerce to numeric.
                Columns not present in the file are skipped here; the schema check reports them.

        Returns:
            pd.DataFrame: One row per respondent. Missing cells are NaN.
        """
        if not os.path.isfile(csv_path):
            self.logger.error(f"SurveyLoader - File not found: {csv_path}")
            raise FileNotFoundError(csv_path)

        self.logger.info(f"SurveyLoader - Loading survey data from {csv_path}")
        data_df = pd.read_csv(csv_path, sep=self.sep, na_values=self.missing_values, keep_default_na=False)
        data_df.columns = [str(col).strip() for col in data_df.columns]
        self.logger.info(f"SurveyLoader - Loaded {data_df.shape[0]} respondents x {data_df.shape[1]} columns.")

        if numeric_columns is not None:
            data_df = self.coerce_numeric(data_df, numeric_columns)
        if self.id_column:
            self._check_ids(data_df)
        return data_df

    def coerce_numeric(self, data_df: pd.DataFrame, columns: Iterable[str]) -> pd.DataFrame:
        """Returns a copy with the given columns converted to float; unparseable cells become NaN."""
        coerced_df = data_df.copy()
        for col in columns:
            if col not in coerced_df.columns:
                continue
            original = coerced_df[col]
            converted = pd.to_numeric(original, errors='coerce').astype(float)
            n_coerced = int((original.notna() & converted.isna()).sum())
            if n_coerced:
                self.logger.warning(f"SurveyLoader - Column '{col}': {n_coerced} non-numeric value(s) set to missing.")
            coerced_df[col] = converted
        return coerced_df

    def _check_ids(self, data_df: pd.DataFrame) -> None:
        if self.id_column not in data_df.columns:
            self.logger.warning(f"SurveyLoader - ID column '{self.id_column}' not found. Skipping uniqueness check.")
            return
        duplicated = data_df[self.id_column][data_df[self.id_column].duplicated()].unique().tolist()
        if duplicated:
            self.logger.error(f"SurveyLoader - Duplicate respondent IDs: {duplicated}")
            raise InvalidInputError(f"Duplicate values in ID column '{self.id_column}': {duplicated}")
