"""
Composite Score Processor Module
--------------------------------
Computes one scale score per respondent per construct as the mean of the
construct's present items. A respondent with every item missing gets NaN,
never 0. Results are appended as new columns on a copy of the table.
"""
import logging
from typing import Iterable, Optional

import pandas as pd

from ..data_handling.construct_schema import ConstructSchema
from ..errors import InvalidInputError, MissingColumnError
from ..utils.logging_utils import log_progress_bar


class CompositeScoreProcessor:
    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self.logger.info("CompositeScoreProcessor initialized.")

    def compute(self, data_df: pd.DataFrame, items: Iterable[str], name: str = 'composite') -> pd.Series:
        """
        Row-wise mean over the present values of the given items.

        Items are sorted before summation so that any permutation of the item
        list gives bit-identical scores.
        """
        items = list(dict.fromkeys(items))
        if not items:
            raise InvalidInputError(f"Composite '{name}' needs at least one item.")
        missing_cols = [col for col in items if col not in data_df.columns]
        if missing_cols:
            self.logger.error(f"CompositeScoreProcessor - Missing item columns for '{name}': {missing_cols}")
            raise MissingColumnError(missing_cols, context=f"composite '{name}'")
        item_values = data_df[sorted(items)].astype(float)
        scores = item_values.mean(axis=1, skipna=True)
        scores.name = name
        return scores

    def score(self, data_df: pd.DataFrame, name: str, items: Iterable[str]) -> pd.DataFrame:
        """Returns a copy of data_df with the composite appended as column `name`."""
        if name in data_df.columns:
            self.logger.error(f"CompositeScoreProcessor - Column '{name}' already exists.")
            raise InvalidInputError(f"Composite '{name}' would overwrite an existing column.")
        scores = self.compute(data_df, items, name=name)
        n_missing = int(scores.isna().sum())
        if n_missing:
            self.logger.warning(f"CompositeScoreProcessor - '{name}': {n_missing} respondent(s) with all items missing.")
        scored_df = data_df.copy()
        scored_df[name] = scores
        return scored_df

    def score_all(self, data_df: pd.DataFrame, schema: ConstructSchema,
                  imputed_df: Optional[pd.DataFrame] = None) -> pd.DataFrame:
        """
        Scores every construct of the schema.

        Constructs flagged for imputation read their items from imputed_df;
        all other constructs read the original items from data_df. Every
        composite is appended to (a copy of) data_df.
        """
        schema.validate(data_df.columns)
        flagged = schema.imputed_constructs()
        if flagged and imputed_df is None:
            raise InvalidInputError(f"Constructs {[c.name for c in flagged]} are flagged for imputation but no imputed table was given.")
        if imputed_df is not None and len(imputed_df) != len(data_df):
            raise InvalidInputError("Imputed table and original table differ in respondent count.")

        scored_df = data_df.copy()
        update, close = log_progress_bar(self.logger, len(schema), desc="Composites")
        try:
            for construct in schema:
                if construct.name in scored_df.columns:
                    raise InvalidInputError(f"Composite '{construct.name}' would overwrite an existing column.")
                source_df = imputed_df if construct.impute else data_df
                scores = self.compute(source_df, construct.items, name=construct.name)
                scored_df[construct.name] = scores.to_numpy()
                self.logger.info(f"CompositeScoreProcessor - Scored '{construct.name}' from {len(construct.items)} item(s)"
                                 f"{' (imputed)' if construct.impute else ''}.")
                update()
        finally:
            close()
        return scored_df
