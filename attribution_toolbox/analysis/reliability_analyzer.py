"""
Reliability Analyzer Module
---------------------------
Internal consistency of construct item sets via pingouin.
"""
import logging
from typing import Any, Dict, Optional

import numpy as np
import pandas as pd
import pingouin as pg

from ..data_handling.construct_schema import ConstructSchema
from ..errors import MissingColumnError


class ReliabilityAnalyzer:
    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self.logger.info("ReliabilityAnalyzer initialized.")

    def cronbach_alpha(self, items_df: pd.DataFrame, name: str = 'scale') -> Dict[str, Any]:
        """
        Cronbach's alpha with 95% CI (pairwise deletion of missing values).
        Returns NaN alpha for fewer than two items.
        """
        n_items = items_df.shape[1]
        result = {'construct': name, 'n_items': n_items, 'alpha': np.nan, 'ci_low': np.nan, 'ci_high': np.nan}
        if n_items < 2:
            self.logger.warning(f"ReliabilityAnalyzer - '{name}' has {n_items} item(s); alpha is undefined.")
            return result
        try:
            alpha, ci = pg.cronbach_alpha(data=items_df, nan_policy='pairwise')
        except Exception as e:
            self.logger.error(f"ReliabilityAnalyzer - Error computing alpha for '{name}': {e}", exc_info=True)
            return result
        result.update({'alpha': float(alpha), 'ci_low': float(ci[0]), 'ci_high': float(ci[1])})
        self.logger.info(f"ReliabilityAnalyzer - '{name}': alpha={alpha:.3f} [{ci[0]:.3f}, {ci[1]:.3f}]")
        return result

    def item_statistics(self, items_df: pd.DataFrame, name: str = 'scale') -> pd.DataFrame:
        """
        Per item: corrected item-total correlation (item vs. mean of the remaining items)
        and alpha if the item is deleted.
        """
        rows = []
        for item in items_df.columns:
            rest = items_df.drop(columns=item)
            rest_score = rest.mean(axis=1)
            item_total = items_df[item].corr(rest_score) if rest.shape[1] > 0 else np.nan
            alpha_deleted = self.cronbach_alpha(rest, name=f"{name} without {item}")['alpha'] if rest.shape[1] >= 2 else np.nan
            rows.append({'construct': name, 'item': item,
                         'item_total_r': float(item_total), 'alpha_if_deleted': alpha_deleted})
        return pd.DataFrame(rows, columns=['construct', 'item', 'item_total_r', 'alpha_if_deleted'])

    def reliability_table(self, data_df: pd.DataFrame, schema: ConstructSchema,
                          imputed_df: Optional[pd.DataFrame] = None) -> pd.DataFrame:
        """
        One row per construct. Constructs flagged for imputation are assessed
        on imputed_df when given, all others on data_df.
        """
        schema.validate(data_df.columns)
        rows = []
        for construct in schema:
            source_df = imputed_df if (construct.impute and imputed_df is not None) else data_df
            missing_cols = [c for c in construct.items if c not in source_df.columns]
            if missing_cols:
                raise MissingColumnError(missing_cols, context=f"reliability of '{construct.name}'")
            rows.append(self.cronbach_alpha(source_df[list(construct.items)], name=construct.name))
        return pd.DataFrame(rows, columns=['construct', 'n_items', 'alpha', 'ci_low', 'ci_high'])
