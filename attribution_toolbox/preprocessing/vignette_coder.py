"""
Vignette Coder Module
---------------------
Dummy-codes the experimental vignette condition (three levels in the
attribution study) against a reference level.
"""
import logging
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from ..errors import ConfigurationError, InvalidInputError, MissingColumnError


class VignetteCoder:
    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self.logger.info("VignetteCoder initialized.")

    @staticmethod
    def dummy_names(levels: Dict[Any, str], reference: str, prefix: str = 'vignette_') -> List[str]:
        return [f"{prefix}{label}" for label in levels.values() if label != reference]

    def code(self, data_df: pd.DataFrame, condition_column: str, levels: Dict[Any, str],
             reference: Optional[str] = None, prefix: str = 'vignette_') -> pd.DataFrame:
        """
        Appends one 0/1 dummy column per non-reference level.

        Args:
            data_df (pd.DataFrame): Respondent-level table.
            condition_column (str): Column holding the raw condition code.
            levels (Dict[Any, str]): Raw code -> level label, e.g. {1: 'ability', 2: 'effort', 3: 'external'}.
            reference (str, optional): Label left out as reference. Defaults to the first level.
            prefix (str): Prefix of the dummy column names.

        Returns:
            pd.DataFrame: Copy of data_df with the dummy columns appended.
                Respondents with a missing condition get NaN in every dummy.
        """
        if not levels:
            raise ConfigurationError("Vignette coding needs at least one level.")
        labels = list(levels.values())
        if len(set(labels)) != len(labels):
            raise ConfigurationError(f"Vignette level labels must be unique: {labels}")
        reference = labels[0] if reference is None else reference
        if reference not in labels:
            raise ConfigurationError(f"Reference level '{reference}' is not one of {labels}")
        if condition_column not in data_df.columns:
            self.logger.error(f"VignetteCoder - Condition column '{condition_column}' not found.")
            raise MissingColumnError([condition_column], context="vignette coding")

        # Config files may give numeric codes as strings, compare on the string form
        code_to_label = {str(code): label for code, label in levels.items()}
        condition = data_df[condition_column]
        present = condition.notna()
        as_text = condition[present].map(lambda v: str(int(v)) if isinstance(v, float) and v.is_integer() else str(v))
        unknown = sorted(set(as_text) - set(code_to_label))
        if unknown:
            self.logger.error(f"VignetteCoder - Unknown condition values in '{condition_column}': {unknown}")
            raise InvalidInputError(f"Unknown values in '{condition_column}': {unknown}")

        condition_labels = pd.Series(np.nan, index=data_df.index, dtype=object)
        condition_labels[present] = as_text.map(code_to_label)

        coded_df = data_df.copy()
        for label, dummy in zip([l for l in labels if l != reference], self.dummy_names(levels, reference, prefix)):
            if dummy in coded_df.columns:
                raise InvalidInputError(f"Dummy column '{dummy}' would overwrite an existing column.")
            values = (condition_labels == label).astype(float)
            values[~present] = np.nan
            coded_df[dummy] = values
        counts = condition_labels.value_counts().to_dict()
        self.logger.info(f"VignetteCoder - Coded '{condition_column}' (reference '{reference}'): {counts}, "
                         f"{int((~present).sum())} missing.")
        return coded_df
