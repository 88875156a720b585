"""
CSV Reporter Module
------------------
Handles saving DataFrames to CSV files for reporting.
Config-driven, robust, and maintainable.
"""
import logging
import os
from typing import Dict, List, Optional

import pandas as pd


class CSVReporter:
    def __init__(self, logger: logging.Logger, float_format: Optional[str] = '%.4f'):
        self.logger = logger
        self.float_format = float_format
        self.logger.info("CSVReporter initialized.")

    def save_dataframe(self, data_df: pd.DataFrame, output_dir: str, filename: str, index: bool = False) -> str:
        os.makedirs(output_dir, exist_ok=True)
        path = os.path.join(output_dir, filename)
        data_df.to_csv(path, index=index, float_format=self.float_format)
        self.logger.info(f"CSVReporter: Saved DataFrame to {path}.")
        return path

    def save_tables(self, tables: Dict[str, Optional[pd.DataFrame]], output_dir: str) -> List[str]:
        """Saves each non-empty table as <name>.csv. Index is kept for tables with a named/non-range index."""
        paths = []
        for name, table in tables.items():
            if table is None or table.empty:
                self.logger.warning(f"CSVReporter: Table '{name}' is empty. Skipping.")
                continue
            keep_index = not isinstance(table.index, pd.RangeIndex)
            paths.append(self.save_dataframe(table, output_dir, f"{name}.csv", index=keep_index))
        return paths
