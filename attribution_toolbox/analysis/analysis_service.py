import logging
from typing import Any, Dict, Iterable, Optional

import pandas as pd

from ..data_handling.construct_schema import ConstructSchema
from .correlation_analyzer import CorrelationAnalyzer
from .descriptive_analyzer import DescriptiveAnalyzer
from .efa_analyzer import EFAAnalyzer
from .reliability_analyzer import ReliabilityAnalyzer
from .sem_analyzer import SEMAnalyzer


class AnalysisService:
    def __init__(self, logger: logging.Logger, main_config: Optional[Dict[str, Any]] = None):
        self.logger = logger
        self.main_config = main_config or {}
        # Instantiate specialized analyzers
        self.efa_analyzer = EFAAnalyzer(logger)
        self.reliability_analyzer = ReliabilityAnalyzer(logger)
        self.sem_analyzer = SEMAnalyzer(logger)
        self.correlation_analyzer = CorrelationAnalyzer(logger)
        self.descriptive_analyzer = DescriptiveAnalyzer(logger)
        self.logger.info("AnalysisService initialized (delegation mode).")

    # --- Measurement ---
    def run_efa(self, items_df: pd.DataFrame, n_factors: int, rotation: Optional[str] = 'oblimin',
                method: str = 'minres', loading_threshold: float = 0.4) -> Optional[Dict[str, Any]]:
        """Delegates suitability checks, eigenvalues and the factor solution; adds item assignments."""
        suitability = self.efa_analyzer.check_suitability(items_df)
        eigenvalues = self.efa_analyzer.eigenvalues(items_df)
        solution = self.efa_analyzer.fit(items_df, n_factors, rotation=rotation, method=method)
        if solution is None:
            return None
        solution['assignments'] = self.efa_analyzer.assign_items(solution['loadings'], threshold=loading_threshold)
        return {**suitability, 'eigenvalues': eigenvalues, **solution}

    def run_reliability(self, data_df: pd.DataFrame, schema: ConstructSchema,
                        imputed_df: Optional[pd.DataFrame] = None) -> pd.DataFrame:
        """Delegates Cronbach's alpha per construct."""
        return self.reliability_analyzer.reliability_table(data_df, schema, imputed_df=imputed_df)

    def run_item_statistics(self, items_df: pd.DataFrame, name: str) -> pd.DataFrame:
        return self.reliability_analyzer.item_statistics(items_df, name=name)

    # --- Structural models ---
    def run_model(self, data_df: pd.DataFrame, spec: str, name: str, objective: str = 'FIML') -> Optional[Dict[str, Any]]:
        return self.sem_analyzer.fit_model(data_df, spec, name=name, objective=objective)

    def run_cfa(self, data_df: pd.DataFrame, schema: ConstructSchema, construct_names: Optional[Iterable[str]] = None,
                objective: str = 'FIML') -> Optional[Dict[str, Any]]:
        return self.sem_analyzer.fit_cfa(data_df, schema, construct_names, objective=objective)

    # --- Descriptive / correlational ---
    def run_descriptives(self, data_df: pd.DataFrame, columns: Iterable[str]) -> pd.DataFrame:
        return self.descriptive_analyzer.describe(data_df, columns)

    def run_correlation_table(self, data_df: pd.DataFrame, columns: Iterable[str], method: str = 'pearson') -> pd.DataFrame:
        return self.correlation_analyzer.correlation_table(data_df, columns, method=method)
