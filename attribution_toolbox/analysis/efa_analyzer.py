"""
EFA Analyzer Module
-------------------
Exploratory factor analysis of item sets, delegated to factor_analyzer.
Used to decide construct membership; the decision itself stays with the
researcher (see assign_items).
"""
import logging
from typing import Any, Dict, Optional

import numpy as np
import pandas as pd
from factor_analyzer import FactorAnalyzer
from factor_analyzer.factor_analyzer import calculate_bartlett_sphericity, calculate_kmo

from ..errors import InvalidInputError


class EFAAnalyzer:
    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self.logger.info("EFAAnalyzer initialized.")

    def _check_items(self, items_df: pd.DataFrame) -> None:
        if items_df.shape[1] < 2:
            raise InvalidInputError(f"EFA needs at least 2 items, got {items_df.shape[1]}.")
        if items_df.shape[0] < 3:
            raise InvalidInputError(f"EFA needs at least 3 respondents, got {items_df.shape[0]}.")
        n_missing = int(items_df.isna().sum().sum())
        if n_missing:
            self.logger.error(f"EFAAnalyzer - Item matrix has {n_missing} missing cell(s). Impute before running EFA.")
            raise InvalidInputError(f"EFA needs a complete item matrix; found {n_missing} missing cell(s).")

    def check_suitability(self, items_df: pd.DataFrame) -> Dict[str, Any]:
        """
        Kaiser-Meyer-Olkin measure and Bartlett's test of sphericity.
        Returns dict with 'kmo_model', 'kmo_per_item' (Series), 'bartlett_chi2', 'bartlett_p'.
        """
        self._check_items(items_df)
        kmo_all, kmo_model = calculate_kmo(items_df)
        chi_square, p_value = calculate_bartlett_sphericity(items_df)
        self.logger.info(f"EFAAnalyzer - KMO={kmo_model:.3f}, Bartlett chi2={chi_square:.2f} (p={p_value:.4f})")
        if kmo_model < 0.6:
            self.logger.warning("EFAAnalyzer - KMO below 0.6; items may be unsuitable for factor analysis.")
        return {
            'kmo_model': float(kmo_model),
            'kmo_per_item': pd.Series(kmo_all, index=items_df.columns, name='kmo'),
            'bartlett_chi2': float(chi_square),
            'bartlett_p': float(p_value),
        }

    def eigenvalues(self, items_df: pd.DataFrame) -> pd.DataFrame:
        """Eigenvalues of the item correlation matrix, for scree plots and the Kaiser criterion."""
        self._check_items(items_df)
        fa = FactorAnalyzer(n_factors=items_df.shape[1], rotation=None)
        fa.fit(items_df)
        ev, _ = fa.get_eigenvalues()
        return pd.DataFrame({'factor': np.arange(1, len(ev) + 1), 'eigenvalue': ev})

    def fit(self, items_df: pd.DataFrame, n_factors: int, rotation: Optional[str] = 'oblimin',
            method: str = 'minres') -> Optional[Dict[str, pd.DataFrame]]:
        """
        Fits an EFA model.

        Args:
            items_df (pd.DataFrame): Complete item matrix (rows = respondents).
            n_factors (int): Number of factors to extract.
            rotation (str, optional): factor_analyzer rotation name, or None.
            method (str): Extraction method ('minres', 'ml', 'principal').

        Returns:
            dict: 'loadings' (items x factors), 'communalities', 'variance'
                  (SS loadings, proportion, cumulative per factor); None if fitting fails.
        """
        self._check_items(items_df)
        if n_factors < 1 or n_factors > items_df.shape[1]:
            raise InvalidInputError(f"n_factors must be between 1 and {items_df.shape[1]}, got {n_factors}.")
        if n_factors == 1:
            rotation = None
        factor_names = [f"factor_{i}" for i in range(1, n_factors + 1)]
        self.logger.info(f"EFAAnalyzer - Fitting {n_factors}-factor model on {items_df.shape[1]} items "
                         f"(method={method}, rotation={rotation}).")
        try:
            fa = FactorAnalyzer(n_factors=n_factors, rotation=rotation, method=method)
            fa.fit(items_df)
        except Exception as e:
            self.logger.error(f"EFAAnalyzer - Factor analysis failed: {e}", exc_info=True)
            return None
        loadings = pd.DataFrame(fa.loadings_, index=items_df.columns, columns=factor_names)
        communalities = pd.DataFrame({'communality': fa.get_communalities()}, index=items_df.columns)
        variance = pd.DataFrame(np.vstack(fa.get_factor_variance()),
                                index=['ss_loadings', 'proportion_var', 'cumulative_var'], columns=factor_names)
        return {'loadings': loadings, 'communalities': communalities, 'variance': variance}

    def assign_items(self, loadings: pd.DataFrame, threshold: float = 0.4) -> pd.DataFrame:
        """
        Assigns each item to the factor with its largest absolute loading.
        Items with no loading >= threshold get factor None; items loading
        >= threshold on more than one factor are flagged as cross-loading.
        """
        rows = []
        for item, row in loadings.abs().iterrows():
            salient = row[row >= threshold]
            primary = row.idxmax() if not salient.empty else None
            rows.append({
                'item': item,
                'factor': primary,
                'loading': float(loadings.loc[item, primary]) if primary is not None else np.nan,
                'cross_loading': len(salient) > 1,
            })
        assigned = pd.DataFrame(rows, columns=['item', 'factor', 'loading', 'cross_loading'])
        n_unassigned = int(assigned['factor'].isna().sum())
        if n_unassigned:
            self.logger.warning(f"EFAAnalyzer - {n_unassigned} item(s) without a loading >= {threshold}.")
        return assigned
