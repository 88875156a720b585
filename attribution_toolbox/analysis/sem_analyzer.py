"""
SEM Analyzer Module
-------------------
Confirmatory factor analysis and structural equation models, delegated to
semopy. Models are written as directed regression-style relations among
named variables; missing data are handled by the solver (FIML by default).
"""
import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
import semopy

from ..data_handling.construct_schema import ConstructSchema
from ..errors import ConfigurationError, InvalidInputError, MissingColumnError

FIT_INDICES = ['DoF', 'chi2', 'chi2 p-value', 'CFI', 'TLI', 'RMSEA', 'AIC', 'BIC']
_OPERATORS = ('=~', '~~', '~')


class SEMAnalyzer:
    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self.logger.info("SEMAnalyzer initialized.")

    @staticmethod
    def build_model_spec(regressions: Optional[Dict[str, Sequence[str]]] = None,
                         measurement: Optional[Dict[str, Sequence[str]]] = None,
                         covariances: Optional[Iterable[Sequence[str]]] = None) -> str:
        """
        Builds a semopy model description.

        Args:
            regressions: outcome -> predictors, e.g. {'support': ['sympathy', 'anger']}.
            measurement: latent -> indicators, e.g. {'Sympathy': ['symp1', 'symp2']}.
            covariances: pairs of variables allowed to covary.
        """
        lines = []
        for latent, indicators in (measurement or {}).items():
            if not indicators:
                raise ConfigurationError(f"Latent variable '{latent}' has no indicators.")
            lines.append(f"{latent} =~ {' + '.join(indicators)}")
        for outcome, predictors in (regressions or {}).items():
            if not predictors:
                raise ConfigurationError(f"Outcome '{outcome}' has no predictors.")
            lines.append(f"{outcome} ~ {' + '.join(predictors)}")
        for pair in (covariances or []):
            if len(pair) != 2:
                raise ConfigurationError(f"Covariance entries need exactly two variables, got {list(pair)}")
            lines.append(f"{pair[0]} ~~ {pair[1]}")
        if not lines:
            raise ConfigurationError("Model specification is empty.")
        return "\n".join(lines)

    @staticmethod
    def latent_variables(spec: str) -> List[str]:
        return [line.split('=~', 1)[0].strip() for line in spec.splitlines() if '=~' in line]

    @staticmethod
    def observed_variables(spec: str, latent_names: Optional[Iterable[str]] = None) -> List[str]:
        """Variable names a model description reads from the data (latent variables excluded)."""
        latent = set(latent_names) if latent_names is not None else set(SEMAnalyzer.latent_variables(spec))
        names: Dict[str, None] = {}
        for raw_line in spec.splitlines():
            line = raw_line.split('#', 1)[0].strip()
            if not line:
                continue
            operator = next((op for op in _OPERATORS if op in line), None)
            if operator is None:
                continue
            left, right = line.split(operator, 1)
            for term in [left] + right.split('+'):
                # drop fixed/starting values such as 1*item
                name = term.split('*')[-1].strip()
                if name and not re.fullmatch(r'[-+.\d]+', name) and name not in latent:
                    names.setdefault(name, None)
        return list(names)

    def fit_model(self, data_df: pd.DataFrame, spec: str, name: str = 'model',
                  objective: str = 'FIML') -> Optional[Dict[str, Any]]:
        """
        Fits a model description to the data.

        Returns:
            dict: 'name', 'spec', 'n_obs', 'fit_stats' (one-row DataFrame of fit indices)
                  and 'estimates' (parameter table); None if the solver fails.
        """
        observed = self.observed_variables(spec)
        missing_cols = [v for v in observed if v not in data_df.columns]
        if missing_cols:
            self.logger.error(f"SEMAnalyzer - Missing variables for '{name}': {missing_cols}")
            raise MissingColumnError(missing_cols, context=f"model '{name}'")
        model_df = data_df[observed].astype(float)
        if objective != 'FIML':
            # non-FIML objectives need complete cases
            model_df = model_df.dropna()
        else:
            model_df = model_df.dropna(how='all')
        if model_df.empty:
            raise InvalidInputError(f"No usable respondents for model '{name}'.")

        self.logger.info(f"SEMAnalyzer - Fitting '{name}' on {len(model_df)} respondents (objective={objective}).")
        try:
            model = semopy.Model(spec)
            model.fit(model_df, obj=objective)
            estimates = model.inspect()
        except Exception as e:
            self.logger.error(f"SEMAnalyzer - Fitting '{name}' failed: {e}", exc_info=True)
            return None
        try:
            fit_stats = semopy.calc_stats(model)
        except Exception as e:
            self.logger.warning(f"SEMAnalyzer - Fit indices unavailable for '{name}': {e}")
            fit_stats = pd.DataFrame(np.nan, index=['Value'], columns=FIT_INDICES)
        fit_stats = fit_stats.reindex(columns=FIT_INDICES)
        fit_stats.index = [name]
        self.logger.info(f"SEMAnalyzer - '{name}': " + ", ".join(
            f"{k}={v:.3f}" for k, v in fit_stats.iloc[0].items() if pd.notna(v)))
        return {'name': name, 'spec': spec, 'n_obs': len(model_df), 'fit_stats': fit_stats, 'estimates': estimates}

    def fit_cfa(self, data_df: pd.DataFrame, schema: ConstructSchema,
                construct_names: Optional[Iterable[str]] = None, name: str = 'cfa',
                objective: str = 'FIML') -> Optional[Dict[str, Any]]:
        """Measurement model with one latent factor per construct (constructs need >= 2 items)."""
        selected = schema if construct_names is None else schema.subset(construct_names)
        selected.validate(data_df.columns)
        measurement = {}
        for construct in selected:
            if len(construct.items) < 2:
                self.logger.warning(f"SEMAnalyzer - Skipping single-item construct '{construct.name}' in CFA.")
                continue
            measurement[f"{construct.name}_latent"] = list(construct.items)
        if not measurement:
            raise InvalidInputError("CFA needs at least one construct with two or more items.")
        return self.fit_model(data_df, self.build_model_spec(measurement=measurement), name=name, objective=objective)

    @staticmethod
    def compare_models(results: Iterable[Optional[Dict[str, Any]]]) -> pd.DataFrame:
        """Stacks the fit indices of several fitted models (failed fits are skipped)."""
        tables = [r['fit_stats'] for r in results if r is not None]
        if not tables:
            return pd.DataFrame(columns=FIT_INDICES)
        return pd.concat(tables)

    @staticmethod
    def regression_paths(result: Dict[str, Any]) -> pd.DataFrame:
        """Directed paths (op '~') of a fitted model."""
        estimates = result['estimates']
        return estimates[estimates['op'] == '~'].reset_index(drop=True)


def parse_covariances(entries: Iterable[Any]) -> List[Tuple[str, str]]:
    """Accepts ['a ~~ b', ...] or [['a', 'b'], ...] from config."""
    pairs = []
    for entry in entries or []:
        if isinstance(entry, str):
            parts = [p.strip() for p in entry.split('~~')]
        else:
            parts = [str(p).strip() for p in entry]
        if len(parts) != 2 or not all(parts):
            raise ConfigurationError(f"Invalid covariance entry: {entry!r}")
        pairs.append((parts[0], parts[1]))
    return pairs
