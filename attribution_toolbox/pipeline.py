"""
Analysis Pipeline Module
------------------------
Runs the survey analysis as a chain of stages. Every stage takes a table and
returns a new one; nothing is rebound or mutated in place, so each stage
can be rerun or tested on its own.

    raw -> code_vignettes -> impute (flagged constructs, once) -> measurement
        -> score -> models -> report
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from .analysis.analysis_service import AnalysisService
from .analysis.sem_analyzer import SEMAnalyzer, parse_covariances
from .config import merge_config
from .data_handling.construct_schema import ConstructSchema
from .data_handling.survey_loader import SurveyLoader
from .errors import ConfigurationError, InvalidInputError, MissingColumnError
from .preprocessing.composite_scorer import CompositeScoreProcessor
from .preprocessing.mean_imputer import MeanImputationProcessor
from .preprocessing.vignette_coder import VignetteCoder
from .reporting.csv_reporter import CSVReporter
from .reporting.plotting_service import PlottingService


@dataclass(frozen=True)
class PipelineResult:
    raw: pd.DataFrame
    coded: pd.DataFrame
    imputed: Optional[pd.DataFrame]
    scored: pd.DataFrame
    imputation_counts: Dict[str, int] = field(default_factory=dict)
    reliability: Optional[pd.DataFrame] = None
    item_statistics: Optional[pd.DataFrame] = None
    efa: Dict[str, Any] = field(default_factory=dict)
    descriptives: Optional[pd.DataFrame] = None
    correlations: Optional[pd.DataFrame] = None
    models: Dict[str, Optional[Dict[str, Any]]] = field(default_factory=dict)


class AnalysisPipeline:
    def __init__(self, logger: logging.Logger, config: Dict[str, Any], data_df: pd.DataFrame):
        """
        Validates the configuration against the loaded table. Any construct item,
        vignette column or model variable that is not in the table raises
        MissingColumnError here, before any computation.
        """
        self.logger = logger
        self.config = merge_config(config)
        self.raw_df = data_df.copy()
        self.schema = ConstructSchema.from_config(self.config['constructs'])
        if len(self.schema) == 0:
            raise ConfigurationError("No constructs configured.")

        self.vignette_coder = VignetteCoder(logger)
        self.imputer = MeanImputationProcessor(logger)
        self.scorer = CompositeScoreProcessor(logger)
        self.analysis_service = AnalysisService(logger, self.config)

        self.model_specs = self._build_model_specs()
        self._validate()
        self.logger.info(f"AnalysisPipeline initialized: {len(self.raw_df)} respondents, "
                         f"{len(self.schema)} construct(s), {len(self.model_specs)} model(s).")

    @classmethod
    def from_config(cls, logger: logging.Logger, config: Dict[str, Any]) -> 'AnalysisPipeline':
        """Loads the CSV named in config['data'] and builds the pipeline."""
        config = merge_config(config)
        data_cfg = config['data']
        if not data_cfg.get('csv_path'):
            raise ConfigurationError("'data.csv_path' is required.")
        schema = ConstructSchema.from_config(config['constructs'])
        loader = SurveyLoader(logger, missing_values=data_cfg.get('missing_values'),
                              id_column=data_cfg.get('id_column'), sep=data_cfg.get('sep', ','))
        data_df = loader.load(data_cfg['csv_path'], numeric_columns=schema.items_for())
        return cls(logger, config, data_df)

    # --- Validation ---
    def _dummy_columns(self) -> List[str]:
        vignette = self.config.get('vignette')
        if not vignette:
            return []
        return VignetteCoder.dummy_names(vignette['levels'], vignette.get('reference') or list(vignette['levels'].values())[0],
                                         vignette.get('prefix', 'vignette_'))

    def _build_model_specs(self) -> Dict[str, Tuple[str, str]]:
        specs = {}
        for name, model_cfg in (self.config.get('models') or {}).items():
            if isinstance(model_cfg, str):
                specs[name] = (model_cfg, 'FIML')
                continue
            if not isinstance(model_cfg, dict):
                raise ConfigurationError(f"Model '{name}' must be a description string or a mapping.")
            spec = model_cfg.get('spec') or SEMAnalyzer.build_model_spec(
                regressions=model_cfg.get('regressions'),
                measurement=model_cfg.get('measurement'),
                covariances=parse_covariances(model_cfg.get('covariances')),
            )
            specs[name] = (spec, model_cfg.get('objective', 'FIML'))
        return specs

    def _validate(self) -> None:
        columns = list(self.raw_df.columns)
        self.schema.validate(columns)

        vignette = self.config.get('vignette')
        if vignette and vignette['column'] not in columns:
            raise MissingColumnError([vignette['column']], context="vignette condition")

        for analysis_name, efa_cfg in self.config['efa'].get('analyses', {}).items():
            for construct_name in efa_cfg.get('constructs', []):
                if construct_name not in self.schema:
                    raise ConfigurationError(f"EFA '{analysis_name}' references unknown construct '{construct_name}'.")
            n_items = len(self.schema.items_for(efa_cfg.get('constructs', [])))
            n_factors = self._efa_factor_count(efa_cfg)
            if not 1 <= n_factors <= n_items:
                raise ConfigurationError(f"EFA '{analysis_name}' asks for {n_factors} factor(s) from {n_items} item(s).")
        for construct_name in self._reliability_constructs():
            if construct_name not in self.schema:
                raise ConfigurationError(f"Reliability references unknown construct '{construct_name}'.")
        cfa = self.config.get('cfa')
        if cfa:
            for construct_name in cfa.get('constructs') or self.schema.names:
                if construct_name not in self.schema:
                    raise ConfigurationError(f"CFA references unknown construct '{construct_name}'.")

        derived = set(self.schema.names) | set(self._dummy_columns())
        clashes = sorted(derived & set(columns))
        if clashes:
            raise ConfigurationError(f"Derived column names clash with source columns: {clashes}")
        dummy_clashes = sorted(set(self.schema.names) & set(self._dummy_columns()))
        if dummy_clashes:
            raise ConfigurationError(f"Construct names clash with vignette dummy columns: {dummy_clashes}")
        available = set(columns) | derived
        for name, (spec, _) in self.model_specs.items():
            missing_cols = [v for v in SEMAnalyzer.observed_variables(spec) if v not in available]
            if missing_cols:
                raise MissingColumnError(missing_cols, context=f"model '{name}'")

    @staticmethod
    def _efa_factor_count(analysis_cfg: Dict[str, Any]) -> int:
        return int(analysis_cfg.get('n_factors', len(analysis_cfg.get('constructs', [])) or 1))

    def _reliability_constructs(self) -> List[str]:
        names = self.config['reliability'].get('constructs')
        return list(names) if names else self.schema.names

    # --- Stages ---
    def code_vignettes(self, data_df: pd.DataFrame) -> pd.DataFrame:
        vignette = self.config.get('vignette')
        if not vignette:
            return data_df.copy()
        return self.vignette_coder.code(data_df, vignette['column'], vignette['levels'],
                                        reference=vignette.get('reference'), prefix=vignette.get('prefix', 'vignette_'))

    def impute(self, data_df: pd.DataFrame) -> Tuple[Optional[pd.DataFrame], Dict[str, int]]:
        """Imputes the items of every construct flagged for imputation. Returns (None, {}) if none is flagged."""
        flagged = self.schema.imputed_constructs()
        if not flagged:
            return None, {}
        items = self.schema.items_for([c.name for c in flagged])
        counts = self.imputer.count_missing(data_df, items)
        return self.imputer.impute(data_df, items), counts

    def _efa_items(self, data_df: pd.DataFrame, imputed_df: Optional[pd.DataFrame], construct_names: List[str]) -> pd.DataFrame:
        columns = {}
        for construct_name in construct_names:
            construct = self.schema.get(construct_name)
            source_df = imputed_df if (construct.impute and imputed_df is not None) else data_df
            for item in construct.items:
                columns.setdefault(item, source_df[item])
        items_df = pd.DataFrame(columns)
        if self.config['efa'].get('missing') == 'listwise' and items_df.isna().any().any():
            n_before = len(items_df)
            items_df = items_df.dropna()
            self.logger.warning(f"AnalysisPipeline - EFA uses listwise deletion: {n_before - len(items_df)} of {n_before} respondents dropped.")
        return items_df

    def item_statistics(self, data_df: pd.DataFrame, imputed_df: Optional[pd.DataFrame]) -> pd.DataFrame:
        """Item-total correlation and alpha-if-deleted for every item of the reliability constructs."""
        tables = []
        for construct in self.schema.subset(self._reliability_constructs()):
            source_df = imputed_df if (construct.impute and imputed_df is not None) else data_df
            tables.append(self.analysis_service.run_item_statistics(source_df[list(construct.items)], construct.name))
        return pd.concat(tables, ignore_index=True)

    def analyze_measurement(self, data_df: pd.DataFrame, imputed_df: Optional[pd.DataFrame]) -> Tuple[pd.DataFrame, pd.DataFrame, Dict[str, Any]]:
        """Reliability and item statistics per construct, and the configured EFA runs."""
        reliability = self.analysis_service.run_reliability(
            data_df, self.schema.subset(self._reliability_constructs()), imputed_df=imputed_df)
        item_stats = self.item_statistics(data_df, imputed_df)

        efa_cfg = self.config['efa']
        efa_results = {}
        for analysis_name, analysis_cfg in efa_cfg.get('analyses', {}).items():
            items_df = self._efa_items(data_df, imputed_df, list(analysis_cfg.get('constructs', [])))
            n_factors = self._efa_factor_count(analysis_cfg)
            try:
                efa_results[analysis_name] = self.analysis_service.run_efa(
                    items_df, n_factors,
                    rotation=analysis_cfg.get('rotation', efa_cfg.get('rotation')),
                    method=analysis_cfg.get('method', efa_cfg.get('method', 'minres')),
                    loading_threshold=float(analysis_cfg.get('loading_threshold', efa_cfg.get('loading_threshold', 0.4))),
                )
            except InvalidInputError as e:
                if efa_cfg.get('missing') == 'error':
                    raise
                # listwise deletion can leave too few respondents
                self.logger.error(f"AnalysisPipeline - EFA '{analysis_name}' skipped: {e}")
                efa_results[analysis_name] = None
        return reliability, item_stats, efa_results

    def score(self, data_df: pd.DataFrame, imputed_df: Optional[pd.DataFrame]) -> pd.DataFrame:
        return self.scorer.score_all(data_df, self.schema, imputed_df=imputed_df)

    def fit_models(self, scored_df: pd.DataFrame) -> Dict[str, Optional[Dict[str, Any]]]:
        results = {}
        cfa = self.config.get('cfa')
        if cfa:
            results['cfa'] = self.analysis_service.run_cfa(scored_df, self.schema, cfa.get('constructs'),
                                                           objective=cfa.get('objective', 'FIML'))
        for name, (spec, objective) in self.model_specs.items():
            results[name] = self.analysis_service.run_model(scored_df, spec, name, objective=objective)
        return results

    def run(self) -> PipelineResult:
        self.logger.info("AnalysisPipeline - Starting run.")
        coded_df = self.code_vignettes(self.raw_df)
        imputed_df, counts = self.impute(coded_df)
        reliability, item_stats, efa_results = self.analyze_measurement(coded_df, imputed_df)
        scored_df = self.score(coded_df, imputed_df)
        composites = self.schema.names
        descriptives = self.analysis_service.run_descriptives(scored_df, composites)
        correlations = None
        if len(composites) > 1:
            correlations = self.analysis_service.run_correlation_table(
                scored_df, composites, method=self.config['correlations'].get('method', 'pearson'))
        models = self.fit_models(scored_df)
        self.logger.info("AnalysisPipeline - Run finished.")
        return PipelineResult(raw=self.raw_df, coded=coded_df, imputed=imputed_df, scored=scored_df,
                              imputation_counts=counts, reliability=reliability, item_statistics=item_stats,
                              efa=efa_results,
                              descriptives=descriptives, correlations=correlations, models=models)

    # --- Reporting ---
    def report(self, result: PipelineResult, output_dir: Optional[str] = None) -> List[str]:
        """Writes the augmented dataset, result tables and plots. Returns the written paths."""
        output_cfg = self.config['output']
        output_dir = output_dir or output_cfg.get('directory') or 'results'
        csv_reporter = CSVReporter(self.logger)
        paths = [csv_reporter.save_dataframe(result.scored, output_dir, 'scored_data.csv')]

        tables = {
            'imputation_counts': pd.DataFrame({'missing_filled': pd.Series(result.imputation_counts, dtype=int)}),
            'reliability': result.reliability,
            'item_statistics': result.item_statistics,
            'descriptives': result.descriptives,
            'correlations': result.correlations,
        }
        for name, efa in result.efa.items():
            if efa is None:
                continue
            for key in ('loadings', 'communalities', 'variance', 'assignments', 'eigenvalues'):
                tables[f"efa_{name}_{key}"] = efa[key]
        fitted = [r for r in result.models.values() if r is not None]
        if fitted:
            tables['model_fit'] = self.analysis_service.sem_analyzer.compare_models(fitted)
            for model_result in fitted:
                tables[f"model_{model_result['name']}_estimates"] = model_result['estimates']
        paths.extend(csv_reporter.save_tables(tables, output_dir))

        if output_cfg.get('plots', True):
            plotter = PlottingService(self.logger, output_dir, output_cfg.get('figure_format', 'png'), output_cfg.get('dpi', 150))
            for name, efa in result.efa.items():
                if efa is None:
                    continue
                paths.append(plotter.plot_scree(efa['eigenvalues'], analysis_name=name))
                paths.append(plotter.plot_loadings(efa['loadings'], analysis_name=name))
            if result.correlations is not None and not result.correlations.empty:
                matrix = self.analysis_service.correlation_analyzer.to_matrix(result.correlations, self.schema.names)
                paths.append(plotter.plot_correlation_matrix(matrix, analysis_name="composites"))
            vignette = self.config.get('vignette')
            if vignette:
                for composite in self.schema.names:
                    paths.append(plotter.plot_composite_by_condition(
                        result.scored, composite, vignette['column'], level_labels=vignette['levels']))
        return [p for p in paths if p]
