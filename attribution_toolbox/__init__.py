"""
Attribution Toolbox
-------------------
Survey analysis of teacher-educator attributions of student failure and the
social support they offer: construct scoring, mean imputation, vignette
coding, and wrappers around EFA, reliability and SEM libraries.
"""
from .config import DEFAULT_CONFIG, load_analysis_config, merge_config
from .data_handling import ConstructDefinition, ConstructSchema, SurveyLoader
from .errors import AnalysisError, ConfigurationError, InvalidInputError, MissingColumnError
from .pipeline import AnalysisPipeline, PipelineResult
from .preprocessing import CompositeScoreProcessor, MeanImputationProcessor, VignetteCoder

__version__ = '0.1.0'
