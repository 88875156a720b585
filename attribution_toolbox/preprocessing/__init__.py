from .mean_imputer import MeanImputationProcessor
from .composite_scorer import CompositeScoreProcessor
from .vignette_coder import VignetteCoder
