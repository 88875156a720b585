from .analysis_service import AnalysisService
from .correlation_analyzer import CorrelationAnalyzer
from .descriptive_analyzer import DescriptiveAnalyzer
from .efa_analyzer import EFAAnalyzer
from .reliability_analyzer import ReliabilityAnalyzer
from .sem_analyzer import SEMAnalyzer
