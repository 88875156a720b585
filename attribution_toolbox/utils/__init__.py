from .logging_utils import setup_logging, log_progress_bar
from .stats_utils import apply_fdr_correction
