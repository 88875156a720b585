from .csv_reporter import CSVReporter
from .plotting_service import PlottingService
