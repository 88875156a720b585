"""
Run Analysis
------------
Command-line entry point: runs the full survey analysis described by a YAML config.

    python -m attribution_toolbox.run_analysis <config.yaml> [log_level]
"""
import sys
from typing import List, Optional

from .config import load_analysis_config
from .errors import AnalysisError
from .pipeline import AnalysisPipeline
from .utils.logging_utils import setup_logging

USAGE = "Usage: python -m attribution_toolbox.run_analysis <config.yaml> [log_level]"


def main(argv: Optional[List[str]] = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if not args or args[0] in ('-h', '--help'):
        print(USAGE)
        return 1
    try:
        config = load_analysis_config(args[0])
    except (FileNotFoundError, AnalysisError) as e:
        print(f"[ANALYSIS] Could not load config {args[0]}: {e}")
        return 1

    log_cfg = config['logging']
    logger = setup_logging(args[1] if len(args) > 1 else log_cfg.get('level', 'INFO'), log_cfg.get('file'))
    try:
        pipeline = AnalysisPipeline.from_config(logger, config)
        result = pipeline.run()
        paths = pipeline.report(result)
    except (FileNotFoundError, AnalysisError) as e:
        logger.error(f"RunAnalysis - Analysis aborted: {e}")
        return 1
    logger.info(f"RunAnalysis - Wrote {len(paths)} output file(s) to {config['output']['directory']}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
