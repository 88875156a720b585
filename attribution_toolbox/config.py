"""
Configuration Module
--------------------
Loads the YAML analysis configuration and merges it over the defaults.
Construct definitions always come from configuration; there is no built-in
item list.
"""
import copy
import os
from typing import Any, Dict, Optional

import yaml

from .errors import ConfigurationError

DEFAULT_CONFIG: Dict[str, Any] = {
    'data': {
        'csv_path': None,
        'id_column': None,
        'sep': ',',
        'missing_values': ['', 'NA', 'N/A', 'NaN', 'nan', '-99', '-999'],
    },
    'vignette': None,
    'constructs': {},
    'efa': {
        'analyses': {},
        'rotation': 'oblimin',
        'method': 'minres',
        'loading_threshold': 0.4,
        'missing': 'listwise',
    },
    'reliability': {
        'constructs': None,
    },
    'cfa': None,
    'models': {},
    'correlations': {
        'method': 'pearson',
    },
    'output': {
        'directory': 'results',
        'figure_format': 'png',
        'dpi': 150,
        'plots': True,
    },
    'logging': {
        'level': 'INFO',
        'file': None,
    },
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def merge_config(overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """DEFAULT_CONFIG with the given overrides applied (nested mappings are merged)."""
    config = _merge(DEFAULT_CONFIG, overrides or {})
    if not isinstance(config.get('constructs'), dict):
        raise ConfigurationError("'constructs' must be a mapping.")
    if not isinstance(config.get('models') or {}, dict):
        raise ConfigurationError("'models' must be a mapping of model name to specification.")
    vignette = config.get('vignette')
    if vignette is not None:
        if not isinstance(vignette, dict) or not vignette.get('column') or not vignette.get('levels'):
            raise ConfigurationError("'vignette' needs 'column' and 'levels'.")
    if config['efa'].get('missing') not in ('listwise', 'error'):
        raise ConfigurationError("'efa.missing' must be 'listwise' or 'error'.")
    return config


def load_analysis_config(path: str) -> Dict[str, Any]:
    """
    Reads a YAML config file. A relative data.csv_path and output.directory
    are resolved against the config file's directory.
    """
    if not os.path.isfile(path):
        raise FileNotFoundError(path)
    with open(path, 'r', encoding='utf-8') as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping at the top level.")
    config = merge_config(raw)
    base_dir = os.path.dirname(os.path.abspath(path))
    csv_path = config['data'].get('csv_path')
    if csv_path and not os.path.isabs(csv_path):
        config['data']['csv_path'] = os.path.join(base_dir, csv_path)
    out_dir = config['output'].get('directory')
    if out_dir and not os.path.isabs(out_dir):
        config['output']['directory'] = os.path.join(base_dir, out_dir)
    return config
