import logging

import matplotlib
matplotlib.use('Agg')
import numpy as np
import pandas as pd
import pytest


@pytest.fixture
def logger():
    test_logger = logging.getLogger('AttributionAnalysisTests')
    test_logger.setLevel(logging.DEBUG)
    return test_logger


@pytest.fixture
def small_df():
    """Hand-built table with missing cells and a valid zero."""
    return pd.DataFrame({
        'x': [1.0, np.nan, 3.0],
        'a': [4.0, np.nan, 2.0],
        'b': [np.nan, np.nan, 0.0],
        'c': [5.0, 6.0, np.nan],
        'condition': [1, 2, 3],
    })


@pytest.fixture
def survey_df():
    """
    Synthetic two-factor survey: items a1-a4 load on one latent variable,
    b1-b4 on another; 'support' depends on both. About 5% of the b-items
    are missing.
    """
    rng = np.random.default_rng(20240501)
    n = 300
    f1 = rng.normal(size=n)
    f2 = rng.normal(size=n)
    data = {'respondent_id': np.arange(1, n + 1), 'vignette': rng.integers(1, 4, size=n)}
    for i in range(1, 5):
        data[f'a{i}'] = np.clip(np.round(3.5 + f1 + rng.normal(scale=0.5, size=n)), 1, 6)
        data[f'b{i}'] = np.clip(np.round(3.5 + f2 + rng.normal(scale=0.5, size=n)), 1, 6)
    data['support'] = 3.0 + 0.6 * f1 - 0.3 * f2 + rng.normal(scale=0.5, size=n)
    df = pd.DataFrame(data)
    for i in range(1, 5):
        mask = rng.random(n) < 0.05
        df.loc[mask, f'b{i}'] = np.nan
    return df


@pytest.fixture
def survey_config():
    return {
        'vignette': {
            'column': 'vignette',
            'levels': {1: 'ability', 2: 'effort', 3: 'external'},
            'reference': 'external',
        },
        'constructs': {
            'comp_a': ['a1', 'a2', 'a3', 'a4'],
            'comp_b': {'items': ['b1', 'b2', 'b3', 'b4'], 'impute': True},
        },
        'efa': {'analyses': {'ab': {'constructs': ['comp_a', 'comp_b'], 'n_factors': 2}}},
        'models': {
            'support_model': {
                'regressions': {'support': ['comp_a', 'comp_b', 'vignette_ability', 'vignette_effort']},
                'objective': 'MLW',
            },
        },
        'output': {'plots': False},
    }
