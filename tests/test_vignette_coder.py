import numpy as np
import pandas as pd
import pytest

from attribution_toolbox.errors import ConfigurationError, InvalidInputError, MissingColumnError
from attribution_toolbox.preprocessing import VignetteCoder

LEVELS = {1: 'ability', 2: 'effort', 3: 'external'}


def test_dummies_against_reference(logger, small_df):
    coded = VignetteCoder(logger).code(small_df, 'condition', LEVELS, reference='external')
    assert coded['vignette_ability'].tolist() == [1.0, 0.0, 0.0]
    assert coded['vignette_effort'].tolist() == [0.0, 1.0, 0.0]
    assert 'vignette_external' not in coded.columns
    assert 'condition' in coded.columns


def test_default_reference_is_first_level(logger, small_df):
    coded = VignetteCoder(logger).code(small_df, 'condition', LEVELS)
    assert 'vignette_ability' not in coded.columns
    assert {'vignette_effort', 'vignette_external'} <= set(coded.columns)


def test_missing_condition_gives_nan_dummies(logger):
    df = pd.DataFrame({'condition': [1.0, np.nan, 2.0]})
    coded = VignetteCoder(logger).code(df, 'condition', LEVELS, reference='external')
    assert np.isnan(coded.loc[1, 'vignette_ability'])
    assert np.isnan(coded.loc[1, 'vignette_effort'])
    assert coded.loc[2, 'vignette_effort'] == 1.0


def test_string_codes_from_config(logger, small_df):
    coded = VignetteCoder(logger).code(small_df, 'condition', {'1': 'ability', '2': 'effort', '3': 'external'}, reference='external')
    assert coded['vignette_ability'].tolist() == [1.0, 0.0, 0.0]


def test_unknown_level_raises(logger):
    df = pd.DataFrame({'condition': [1, 4]})
    with pytest.raises(InvalidInputError):
        VignetteCoder(logger).code(df, 'condition', LEVELS)


def test_missing_condition_column_raises(logger, small_df):
    with pytest.raises(MissingColumnError):
        VignetteCoder(logger).code(small_df, 'vignette', LEVELS)


def test_unknown_reference_raises(logger, small_df):
    with pytest.raises(ConfigurationError):
        VignetteCoder(logger).code(small_df, 'condition', LEVELS, reference='luck')


def test_input_not_mutated(logger, small_df):
    columns = list(small_df.columns)
    VignetteCoder(logger).code(small_df, 'condition', LEVELS)
    assert list(small_df.columns) == columns
