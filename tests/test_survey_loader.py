import numpy as np
import pytest

from attribution_toolbox.data_handling import SurveyLoader
from attribution_toolbox.errors import InvalidInputError


def write_csv(tmp_path, text):
    path = tmp_path / 'survey.csv'
    path.write_text(text, encoding='utf-8')
    return str(path)


def test_missing_tokens_become_nan(logger, tmp_path):
    path = write_csv(tmp_path, "respondent_id,item1,item2\n1,3,\n2,-99,0\n3,NA,5\n")
    df = SurveyLoader(logger, id_column='respondent_id').load(path, numeric_columns=['item1', 'item2'])
    assert df.shape == (3, 3)
    assert df['item1'].isna().tolist() == [False, True, True]
    assert np.isnan(df.loc[0, 'item2'])
    # a valid zero stays a zero
    assert df.loc[1, 'item2'] == 0.0


def test_non_numeric_cells_coerced(logger, tmp_path):
    path = write_csv(tmp_path, "item1,comment\n4,fine\nsix,odd\n")
    df = SurveyLoader(logger).load(path, numeric_columns=['item1'])
    assert df['item1'].iloc[0] == 4.0
    assert np.isnan(df['item1'].iloc[1])
    assert df['comment'].tolist() == ['fine', 'odd']


def test_duplicate_ids_raise(logger, tmp_path):
    path = write_csv(tmp_path, "respondent_id,item1\n1,3\n1,4\n")
    with pytest.raises(InvalidInputError):
        SurveyLoader(logger, id_column='respondent_id').load(path)


def test_missing_file_raises(logger, tmp_path):
    with pytest.raises(FileNotFoundError):
        SurveyLoader(logger).load(str(tmp_path / 'absent.csv'))
