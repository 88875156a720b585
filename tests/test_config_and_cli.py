import os

import pytest
import yaml

from attribution_toolbox.config import DEFAULT_CONFIG, load_analysis_config, merge_config
from attribution_toolbox.errors import ConfigurationError
from attribution_toolbox.run_analysis import main


def test_merge_keeps_defaults():
    config = merge_config({'efa': {'rotation': 'varimax'}})
    assert config['efa']['rotation'] == 'varimax'
    assert config['efa']['method'] == DEFAULT_CONFIG['efa']['method']
    assert DEFAULT_CONFIG['efa']['rotation'] == 'oblimin'


def test_merge_rejects_bad_vignette():
    with pytest.raises(ConfigurationError):
        merge_config({'vignette': {'column': 'vignette'}})


def test_load_resolves_relative_paths(tmp_path):
    path = tmp_path / 'analysis.yaml'
    path.write_text(yaml.safe_dump({'data': {'csv_path': 'survey.csv'}, 'constructs': {'s': ['a']}}), encoding='utf-8')
    config = load_analysis_config(str(path))
    assert config['data']['csv_path'] == os.path.join(str(tmp_path), 'survey.csv')
    assert config['output']['directory'] == os.path.join(str(tmp_path), 'results')


def test_load_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_analysis_config(str(tmp_path / 'absent.yaml'))


def test_cli_usage():
    assert main([]) == 1


def test_cli_full_run(survey_df, survey_config, tmp_path):
    survey_df.to_csv(tmp_path / 'survey.csv', index=False)
    survey_config['data'] = {'csv_path': 'survey.csv'}
    survey_config['output'] = {'directory': 'out', 'plots': False}
    config_path = tmp_path / 'analysis.yaml'
    config_path.write_text(yaml.safe_dump(survey_config), encoding='utf-8')
    assert main([str(config_path), 'WARNING']) == 0
    assert (tmp_path / 'out' / 'scored_data.csv').exists()


def test_cli_reports_missing_columns(survey_df, survey_config, tmp_path):
    survey_df.to_csv(tmp_path / 'survey.csv', index=False)
    survey_config['data'] = {'csv_path': 'survey.csv'}
    survey_config['constructs']['comp_c'] = ['c1']
    config_path = tmp_path / 'analysis.yaml'
    config_path.write_text(yaml.safe_dump(survey_config), encoding='utf-8')
    assert main([str(config_path)]) == 1
