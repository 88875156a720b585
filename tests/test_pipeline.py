"""
Tests for the AnalysisPipeline: fail-fast validation, stage isolation and a full run.
"""
import os

import numpy as np
import pytest
from pandas.testing import assert_frame_equal

from attribution_toolbox.errors import ConfigurationError, InvalidInputError, MissingColumnError
from attribution_toolbox.pipeline import AnalysisPipeline


def test_construction_fails_on_missing_item(logger, survey_df, survey_config):
    survey_config['constructs']['comp_c'] = ['c1', 'c2']
    with pytest.raises(MissingColumnError) as excinfo:
        AnalysisPipeline(logger, survey_config, survey_df)
    assert excinfo.value.columns == ['c1', 'c2']


def test_construction_fails_on_missing_model_variable(logger, survey_df, survey_config):
    survey_config['models']['support_model']['regressions']['support'].append('self_efficacy')
    with pytest.raises(MissingColumnError):
        AnalysisPipeline(logger, survey_config, survey_df)


def test_construction_fails_on_missing_vignette_column(logger, survey_df, survey_config):
    with pytest.raises(MissingColumnError):
        AnalysisPipeline(logger, survey_config, survey_df.drop(columns='vignette'))


def test_construct_name_clash_with_source_column(logger, survey_df, survey_config):
    survey_config['constructs']['support'] = ['a1', 'b1']
    with pytest.raises(ConfigurationError):
        AnalysisPipeline(logger, survey_config, survey_df)


def test_unknown_efa_construct(logger, survey_df, survey_config):
    survey_config['efa']['analyses']['ab']['constructs'].append('comp_z')
    with pytest.raises(ConfigurationError):
        AnalysisPipeline(logger, survey_config, survey_df)


def test_construct_name_clash_with_dummy_column(logger, survey_df, survey_config):
    survey_config['constructs']['vignette_ability'] = ['a1', 'a2']
    with pytest.raises(ConfigurationError, match='vignette_ability'):
        AnalysisPipeline(logger, survey_config, survey_df)


def test_efa_factor_count_above_item_count(logger, survey_df, survey_config):
    survey_config['efa']['analyses']['ab']['n_factors'] = 20
    with pytest.raises(ConfigurationError):
        AnalysisPipeline(logger, survey_config, survey_df)


def test_efa_missing_error_policy_raises(logger, survey_df, survey_config):
    survey_config['efa']['missing'] = 'error'
    df = survey_df.copy()
    df.loc[0, 'a1'] = np.nan
    pipeline = AnalysisPipeline(logger, survey_config, df)
    with pytest.raises(InvalidInputError):
        pipeline.run()


def test_efa_listwise_policy_drops_incomplete_rows(logger, survey_df, survey_config):
    df = survey_df.copy()
    df.loc[0, 'a1'] = np.nan
    result = AnalysisPipeline(logger, survey_config, df).run()
    assert result.efa['ab'] is not None


def test_stages_do_not_mutate_inputs(logger, survey_df, survey_config):
    pipeline = AnalysisPipeline(logger, survey_config, survey_df)
    raw = pipeline.raw_df.copy()
    coded = pipeline.code_vignettes(pipeline.raw_df)
    coded_copy = coded.copy()
    imputed, _ = pipeline.impute(coded)
    pipeline.score(coded, imputed)
    assert_frame_equal(pipeline.raw_df, raw)
    assert_frame_equal(coded, coded_copy)


def test_impute_only_flagged_items(logger, survey_df, survey_config):
    pipeline = AnalysisPipeline(logger, survey_config, survey_df)
    imputed, counts = pipeline.impute(survey_df)
    assert set(counts) == {'b1', 'b2', 'b3', 'b4'}
    assert counts['b1'] == int(survey_df['b1'].isna().sum())
    assert imputed[['b1', 'b2', 'b3', 'b4']].isna().sum().sum() == 0
    assert_frame_equal(imputed[['a1', 'support']], survey_df[['a1', 'support']])


def test_no_flagged_constructs_means_no_imputation(logger, survey_df, survey_config):
    survey_config['constructs']['comp_b'] = ['b1', 'b2', 'b3', 'b4']
    survey_config['efa'] = {'analyses': {}}
    pipeline = AnalysisPipeline(logger, survey_config, survey_df)
    imputed, counts = pipeline.impute(survey_df)
    assert imputed is None and counts == {}


def test_full_run(logger, survey_df, survey_config):
    result = AnalysisPipeline(logger, survey_config, survey_df).run()

    assert len(result.scored) == len(survey_df)
    assert {'vignette_ability', 'vignette_effort', 'comp_a', 'comp_b'} <= set(result.scored.columns)
    # source columns kept and still un-imputed
    assert result.scored['b1'].isna().sum() == survey_df['b1'].isna().sum()
    # flagged construct scored from imputed items: never missing
    assert result.scored['comp_b'].notna().all()
    expected_b = result.imputed[['b1', 'b2', 'b3', 'b4']].mean(axis=1)
    np.testing.assert_allclose(result.scored['comp_b'].to_numpy(), expected_b.to_numpy())

    assert result.reliability['construct'].tolist() == ['comp_a', 'comp_b']
    assert len(result.item_statistics) == 8
    assert result.item_statistics.groupby('construct')['item'].apply(list).to_dict() == {
        'comp_a': ['a1', 'a2', 'a3', 'a4'], 'comp_b': ['b1', 'b2', 'b3', 'b4']}
    # flagged construct assessed on imputed items
    assert result.item_statistics['alpha_if_deleted'].notna().all()
    assert result.efa['ab']['loadings'].shape == (8, 2)
    assert result.descriptives['variable'].tolist() == ['comp_a', 'comp_b']
    assert len(result.correlations) == 1
    assert result.models['support_model'] is not None


def test_report_writes_outputs(logger, survey_df, survey_config, tmp_path):
    survey_config['output'] = {'plots': True, 'figure_format': 'png', 'dpi': 50}
    pipeline = AnalysisPipeline(logger, survey_config, survey_df)
    paths = pipeline.report(pipeline.run(), output_dir=str(tmp_path))
    names = {os.path.basename(p) for p in paths}
    assert {'scored_data.csv', 'reliability.csv', 'item_statistics.csv', 'imputation_counts.csv', 'model_fit.csv'} <= names
    assert 'ab_scree.png' in names and 'ab_loadings.png' in names
    assert 'comp_a_by_vignette.png' in names
    assert all(os.path.exists(p) for p in paths)


def test_from_config_loads_csv(logger, survey_df, survey_config, tmp_path):
    csv_path = tmp_path / 'survey.csv'
    survey_df.to_csv(csv_path, index=False)
    survey_config['data'] = {'csv_path': str(csv_path), 'id_column': 'respondent_id'}
    pipeline = AnalysisPipeline.from_config(logger, survey_config)
    assert len(pipeline.raw_df) == len(survey_df)
    assert pipeline.raw_df['b1'].isna().sum() == survey_df['b1'].isna().sum()


def test_from_config_requires_csv_path(logger, survey_config):
    with pytest.raises(ConfigurationError):
        AnalysisPipeline.from_config(logger, survey_config)
