import pytest

from attribution_toolbox.data_handling import ConstructDefinition, ConstructSchema
from attribution_toolbox.errors import ConfigurationError, MissingColumnError


def test_from_config_accepts_lists_and_mappings():
    schema = ConstructSchema.from_config({
        'informational_support': ['item2', 'item3', 'item4', 'item5'],
        'emotional_support': {'items': ['emo1', 'emo2'], 'impute': True, 'description': 'Comfort'},
    })
    assert schema.names == ['informational_support', 'emotional_support']
    assert schema.get('informational_support').items == ('item2', 'item3', 'item4', 'item5')
    assert [c.name for c in schema.imputed_constructs()] == ['emotional_support']


def test_validate_lists_every_missing_item():
    schema = ConstructSchema.from_config({'s1': ['a', 'b'], 's2': ['c', 'd', 'b']})
    with pytest.raises(MissingColumnError) as excinfo:
        schema.validate(['a', 'c'])
    assert excinfo.value.columns == ['b', 'd']


def test_validate_passes_with_all_columns():
    schema = ConstructSchema.from_config({'s1': ['a', 'b']})
    schema.validate(['a', 'b', 'extra'])


def test_items_for_is_ordered_union():
    schema = ConstructSchema.from_config({'s1': ['a', 'b'], 's2': ['b', 'c']})
    assert schema.items_for() == ['a', 'b', 'c']
    assert schema.items_for(['s2']) == ['b', 'c']


def test_subset_and_unknown_construct():
    schema = ConstructSchema.from_config({'s1': ['a'], 's2': ['b']})
    assert schema.subset(['s2']).names == ['s2']
    with pytest.raises(ConfigurationError):
        schema.get('s3')


@pytest.mark.parametrize('bad_config', [
    {'empty': []},
    {'dup_items': ['a', 'a']},
    {'no_items': {'impute': True}},
    {'wrong_type': 5},
])
def test_malformed_constructs_raise(bad_config):
    with pytest.raises(ConfigurationError):
        ConstructSchema.from_config(bad_config)


def test_duplicate_construct_names_raise():
    with pytest.raises(ConfigurationError):
        ConstructSchema(constructs=[ConstructDefinition('s', ['a']), ConstructDefinition('s', ['b'])])
