"""Tests for the prior-only chapter models."""
import numpy as np
import pandas as pd
import pytest

from priorcheck.effects import InvalidArgument
from priorcheck.models import (
    CHAPTER_MODELS,
    ModelDesign,
    ModelPrior,
    build_prior_model,
    cell_probabilities,
    fixed_effects_matrix,
    generate_design_data,
    get_design,
    implied_effects,
    prior_predictive_grid,
    prior_probabilities,
    sample_prior,
)


@pytest.fixture
def design():
    return CHAPTER_MODELS['chapter3']


@pytest.fixture
def data(design):
    return generate_design_data(design, n_participants=4, n_items=8)


@pytest.fixture
def idata(data, design):
    model = build_prior_model(data, design, ModelPrior(fixed_sd=1.5, random_sd=0.5))
    return sample_prior(model, draws=50, random_seed=123)


def test_design_data_is_balanced(data, design):
    assert len(data) == 4 * 8
    assert list(data.columns) == ['participant', 'item', 'structure', 'prime']
    counts = data.groupby(list(design.predictors)).size()
    assert len(counts) == 4
    assert (counts == 8).all()
    # Every participant sees every item exactly once
    assert not data.duplicated(['participant', 'item']).any()


def test_design_data_is_sum_coded(data):
    assert set(data['structure']) == {-0.5, 0.5}
    assert set(data['prime']) == {-0.5, 0.5}


def test_design_data_rejects_bad_sizes():
    with pytest.raises(InvalidArgument):
        generate_design_data('chapter2', n_participants=0)


def test_get_design_by_name_and_instance(design):
    assert get_design('chapter3') is design
    assert get_design(design) is design
    with pytest.raises(InvalidArgument):
        get_design('chapter99')


def test_interaction_term():
    design = CHAPTER_MODELS['chapter4']
    assert design.terms == ['structure', 'prime', 'structure:prime']
    data = generate_design_data(design, n_participants=2, n_items=4)
    X = fixed_effects_matrix(data, design)
    assert X.shape == (8, 3)
    np.testing.assert_array_equal(X[:, 2], X[:, 0] * X[:, 1])


def test_main_effects_only_without_interaction(design):
    assert design.terms == ['structure', 'prime']


@pytest.mark.parametrize("field", ['intercept_sd', 'fixed_sd', 'random_sd'])
def test_model_prior_rejects_non_positive_sd(field):
    with pytest.raises(InvalidArgument):
        ModelPrior(**{field: 0.0})


def test_model_prior_defaults_to_reference_intercept():
    prior = ModelPrior()
    assert (prior.intercept_mean, prior.intercept_sd) == (0.0, 1.5)


def test_model_rejects_missing_columns(data, design):
    with pytest.raises(InvalidArgument):
        build_prior_model(data.drop(columns=['item']), design, ModelPrior())


def test_model_rejects_treatment_coding(data, design):
    data = data.assign(prime=(data['prime'] > 0).astype(float))
    with pytest.raises(InvalidArgument):
        build_prior_model(data, design, ModelPrior())


def test_model_variables(data, design):
    model = build_prior_model(data, design, ModelPrior())
    names = set(model.named_vars)
    for name in ['intercept', 'beta', 'sd_participant', 'sd_item',
                 'u_participant', 'u_item', 'p', 'y']:
        assert name in names
    assert list(model.coords['re_term']) == ['Intercept', 'structure', 'prime']


def test_prior_probabilities_shape_and_range(idata, data):
    p = prior_probabilities(idata)
    assert p.shape == (50, len(data))
    assert np.all((p >= 0) & (p <= 1))


def test_prior_response_is_binary(idata):
    y = idata.prior['y'].values
    assert set(np.unique(y)) <= {0, 1}


def test_same_seed_gives_same_prior(data, design, idata):
    model = build_prior_model(data, design, ModelPrior(fixed_sd=1.5, random_sd=0.5))
    again = sample_prior(model, draws=50, random_seed=123)
    np.testing.assert_array_equal(prior_probabilities(idata), prior_probabilities(again))


def test_cell_probabilities(idata, data, design):
    cells = cell_probabilities(idata, data, design)
    assert list(cells.columns) == ['structure', 'prime', 'draw', 'p']
    assert len(cells) == 50 * 4
    assert cells['p'].between(0, 1).all()


def test_cell_probabilities_single_predictor():
    design = CHAPTER_MODELS['chapter2']
    data = generate_design_data(design, n_participants=2, n_items=4)
    idata = sample_prior(build_prior_model(data, design, ModelPrior()), draws=20, random_seed=1)
    cells = cell_probabilities(idata, data, design)
    assert list(cells.columns) == ['structure', 'draw', 'p']
    assert sorted(cells['structure'].unique()) == [-0.5, 0.5]


def test_implied_effects_match_cell_means(idata, data, design):
    effects = implied_effects(idata, data, design)
    assert list(effects) == ['structure', 'prime']
    cells = cell_probabilities(idata, data, design)
    by_level = cells.groupby(['draw', 'structure'])['p'].mean().unstack()
    np.testing.assert_allclose(effects['structure'], by_level[0.5] - by_level[-0.5])
    for values in effects.values():
        assert values.shape == (50,)
        assert np.all(np.abs(values) <= 1)


def test_prior_predictive_grid():
    design = CHAPTER_MODELS['chapter2']
    data = generate_design_data(design, n_participants=3, n_items=4)
    table = prior_predictive_grid(design, fixed_sds=[1.0, 2.0], random_sds=[0.5],
                                  draws=30, seed=7, data=data)
    assert len(table) == 2 * 1 * 2
    assert set(table['quantity']) == {'probability', 'effect_structure'}
    assert set(table['fixed_sd']) == {1.0, 2.0}
    assert (table['model'] == 'chapter2').all()
    assert (table['n'] == 30).all()
    probability = table[table['quantity'] == 'probability']
    assert probability['mean'].between(0, 1).all()


def test_prior_predictive_grid_is_reproducible():
    design = ModelDesign('custom', predictors=('structure',), grouping=('participant',))
    data = generate_design_data(design, n_participants=3, n_items=4)
    first = prior_predictive_grid(design, [1.0], [1.0], draws=20, seed=3, data=data)
    second = prior_predictive_grid(design, [1.0], [1.0], draws=20, seed=3, data=data)
    pd.testing.assert_frame_equal(first, second)


def test_prior_predictive_grid_rejects_bad_sd():
    design = CHAPTER_MODELS['chapter2']
    data = generate_design_data(design, n_participants=2, n_items=2)
    with pytest.raises(InvalidArgument):
        prior_predictive_grid(design, [0.0], [1.0], draws=10, data=data)


@pytest.mark.parametrize("field", ['intercept_mean', 'intercept_sd', 'fixed_sd', 'random_sd'])
def test_model_prior_rejects_non_numeric_values(field):
    with pytest.raises(InvalidArgument):
        ModelPrior(**{field: None})
