"""
Prior-only hierarchical logistic regression models, one per thesis chapter

Every chapter model is a Bernoulli-logistic regression with sum-coded binary
predictors and crossed random intercepts and slopes for participants and
items. The models are only ever sampled from the prior: the response is left
unobserved, so pm.sample_prior_predictive gives the outcome probabilities the
priors imply before any data are seen.
"""
import itertools
import numbers
from dataclasses import dataclass

from .setup import *  # Import common functions and libraries
from .effects import InvalidArgument, check_count
from .sweep import SUMMARY_COLUMNS, summarize_draws


@dataclass(frozen=True)
class ModelDesign:
    """Fixed- and random-effect structure of one chapter model"""

    name: str
    predictors: tuple
    grouping: tuple = ('participant', 'item')
    interaction: bool = False
    description: str = ''

    @property
    def terms(self):
        """Fixed-effect terms, the interaction (if any) named 'a:b'"""
        terms = list(self.predictors)
        if self.interaction and len(self.predictors) > 1:
            terms.append(':'.join(self.predictors))
        return terms

    @property
    def cells(self):
        """All combinations of predictor levels"""
        return list(itertools.product(LEVELS, repeat=len(self.predictors)))


@dataclass(frozen=True)
class ModelPrior:
    """Named priors handed to a chapter model"""

    intercept_mean: float = INTERCEPT_PRIOR[0]
    intercept_sd: float = INTERCEPT_PRIOR[1]
    fixed_sd: float = 1.0
    random_sd: float = 1.0

    def __post_init__(self):
        for name in ('intercept_mean', 'intercept_sd', 'fixed_sd', 'random_sd'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, numbers.Real):
                raise InvalidArgument(f"{name} must be a number, got {value!r}")
        if not np.isfinite(self.intercept_mean):
            raise InvalidArgument(f"Intercept mean must be finite, got {self.intercept_mean}")
        for name in ('intercept_sd', 'fixed_sd', 'random_sd'):
            value = getattr(self, name)
            if not (np.isfinite(value) and value > 0):
                raise InvalidArgument(f"{name} must be positive, got {value}")


CHAPTER_MODELS = {
    'chapter2': ModelDesign(
        'chapter2',
        predictors=('structure',),
        description="One binary manipulation, crossed participants and items"),
    'chapter3': ModelDesign(
        'chapter3',
        predictors=('structure', 'prime'),
        description="Two binary manipulations, main effects only"),
    'chapter4': ModelDesign(
        'chapter4',
        predictors=('structure', 'prime'),
        interaction=True,
        description="Two binary manipulations and their interaction"),
}


def get_design(design):
    """Look up a chapter model by name, or pass a ModelDesign through"""
    if isinstance(design, ModelDesign):
        return design
    try:
        return CHAPTER_MODELS[design]
    except KeyError:
        raise InvalidArgument(
            f"Unknown model {design!r}, expected one of {sorted(CHAPTER_MODELS)}") from None


def generate_design_data(design, n_participants=20, n_items=16):
    """Build a balanced design for one chapter model

    Participants and items are fully crossed and conditions are rotated over
    items Latin-square style, so every participant sees every item once and
    every cell equally often.

    Parameters:
    -----------
    design : ModelDesign or str
        Chapter model
    n_participants : int
        Number of participants
    n_items : int
        Number of items

    Returns:
    --------
    pd.DataFrame
        One row per trial: participant, item and one sum-coded column per predictor
    """
    design = get_design(design)
    check_count(n_participants)
    check_count(n_items)

    cells = design.cells
    rows = []
    for p in range(n_participants):
        for i in range(n_items):
            row = {'participant': f"P{p+1}", 'item': f"I{i+1}"}
            row.update(zip(design.predictors, cells[(p + i) % len(cells)]))
            rows.append(row)
    return pd.DataFrame(rows)


def check_design_data(data, design):
    """Raise InvalidArgument unless data has the columns and coding design needs"""
    missing = [c for c in list(design.grouping) + list(design.predictors) if c not in data.columns]
    if missing:
        raise InvalidArgument(f"Data is missing columns: {missing}")
    if data.empty:
        raise InvalidArgument("Data has no rows")
    for predictor in design.predictors:
        if not data[predictor].isin(LEVELS).all():
            raise InvalidArgument(f"Predictor '{predictor}' must be sum-coded as {LEVELS}")


def fixed_effects_matrix(data, design):
    """Model matrix for the fixed effects, without the intercept column"""
    columns = [data[p].to_numpy(dtype=float) for p in design.predictors]
    if design.interaction and len(columns) > 1:
        columns.append(np.prod(columns, axis=0))
    return np.column_stack(columns)


def build_prior_model(data, design, prior):
    """Build the prior-only hierarchical logistic model

    Parameters:
    -----------
    data : pd.DataFrame
        Design data, as returned by generate_design_data
    design : ModelDesign or str
        Chapter model
    prior : ModelPrior
        Intercept, fixed-effect and random-effect priors

    Returns:
    --------
    pm.Model
        PyMC model with Deterministic 'p' (success probability per trial)
        and an unobserved Bernoulli response 'y'
    """
    design = get_design(design)
    check_design_data(data, design)

    X = fixed_effects_matrix(data, design)
    # Random effects: intercept plus a slope for every fixed-effect term
    Z = np.column_stack([np.ones(len(data)), X])

    coords = {
        "obs": np.arange(len(data)),
        "term": design.terms,
        "re_term": ['Intercept'] + design.terms,
    }
    group_idx = {}
    for group in design.grouping:
        idx, levels = pd.factorize(data[group])
        group_idx[group] = idx
        coords[group] = list(levels)

    with pm.Model(coords=coords) as model:
        # --- Fixed effects ---
        intercept = pm.Normal('intercept', mu=prior.intercept_mean, sigma=prior.intercept_sd)
        beta = pm.Normal('beta', mu=0.0, sigma=prior.fixed_sd, dims="term")

        eta = intercept + pt.dot(X, beta)

        # --- Random effects (non-centred) ---
        for group in design.grouping:
            sd = pm.HalfNormal(f'sd_{group}', sigma=prior.random_sd, dims="re_term")
            z = pm.Normal(f'z_{group}', mu=0.0, sigma=1.0, dims=(group, "re_term"))
            u = pm.Deterministic(f'u_{group}', z * sd, dims=(group, "re_term"))
            eta = eta + (u[group_idx[group]] * Z).sum(axis=1)

        p = pm.Deterministic('p', ilink(eta), dims="obs")

        # Left unobserved: prior predictive only
        pm.Bernoulli('y', p=p, dims="obs")

    return model


def sample_prior(model, draws=1000, random_seed=None):
    """Draw from the prior of a model

    Returns:
    --------
    az.InferenceData
        With a 'prior' group holding every variable, including 'p' and 'y'
    """
    check_count(draws)
    with model:
        idata = pm.sample_prior_predictive(draws=draws, random_seed=random_seed)
    return idata


def prior_probabilities(idata):
    """Prior draws of the per-trial success probability, shape (draws, trials)"""
    p = idata.prior['p'].values
    return p.reshape(-1, p.shape[-1])


def cell_probabilities(idata, data, design):
    """Mean predicted probability in every design cell, per prior draw

    Returns:
    --------
    pd.DataFrame
        Long format: one column per predictor, plus 'draw' and 'p'
    """
    design = get_design(design)
    p = prior_probabilities(idata)
    predictors = list(design.predictors)

    frames = []
    for cell, rows in data.reset_index(drop=True).groupby(predictors).groups.items():
        if not isinstance(cell, tuple):
            cell = (cell,)
        frame = pd.DataFrame({'draw': np.arange(p.shape[0]),
                              'p': p[:, rows.to_numpy()].mean(axis=1)})
        for predictor, level in zip(predictors, cell):
            frame.insert(len(frame.columns) - 2, predictor, level)
        frames.append(frame)
    return pd.concat(frames, ignore_index=True)


def implied_effects(idata, data, design):
    """Difference in mean probability between the +0.5 and -0.5 level of each predictor

    Returns:
    --------
    dict
        {predictor: np.ndarray with one effect per prior draw}
    """
    design = get_design(design)
    p = prior_probabilities(idata)
    effects = {}
    for predictor in design.predictors:
        high = data[predictor].to_numpy() == LEVELS[1]
        effects[predictor] = p[:, high].mean(axis=1) - p[:, ~high].mean(axis=1)
    return effects


def prior_predictive_grid(design, fixed_sds=SLOPE_SDS, random_sds=RANDOM_SDS,
                          draws=1000, seed=None, data=None,
                          intercept_mean=INTERCEPT_PRIOR[0],
                          intercept_sd=INTERCEPT_PRIOR[1],
                          hdi_prob=HDI_PROB, threshold=0.1, verbose=False):
    """Sample one chapter model from the prior for every (fixed SD, random SD) pair

    Parameters:
    -----------
    design : ModelDesign or str
        Chapter model
    fixed_sds, random_sds : sequence of float
        Candidate SDs for the fixed-effect and random-effect priors
    draws : int
        Prior draws per cell
    seed : int or None
        Seed for the parent SeedSequence, one child per cell
    data : pd.DataFrame or None
        Design data; a balanced design is generated when None
    hdi_prob, threshold : float
        Passed on to the summary statistics

    Returns:
    --------
    pd.DataFrame
        One row per (fixed_sd, random_sd, quantity). Quantity 'probability'
        is the mean predicted probability, 'effect_<predictor>' the implied
        effect of each predictor.
    """
    design = get_design(design)
    if data is None:
        data = generate_design_data(design)

    cells = list(itertools.product(fixed_sds, random_sds))
    streams = np.random.SeedSequence(seed).spawn(len(cells))

    rows = []
    for (fixed_sd, random_sd), stream in zip(cells, streams):
        prior = ModelPrior(intercept_mean, intercept_sd, float(fixed_sd), float(random_sd))
        if verbose:
            print(f"{design.name}: fixed SD {prior.fixed_sd}, random SD {prior.random_sd}")

        model = build_prior_model(data, design, prior)
        idata = sample_prior(model, draws=draws, random_seed=int(stream.generate_state(1)[0]))

        quantities = {'probability': prior_probabilities(idata).mean(axis=1)}
        for predictor, values in implied_effects(idata, data, design).items():
            quantities[f"effect_{predictor}"] = values

        for quantity, values in quantities.items():
            row = {'model': design.name,
                   'fixed_sd': prior.fixed_sd,
                   'random_sd': prior.random_sd,
                   'quantity': quantity}
            row.update(summarize_draws(values, hdi_prob=hdi_prob, threshold=threshold))
            rows.append(row)

    columns = ['model', 'fixed_sd', 'random_sd', 'quantity'] + SUMMARY_COLUMNS
    return pd.DataFrame(rows, columns=columns)
