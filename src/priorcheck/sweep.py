"""
Grid sweep over slope priors

Runs the effect-size simulation once per candidate slope SD and aggregates the
resulting distributions into tables for side-by-side comparison.
"""
from concurrent.futures import ThreadPoolExecutor, as_completed

import arviz as az
import numpy as np
import pandas as pd

from .effects import InvalidArgument, PriorConfig, check_count, simulate_config
from .setup import HDI_PROB, INTERCEPT_PRIOR, N_DRAWS, SLOPE_SDS

SUMMARY_COLUMNS = ['n', 'mean', 'sd', 'q025', 'median', 'q975',
                   'hdi_low', 'hdi_high', 'p_above']


def prior_grid(slope_sds=SLOPE_SDS,
               intercept_mean=INTERCEPT_PRIOR[0],
               intercept_sd=INTERCEPT_PRIOR[1]):
    """One PriorConfig per candidate slope SD, intercept prior held fixed"""
    return [PriorConfig(intercept_mean, intercept_sd, float(sd)) for sd in slope_sds]


def sweep_effects(slope_sds=SLOPE_SDS, n=N_DRAWS,
                  intercept_mean=INTERCEPT_PRIOR[0],
                  intercept_sd=INTERCEPT_PRIOR[1],
                  seed=None, workers=1, skip_failed=False, verbose=False):
    """Simulate the effect-size distribution for every slope SD in the grid

    Each cell draws from its own child of a single SeedSequence, so a fixed
    seed gives the same distributions whatever the number of workers.

    Parameters:
    -----------
    slope_sds : sequence of float
        Candidate standard deviations for the slope prior
    n : int
        Number of draws per cell
    intercept_mean, intercept_sd : float
        Intercept prior, shared by all cells
    seed : int or None
        Seed for the parent SeedSequence
    workers : int
        Number of threads to spread the cells over
    skip_failed : bool
        If True, report and drop cells that fail validation instead of aborting
    verbose : bool
        Print one line per finished cell

    Returns:
    --------
    dict
        {slope_sd: np.ndarray of effect sizes}, in grid order

    Raises:
    -------
    InvalidArgument
        If n or workers is invalid, slope_sds repeats a value, or a cell
        fails validation and skip_failed is False
    """
    check_count(n)
    if workers < 1:
        raise InvalidArgument(f"Number of workers must be at least 1, got {workers}")

    slope_sds = [float(sd) for sd in slope_sds]
    duplicates = sorted({sd for sd in slope_sds if slope_sds.count(sd) > 1})
    if duplicates:
        raise InvalidArgument(f"Slope SDs must be unique, got duplicates {duplicates}")
    streams = np.random.SeedSequence(seed).spawn(len(slope_sds))

    def run_cell(slope_sd, stream):
        config = PriorConfig(intercept_mean, intercept_sd, slope_sd)
        return simulate_config(config, n, rng=np.random.default_rng(stream))

    results = {}
    failed = []

    def collect(slope_sd, compute):
        try:
            results[slope_sd] = compute()
        except InvalidArgument as e:
            if not skip_failed:
                raise
            failed.append(slope_sd)
            print(f"Skipping slope SD {slope_sd}: {e}")
            return
        if verbose:
            values = results[slope_sd]
            print(f"slope SD {slope_sd:>5}: {n} draws, "
                  f"mean effect {values.mean():+.4f}, "
                  f"95% range [{np.quantile(values, 0.025):+.4f}, {np.quantile(values, 0.975):+.4f}]")

    if workers == 1:
        for slope_sd, stream in zip(slope_sds, streams):
            collect(slope_sd, lambda: run_cell(slope_sd, stream))
    else:
        with ThreadPoolExecutor(max_workers=workers) as ex:
            futures = {ex.submit(run_cell, sd, stream): sd
                       for sd, stream in zip(slope_sds, streams)}
            for fut in as_completed(futures):
                collect(futures[fut], fut.result)

    if failed and verbose:
        print(f"{len(failed)} of {len(slope_sds)} cells skipped")

    return {sd: results[sd] for sd in slope_sds if sd in results}


def effects_frame(effects):
    """Long-format table of a sweep: one row per (slope_sd, draw)"""
    frames = [pd.DataFrame({'slope_sd': sd,
                            'draw': np.arange(len(values)),
                            'effect': values})
              for sd, values in effects.items()]
    if not frames:
        return pd.DataFrame(columns=['slope_sd', 'draw', 'effect'])
    return pd.concat(frames, ignore_index=True)


def summarize_draws(values, hdi_prob=HDI_PROB, threshold=0.1):
    """Summary statistics for one distribution of effect sizes"""
    values = np.asarray(values, dtype=float)
    if len(values) == 0:
        raise InvalidArgument("Cannot summarize an empty set of draws")
    if len(values) > 1:
        hdi_low, hdi_high = az.hdi(values, hdi_prob=hdi_prob)
        sd = values.std(ddof=1)
    else:
        hdi_low = hdi_high = values[0]
        sd = 0.0
    q025, median, q975 = np.quantile(values, [0.025, 0.5, 0.975])
    return {
        'n': len(values),
        'mean': values.mean(),
        'sd': sd,
        'q025': q025,
        'median': median,
        'q975': q975,
        'hdi_low': hdi_low,
        'hdi_high': hdi_high,
        'p_above': np.mean(np.abs(values) > threshold),
    }


def summarize_effects(effects, hdi_prob=HDI_PROB, threshold=0.1):
    """Table with one row of summary statistics per slope SD

    Parameters:
    -----------
    effects : dict
        {slope_sd: array of effect sizes}, as returned by sweep_effects
    hdi_prob : float
        Mass of the highest density interval
    threshold : float
        p_above is the share of draws with |effect| > threshold

    Returns:
    --------
    pd.DataFrame
        Indexed by slope_sd
    """
    if not 0 < hdi_prob < 1:
        raise InvalidArgument(f"HDI probability must be between 0 and 1, got {hdi_prob}")

    if not effects:
        return pd.DataFrame(columns=SUMMARY_COLUMNS).rename_axis('slope_sd')

    rows = []
    for slope_sd, values in effects.items():
        row = {'slope_sd': slope_sd}
        row.update(summarize_draws(values, hdi_prob=hdi_prob, threshold=threshold))
        rows.append(row)
    return pd.DataFrame(rows).set_index('slope_sd')
