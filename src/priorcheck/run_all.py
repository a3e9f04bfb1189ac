"""
Run the prior predictive checks

1. Effect-size sweep: the implied effect of a sum-coded predictor for every
   candidate slope SD, intercept fixed at Normal(0, 1.5).
2. Chapter models (optional): prior-only hierarchical logistic models over
   the cross product of fixed-effect and random-effect SDs.

Usage:
    priorcheck --draws 10000 --slope-sds 1 1.5 2 --seed 2024
    priorcheck --chapters chapter2 chapter4 --model-draws 500
"""
import argparse
import time

from .setup import (HDI_PROB, INTERCEPT_PRIOR, N_DRAWS, RANDOM_SDS,
                    SLOPE_SDS, print_version_info)
from .effects import InvalidArgument
from .models import generate_design_data, get_design, prior_predictive_grid
from .sweep import summarize_effects, sweep_effects


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Prior predictive checks for the chapter models.")
    p.add_argument("--draws", type=int, default=N_DRAWS,
                   help=f"Monte Carlo draws per slope SD (default: {N_DRAWS}).")
    p.add_argument("--slope-sds", type=float, nargs="+", default=list(SLOPE_SDS),
                   help="Candidate SDs for the slope / fixed-effect prior.")
    p.add_argument("--random-sds", type=float, nargs="+", default=list(RANDOM_SDS),
                   help="Candidate SDs for the random-effect prior (chapter models only).")
    p.add_argument("--intercept-mean", type=float, default=INTERCEPT_PRIOR[0])
    p.add_argument("--intercept-sd", type=float, default=INTERCEPT_PRIOR[1])
    p.add_argument("--seed", type=int, default=None,
                   help="Random seed. Without it every run differs.")
    p.add_argument("--workers", type=int, default=1,
                   help="Threads for the effect-size sweep (default: 1).")
    p.add_argument("--skip-failed", action="store_true",
                   help="Skip grid cells that fail validation instead of aborting.")
    p.add_argument("--hdi-prob", type=float, default=HDI_PROB)
    p.add_argument("--threshold", type=float, default=0.1,
                   help="Report the share of draws with |effect| above this value.")
    p.add_argument("--chapters", nargs="*", default=[],
                   help="Chapter models to sample from the prior (e.g. chapter2).")
    p.add_argument("--model-draws", type=int, default=1000,
                   help="Prior draws per cell for the chapter models (default: 1000).")
    p.add_argument("--participants", type=int, default=20)
    p.add_argument("--items", type=int, default=16)
    p.add_argument("--quiet", action="store_true", help="Only print the summary tables.")
    return p.parse_args(argv)


def banner(title):
    print("\n" + "="*80)
    print(title)
    print("="*80)


def run_all(args):
    """Run the effect-size sweep and the requested chapter models

    Returns:
    --------
    dict
        'effects' (summary table of the sweep) and 'models'
        ({chapter: summary table of its prior grid})
    """
    verbose = not args.quiet
    if verbose:
        print_version_info()

    timings = {}

    banner("Effect-size sweep")
    start = time.time()
    effects = sweep_effects(args.slope_sds, n=args.draws,
                            intercept_mean=args.intercept_mean,
                            intercept_sd=args.intercept_sd,
                            seed=args.seed, workers=args.workers,
                            skip_failed=args.skip_failed, verbose=verbose)
    summary = summarize_effects(effects, hdi_prob=args.hdi_prob, threshold=args.threshold)
    timings['effect sweep'] = time.time() - start
    print(summary.round(4))

    model_summaries = {}
    for i, chapter in enumerate(args.chapters):
        design = get_design(chapter)
        banner(f"Model {design.name}: {design.description}")
        start = time.time()
        data = generate_design_data(design, args.participants, args.items)
        seed = None if args.seed is None else args.seed + i + 1
        table = prior_predictive_grid(design, args.slope_sds, args.random_sds,
                                      draws=args.model_draws, seed=seed, data=data,
                                      intercept_mean=args.intercept_mean,
                                      intercept_sd=args.intercept_sd,
                                      hdi_prob=args.hdi_prob, threshold=args.threshold,
                                      verbose=verbose)
        timings[design.name] = time.time() - start
        print(table.round(4).to_string(index=False))
        model_summaries[design.name] = table

    if verbose:
        banner("EXECUTION TIMES")
        for name, seconds in timings.items():
            print(f"{name}: {seconds:.2f} seconds ({seconds/60:.2f} minutes)")

    return {'effects': summary, 'models': model_summaries}


def main(argv=None):
    args = parse_args(argv)
    try:
        run_all(args)
    except InvalidArgument as e:
        raise SystemExit(f"error: {e}")


if __name__ == "__main__":
    main()
