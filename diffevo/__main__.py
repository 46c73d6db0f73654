# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import argparse
import logging
import diffevo.common.typing as tp
from diffevo.functions import corefuncs
from diffevo.optimization import callbacks
from diffevo.optimization.differentialevolution import DifferentialEvolution


def launch(
    function: str,
    dimension: tp.Optional[int] = None,
    population_size: int = 50,
    iterations: int = 1000,
    seed: tp.Optional[int] = 123,
    check_constraints: bool = True,
    stop_below: tp.Optional[float] = None,
    log_file: tp.Optional[tp.PathLike] = None,
    verbose: bool = True,
) -> DifferentialEvolution:
    """Minimizes a registered test function and returns the optimizer"""
    kwargs = {} if dimension is None else {"dims": dimension}
    cost = corefuncs.registry.create(function, **kwargs)
    callback = callbacks.ParametersLogger(log_file, append=False) if log_file is not None else None
    stopper = callbacks.LossThreshold(stop_below) if stop_below is not None else None
    optimizer = DifferentialEvolution(
        cost,
        population_size,
        random_seed=seed,
        should_check_constraints=check_constraints,
        callback=callback,
        termination_condition=stopper,
    )
    optimizer.optimize(iterations, verbose=verbose)
    return optimizer


def get_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Minimize a test function with differential evolution.")
    parser.add_argument(
        "function", type=str, choices=sorted(corefuncs.registry), help="name of a registered test function"
    )
    parser.add_argument(
        "--dimension", type=int, default=None, help="Dimension of the function (if it is configurable)"
    )
    parser.add_argument("--population_size", type=int, default=50, help="Number of agents (at least 4)")
    parser.add_argument("--iterations", type=int, default=1000, help="Maximum number of generations")
    parser.add_argument("--seed", type=int, default=123, help="Seed of the random state, for reproducibility")
    parser.add_argument(
        "--no_constraints",
        action="store_true",
        help="Do not discard trials which violate the constraints of the function",
    )
    parser.add_argument(
        "--stop_below", type=float, default=None, help="Stop as soon as the best cost goes below this value"
    )
    parser.add_argument(
        "--log_file", type=str, default=None, help="Path of a file where each generation is logged (json lines)"
    )
    parser.add_argument("--quiet", action="store_true", help="Only print the final result")
    parser.add_argument("--log_level", type=str, default="WARNING", help="Level of the python logging output")
    return parser.parse_args()


if __name__ == "__main__":
    args = get_args()
    logging.basicConfig(level=args.log_level.upper())
    opt = launch(
        args.function,
        dimension=args.dimension,
        population_size=args.population_size,
        iterations=args.iterations,
        seed=args.seed,
        check_constraints=not args.no_constraints,
        stop_below=args.stop_below,
        log_file=args.log_file,
        verbose=not args.quiet,
    )
    print(f"Best cost: {opt.best_cost} ({opt.stop_reason}, {opt.num_generations} generations)")
    print(f"Best agent: {opt.best_agent.tolist()}")
