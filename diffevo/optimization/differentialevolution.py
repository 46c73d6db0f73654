# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import logging
import warnings
from numbers import Real
import numpy as np
import diffevo.common.typing as tp
from diffevo.common import errors
from . import base

logger = logging.getLogger(__name__)

# sampling interval for dimensions without enforced constraint
DEFAULT_UNCONSTRAINED_BOUNDS = (-1000.0, 1000.0)
TERMINATION_CONDITION = "termination_condition"
MAX_ITERATIONS = "max_iterations"
_STOP_MESSAGES = {
    TERMINATION_CONDITION: "Terminated due to positive evaluation of the termination condition.",
    MAX_ITERATIONS: "Terminated due to exceeding total number of generations.",
}


# pylint: disable=too-many-instance-attributes
class DifferentialEvolution:
    """Differential evolution (DE/rand/1/bin) for minimizing a :code:`CostFunction`.

    Each generation, every agent x of the population is challenged by a trial vector built from
    three other random agents a, b, c: the mutated vector :code:`a + F * (b - c)` is crossed with
    x (each dimension taken with probability CR, plus one forced random dimension).
    The trial replaces x only if its cost is strictly lower.

    Parameters
    ----------
    cost_function: CostFunction
        the cost function to minimize. It is not copied and must outlive the optimizer.
    population_size: int
        number of agents, at least 4
    random_seed: int or None
        seed of the internal random state, set it to a fix value to have repeatable experiments
        (any integer, reduced modulo 2**32)
    should_check_constraints: bool
        whether trials violating enforced constraints are discarded (and resampled).
        It can be turned off for speed when the cost function has no minimum outside of the constraints.
    callback: callable or None
        called with the optimizer after each generation
    termination_condition: callable or None
        called with the optimizer after each generation (after the callback), stops the optimization
        when it returns True
    unconstrained_bounds: tuple of 2 floats
        interval from which dimensions without enforced constraint are initialized
    max_constraint_retries: int or None
        number of infeasible trials allowed for a single agent during a generation. Once exhausted, the
        agent is left unchanged for this generation and a :code:`FailedConstraintWarning` is issued.
        None retries indefinitely.

    Note
    ----
    The callback and termination condition receive the optimizer itself and must not modify it.
    All accessors provide copies.
    """

    F = 0.8  # differential weight
    CR = 0.9  # crossover probability

    # pylint: disable=too-many-arguments
    def __init__(
        self,
        cost_function: base.CostFunction,
        population_size: int,
        random_seed: tp.Optional[int] = 123,
        should_check_constraints: bool = True,
        callback: tp.Optional[tp.CallbackLike["DifferentialEvolution"]] = None,
        termination_condition: tp.Optional[tp.CriterionLike["DifferentialEvolution"]] = None,
        *,
        unconstrained_bounds: tp.Tuple[float, float] = DEFAULT_UNCONSTRAINED_BOUNDS,
        max_constraint_retries: tp.Optional[int] = 10000,
    ) -> None:
        if population_size < 4:
            raise errors.DiffEvoValueError(
                f"population_size must be at least 4 to draw 3 distinct donors (got {population_size})"
            )
        low, up = (float(b) for b in unconstrained_bounds)
        if not (np.isfinite(low) and np.isfinite(up) and low < up):
            raise errors.DiffEvoValueError(
                f"unconstrained_bounds must be finite and increasing, got {unconstrained_bounds}"
            )
        if max_constraint_retries is not None and max_constraint_retries < 1:
            raise errors.DiffEvoValueError(
                f"max_constraint_retries must be positive or None (got {max_constraint_retries})"
            )
        self._cost = cost_function
        self._population_size = int(population_size)
        self._should_check_constraints = should_check_constraints
        self._callback = callback
        self._termination_condition = termination_condition
        self._unconstrained_bounds = (low, up)
        self._max_constraint_retries = max_constraint_retries
        # RandomState only accepts seeds in [0, 2**32)
        self._rng = np.random.RandomState(None if random_seed is None else int(random_seed) % 2 ** 32)
        self._dimension = int(cost_function.number_of_parameters())
        if self._dimension <= 0:
            raise errors.DiffEvoValueError(
                f"Cost function must have at least 1 parameter (got {self._dimension})"
            )
        self._constraints = tuple(cost_function.get_constraints())
        if len(self._constraints) != self._dimension:
            raise errors.DiffEvoValueError(
                f"Expected {self._dimension} constraints (one per parameter) but got {len(self._constraints)}"
            )
        for k, constraint in enumerate(self._constraints):
            if constraint.is_constrained and not constraint.lower <= constraint.upper:
                raise errors.DiffEvoValueError(
                    f"Constraint #{k} has lower bound above upper bound: {constraint}"
                )
        # bounds used for vectorized checks, unenforced dimensions accept anything
        self._lower = np.array([c.lower if c.is_constrained else -np.inf for c in self._constraints])
        self._upper = np.array([c.upper if c.is_constrained else np.inf for c in self._constraints])
        # instance state
        self._population = np.zeros((self._population_size, self._dimension))
        self._costs = np.full(self._population_size, np.inf)
        self._best_index = 0
        self._min_cost = float("inf")
        self._initialized = False
        self._num_generations = 0
        self._num_evaluations = 0
        self._num_rejected = 0
        self._max_iterations: tp.Optional[int] = None
        self._stop_reason: tp.Optional[str] = None

    @property
    def dimension(self) -> int:
        """int: number of parameters of the cost function"""
        return self._dimension

    @property
    def cost_function(self) -> base.CostFunction:
        return self._cost

    @property
    def population_size(self) -> int:
        return self._population_size

    @property
    def constraints(self) -> tp.Tuple[base.Constraint, ...]:
        return self._constraints

    @property
    def num_generations(self) -> int:
        """int: number of generations processed since the population was initialized"""
        return self._num_generations

    @property
    def num_evaluations(self) -> int:
        """int: total number of calls to the cost function"""
        return self._num_evaluations

    @property
    def num_rejected(self) -> int:
        """int: total number of trials discarded for violating the constraints"""
        return self._num_rejected

    @property
    def max_iterations(self) -> tp.Optional[int]:
        """int or None: iteration budget of the ongoing/last call to :code:`optimize`"""
        return self._max_iterations

    @property
    def stop_reason(self) -> tp.Optional[str]:
        """str or None: why the last call to :code:`optimize` stopped
        ("termination_condition" or "max_iterations")
        """
        return self._stop_reason

    @property
    def best_index(self) -> int:
        self._check_initialized()
        return self._best_index

    @property
    def best_agent(self) -> np.ndarray:
        """np.ndarray: copy of the agent with minimal cost"""
        self._check_initialized()
        return self._population[self._best_index].copy()

    @property
    def best_cost(self) -> float:
        self._check_initialized()
        return float(self._costs[self._best_index])

    @property
    def population(self) -> np.ndarray:
        """np.ndarray: copy of the population, with shape (population_size, dimension)"""
        self._check_initialized()
        return self._population.copy()

    @property
    def costs(self) -> np.ndarray:
        """np.ndarray: copy of the cost of each agent"""
        self._check_initialized()
        return self._costs.copy()

    def population_with_costs(self) -> tp.List[tp.AgentWithCost]:
        """Snapshot of the population as a list of (agent, cost) pairs"""
        self._check_initialized()
        return [(agent.copy(), float(cost)) for agent, cost in zip(self._population, self._costs)]

    def check_constraints(self, agent: tp.ArrayLike) -> bool:
        """Returns True if the agent satisfies all enforced constraints"""
        agent = np.asarray(agent, dtype=float)
        return bool(np.all((agent >= self._lower) & (agent <= self._upper)))

    def print_population(self) -> None:
        self._check_initialized()
        for agent in self._population:
            print(" ".join(str(val) for val in agent))

    def _check_initialized(self) -> None:
        if not self._initialized:
            raise errors.DiffEvoRuntimeError("The population must be initialized first (see init_population)")

    def _evaluate(self, agent: np.ndarray) -> float:
        if agent.shape != (self._dimension,):
            raise errors.CandidateShapeError(
                f"Expected an agent of shape ({self._dimension},), got {agent.shape}"
            )
        # copy so that the cost function cannot alter the population
        value = self._cost.evaluate_cost(agent.copy())
        if not isinstance(value, (Real, float)):
            raise errors.DiffEvoTypeError(
                f"Cost functions must return a float, got {value!r} (type: {type(value)})"
            )
        self._num_evaluations += 1
        cost = float(value)
        if np.isnan(cost) or np.isinf(cost):
            warnings.warn(f"Cost function returned {cost} for agent {agent}", errors.BadLossWarning)
            if np.isnan(cost):
                cost = float("inf")  # nan must never be selected
        return cost

    def _update_best(self) -> None:
        # argmin provides the first minimum, as a sequential scan with strict comparisons
        self._best_index = int(np.argmin(self._costs))
        self._min_cost = float(self._costs[self._best_index])

    def init_population(self) -> None:
        """Samples all agents uniformly in their constraints (or in the unconstrained bounds),
        evaluates them and updates the best agent.
        Calling it again restarts from a new random population.
        """
        for agent in self._population:
            for i, constraint in enumerate(self._constraints):
                low, up = (
                    (constraint.lower, constraint.upper)
                    if constraint.is_constrained
                    else self._unconstrained_bounds
                )
                agent[i] = self._rng.uniform(low, up)
        for k, agent in enumerate(self._population):
            self._costs[k] = self._evaluate(agent)
        self._update_best()
        self._initialized = True
        self._num_generations = 0
        logger.debug(
            "Initialized %s agents, initial minimal cost is %s", self._population_size, self._min_cost
        )

    def _random_index(self, upper: int) -> int:
        # floor of a uniform draw in [0, upper), clipped against rounding up to upper
        return min(int(np.floor(self._rng.uniform(0, upper))), upper - 1)

    def _select_donors(self, x: int) -> tp.Tuple[int, int, int]:
        a = b = c = x
        while len({a, b, c, x}) < 4:
            a, b, c = (self._random_index(self._population_size) for _ in range(3))
        return a, b, c

    def _make_trial(self, x: int) -> np.ndarray:
        a, b, c = self._select_donors(x)
        pop = self._population
        mutated = pop[a] + self.F * (pop[b] - pop[c])
        forced = self._random_index(self._dimension)
        r = self._rng.uniform(0, 1, size=self._dimension)
        crossed = (r < self.CR) | (np.arange(self._dimension) == forced)
        return np.where(crossed, mutated, pop[x])

    def selection_and_crossing(self) -> None:
        """Runs one generation: each agent, in order, is challenged by a mutated and crossed trial
        and replaced if the trial is strictly better. The best agent is updated at the end.
        """
        self._check_initialized()
        x = 0
        retries = 0
        while x < self._population_size:
            trial = self._make_trial(x)
            if self._should_check_constraints and not self.check_constraints(trial):
                # resample for the same agent so that all agents are processed
                self._num_rejected += 1
                retries += 1
                if self._max_constraint_retries is None or retries < self._max_constraint_retries:
                    continue
                warnings.warn(
                    f"Could not find a feasible trial for agent #{x} after {retries} tentatives, "
                    "keeping it unchanged for this generation",
                    errors.FailedConstraintWarning,
                )
            else:
                cost = self._evaluate(trial)
                if cost < self._costs[x]:
                    self._population[x] = trial
                    self._costs[x] = cost
            x += 1
            retries = 0
        self._update_best()
        self._num_generations += 1

    def optimize(self, iterations: int, verbose: bool = True) -> np.ndarray:
        """Optimization (minimization) procedure: initializes the population then runs
        generations until the number of iterations is reached or the termination condition holds.

        Parameters
        ----------
        iterations: int
            maximum number of generations
        verbose: bool
            prints the best cost and agent after each generation, and the reason for stopping

        Returns
        -------
        np.ndarray
            a copy of the best agent

        Note
        ----
        A callback can also stop the optimization by raising :code:`DiffEvoEarlyStopping`
        """
        if iterations < 0:
            raise errors.DiffEvoValueError(f"iterations must be non-negative (got {iterations})")
        self._max_iterations = int(iterations)
        self._stop_reason = None
        self.init_population()
        for _ in range(iterations):
            self.selection_and_crossing()
            if verbose:
                agent = " ".join(f"{val:.5f}" for val in self._population[self._best_index])
                print(f"Current minimal cost: {self._min_cost:.5f}\t\tBest agent: {agent}")
            logger.debug("Generation %s: minimal cost is %s", self._num_generations, self._min_cost)
            if self._should_stop():
                self._finish(TERMINATION_CONDITION, verbose)
                return self.best_agent
        self._finish(MAX_ITERATIONS, verbose)
        return self.best_agent

    def _should_stop(self) -> bool:
        try:
            if self._callback is not None:
                self._callback(self)
            if self._termination_condition is not None:
                return bool(self._termination_condition(self))
        except errors.DiffEvoEarlyStopping as e:
            logger.debug("Early stopping requested: %s", e)
            return True
        return False

    def _finish(self, reason: str, verbose: bool) -> None:
        self._stop_reason = reason
        if verbose:
            print(_STOP_MESSAGES[reason])
        logger.info(
            "%s Minimal cost %s after %s generations (%s evaluations)",
            _STOP_MESSAGES[reason],
            self._min_cost,
            self._num_generations,
            self._num_evaluations,
        )

    def __repr__(self) -> str:
        return (
            f"Instance of {self.__class__.__name__}(cost_function={self._cost!r}, "
            f"population_size={self._population_size}, F={self.F}, CR={self.CR})"
        )
