# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import json
import time
import warnings
import datetime
import logging
from pathlib import Path
import numpy as np
import pandas as pd
import diffevo.common.typing as tp
from diffevo.common import errors
from .differentialevolution import DifferentialEvolution

global_logger = logging.getLogger(__name__)

# -------------------------------------------------------------------------------------


class _Throttle:
    """Triggers at most every "interval_generations" generations, or when more than
    "interval_seconds" seconds have passed since the last trigger
    """

    def __init__(self, interval_generations: int, interval_seconds: float) -> None:
        assert interval_generations > 0
        assert interval_seconds > 0
        self._interval_generations = int(interval_generations)
        self._interval_seconds = interval_seconds
        self._next_generation = 0
        self._next_time = time.time() + interval_seconds

    def __call__(self, optimizer: DifferentialEvolution) -> bool:
        if time.time() >= self._next_time or optimizer.num_generations >= self._next_generation:
            self._next_time = time.time() + self._interval_seconds
            self._next_generation = optimizer.num_generations + self._interval_generations
            return True
        return False


class OptimizationPrinter:
    """Printer to use as callback of an optimizer, for printing
    the best agent regularly.

    Parameters
    ----------
    print_interval_generations: int
        max number of generations before performing another print
    print_interval_seconds: float
        max number of seconds before performing another print
    """

    def __init__(self, print_interval_generations: int = 1, print_interval_seconds: float = 60.0) -> None:
        self._throttle = _Throttle(print_interval_generations, print_interval_seconds)

    def __call__(self, optimizer: DifferentialEvolution) -> None:
        if self._throttle(optimizer):
            print(
                f"After {optimizer.num_generations} generations, best cost is {optimizer.best_cost} "
                f"for agent {optimizer.best_agent.tolist()}"
            )


# -------------------------------------------------------------------------------------


class OptimizationLogger:
    """Logger to use as callback of an optimizer, for logging
    the best agent regularly.

    Parameters
    ----------
    logger:
        given logger that callback will use to log
    log_level:
        log level that logger will write to
    log_interval_generations: int
        max number of generations before performing another log
    log_interval_seconds:
        max number of seconds before performing another log
    """

    def __init__(
        self,
        *,
        logger: logging.Logger = global_logger,
        log_level: int = logging.INFO,
        log_interval_generations: int = 1,
        log_interval_seconds: float = 60.0,
    ) -> None:
        self._logger = logger
        self._log_level = log_level
        self._throttle = _Throttle(log_interval_generations, log_interval_seconds)

    def __call__(self, optimizer: DifferentialEvolution) -> None:
        if self._throttle(optimizer):
            self._logger.log(
                self._log_level,
                "After %s generations, best cost is %s for agent %s",
                optimizer.num_generations,
                optimizer.best_cost,
                optimizer.best_agent.tolist(),
            )


# -------------------------------------------------------------------------------------


class ParametersLogger:
    """Logs the best agent and run information of each generation into a file
    (one json dict per line).

    Parameters
    ----------
    filepath: str or pathlib.Path
        the path to dump data to
    append: bool
        whether to append the file (otherwise it replaces it)

    Example
    -------

    .. code-block:: python

        logger = ParametersLogger(filepath)
        DifferentialEvolution(cost, 50, callback=logger).optimize(100)
        list_of_dict_of_data = logger.load()

    Note
    ----
    Arrays are converted to lists
    """

    def __init__(self, filepath: tp.PathLike, append: bool = True) -> None:
        self._session = datetime.datetime.now().strftime("%y-%m-%d %H:%M:%S")
        self._filepath = Path(filepath)
        if self._filepath.exists() and not append:
            self._filepath.unlink()  # missing_ok argument added in python 3.8
        self._filepath.parent.mkdir(exist_ok=True, parents=True)

    def __call__(self, optimizer: DifferentialEvolution) -> None:
        data = {
            "#cost_function": optimizer.cost_function.__class__.__name__,
            "#session": self._session,
            "#generation": optimizer.num_generations,
            "#num-evaluations": optimizer.num_evaluations,
            "#num-rejected": optimizer.num_rejected,
            "#best-index": optimizer.best_index,
            "#loss": optimizer.best_cost,
            "#mean-loss": float(np.mean(optimizer.costs)),
            "agent": optimizer.best_agent.tolist(),
        }
        try:  # avoid bugging as much as possible
            with self._filepath.open("a") as f:
                f.write(json.dumps(data) + "\n")
        except Exception as e:  # pylint: disable=broad-except
            warnings.warn(f"Failing to json data: {e}", errors.DiffEvoRuntimeWarning)

    def load(self) -> tp.List[tp.Dict[str, tp.Any]]:
        """Loads data from the log file"""
        data: tp.List[tp.Dict[str, tp.Any]] = []
        if self._filepath.exists():
            with self._filepath.open("r") as f:
                for line in f.readlines():
                    data.append(json.loads(line))
        return data

    def to_dataframe(self) -> pd.DataFrame:
        """Loads the logs into a pandas DataFrame, with one column per agent dimension
        (named "agent#0", "agent#1"...)
        """
        rows = []
        for element in self.load():
            row = {key: val for key, val in element.items() if key != "agent"}
            row.update({f"agent#{k}": val for k, val in enumerate(element["agent"])})
            rows.append(row)
        return pd.DataFrame(rows)


# -------------------------------------------------------------------------------------


class ProgressBar:
    """Progress bar to use as callback of an optimizer"""

    def __init__(self) -> None:
        self._progress_bar: tp.Any = None

    def __call__(self, optimizer: DifferentialEvolution) -> None:
        if self._progress_bar is None:
            # pylint: disable=import-outside-toplevel
            try:
                from tqdm import tqdm  # Inline import to avoid additional dependency
            except ImportError as e:
                raise ImportError(
                    f"{self.__class__.__name__} requires tqdm which is not installed by default "
                    "(pip install tqdm)"
                ) from e
            self._progress_bar = tqdm(total=optimizer.max_iterations)
        self._progress_bar.update(1)
        self._progress_bar.set_postfix(cost=optimizer.best_cost)
        if optimizer.num_generations == optimizer.max_iterations:
            self._progress_bar.close()


# -------------------------------------------------------------------------------------


class CallbackChain:
    """Calls several callbacks in order, since an optimizer accepts a single one"""

    def __init__(self, *callbacks: tp.Callable[[DifferentialEvolution], tp.Any]) -> None:
        self.callbacks = list(callbacks)

    def __call__(self, optimizer: DifferentialEvolution) -> None:
        for callback in self.callbacks:
            callback(optimizer)


# -------------------------------------------------------------------------------------
# termination conditions


class LossThreshold:
    """Stops when the best cost goes strictly below the threshold"""

    def __init__(self, threshold: float) -> None:
        self.threshold = threshold

    def __call__(self, optimizer: DifferentialEvolution) -> bool:
        return optimizer.best_cost < self.threshold


class DurationCriterion:
    """Stops when max_duration seconds have passed since the first call"""

    def __init__(self, max_duration: float) -> None:
        self._start = float("inf")
        self._max_duration = max_duration

    def __call__(self, optimizer: DifferentialEvolution) -> bool:
        if np.isinf(self._start):
            self._start = time.time()
        return time.time() > self._start + self._max_duration


class NoImprovementCriterion:
    """Stops when the best cost did not decrease during more than tolerance_window generations"""

    def __init__(self, tolerance_window: int) -> None:
        self._tolerance_window: int = tolerance_window
        self._best_value: tp.Optional[float] = None
        self._tolerance_count: int = 0

    def __call__(self, optimizer: DifferentialEvolution) -> bool:
        best = optimizer.best_cost
        if self._best_value is None:
            self._best_value = best
            return False
        if self._best_value <= best:
            self._tolerance_count += 1
        else:
            self._tolerance_count = 0
            self._best_value = best
        return self._tolerance_count > self._tolerance_window


class AnyCriterion:
    """Stops as soon as one of the criteria holds (all criteria are evaluated,
    so that stateful ones keep track of every generation)
    """

    def __init__(self, *criteria: tp.Callable[[DifferentialEvolution], bool]) -> None:
        assert criteria, "At least one criterion is required"
        self.criteria = list(criteria)

    def __call__(self, optimizer: DifferentialEvolution) -> bool:
        return any([criterion(optimizer) for criterion in self.criteria])


class EarlyStopping:
    """Callback stopping the :code:`optimize` method before the iteration budget is
    fully used, by raising :code:`DiffEvoEarlyStopping`. This is an alternative to
    providing the criterion as termination_condition, useful to chain it with other callbacks.

    Parameters
    ----------
    stopping_criterion: func(optimizer) -> bool
        function that takes the current optimizer as input and returns True
        if the optimization must be stopped

    Example
    -------
    In the following code, the :code:`optimize` method will be stopped at the 4th generation

    >>> early_stopping = callbacks.EarlyStopping(lambda opt: opt.num_generations > 3)
    >>> DifferentialEvolution(cost, 20, callback=early_stopping).optimize(100)
    """

    def __init__(self, stopping_criterion: tp.Callable[[DifferentialEvolution], bool]) -> None:
        self.stopping_criterion = stopping_criterion

    def __call__(self, optimizer: DifferentialEvolution) -> None:
        if self.stopping_criterion(optimizer):
            raise errors.DiffEvoEarlyStopping("Early stopping criterion is reached")

    @classmethod
    def timer(cls, max_duration: float) -> "EarlyStopping":
        """Early stop when max_duration seconds has been reached (from the first generation)"""
        return cls(DurationCriterion(max_duration))

    @classmethod
    def no_improvement_stopper(cls, tolerance_window: int) -> "EarlyStopping":
        """Early stop when the best cost didn't decrease during tolerance_window generations"""
        return cls(NoImprovementCriterion(tolerance_window))

    @classmethod
    def loss_below(cls, threshold: float) -> "EarlyStopping":
        return cls(LossThreshold(threshold))
