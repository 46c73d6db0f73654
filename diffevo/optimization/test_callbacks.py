# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import os
import time
import logging
from pathlib import Path
import numpy as np
import pytest
import diffevo.common.typing as tp
from diffevo.common import errors
from diffevo.functions import corefuncs
from . import callbacks
from .differentialevolution import DifferentialEvolution


class _Flat(corefuncs.Sphere):
    def evaluate_cost(self, x: np.ndarray) -> float:
        return 1.0


def _optimizer(**kwargs: tp.Any) -> DifferentialEvolution:
    return DifferentialEvolution(corefuncs.Rastrigin(3), 10, **kwargs)


def test_log_parameters(tmp_path: Path) -> None:
    filepath = tmp_path / "logs.txt"
    logger = callbacks.ParametersLogger(filepath, append=False)
    optimizer = _optimizer(callback=logger)
    optimizer.optimize(12, verbose=False)
    logs = logger.load()
    assert len(logs) == 12
    assert [log["#generation"] for log in logs] == list(range(1, 13))
    assert logs[-1]["#loss"] == optimizer.best_cost
    assert logs[-1]["agent"] == optimizer.best_agent.tolist()
    assert logs[0]["#cost_function"] == "Rastrigin"
    losses = [log["#loss"] for log in logs]
    assert losses == sorted(losses, reverse=True)
    # appending
    _optimizer(callback=callbacks.ParametersLogger(filepath)).optimize(3, verbose=False)
    assert len(logger.load()) == 15
    # deletion
    logger = callbacks.ParametersLogger(filepath, append=False)
    assert not logger.load()


def test_log_parameters_to_dataframe(tmp_path: Path) -> None:
    logger = callbacks.ParametersLogger(tmp_path / "sub" / "logs.txt")
    _optimizer(callback=logger).optimize(5, verbose=False)
    df = logger.to_dataframe()
    assert len(df) == 5
    assert {"agent#0", "agent#1", "agent#2", "#loss", "#generation"} <= set(df.columns)
    assert "agent" not in df.columns


def test_optimization_printer(capsys: tp.Any) -> None:
    printer = callbacks.OptimizationPrinter(print_interval_generations=5, print_interval_seconds=1000)
    _optimizer(callback=printer).optimize(12, verbose=False)
    out = capsys.readouterr().out.splitlines()
    assert len(out) == 3  # generations 1, 6 and 11
    assert out[0].startswith("After 1 generations, best cost is ")


def test_optimization_logger(caplog: tp.Any) -> None:
    logging.basicConfig(level=os.environ.get("LOGLEVEL", "INFO"))
    logger = logging.getLogger(__name__)
    callback = callbacks.OptimizationLogger(
        logger=logger, log_level=logging.INFO, log_interval_generations=10, log_interval_seconds=1000
    )
    optimizer = _optimizer(callback=callback)
    with caplog.at_level(logging.INFO):
        optimizer.optimize(3, verbose=False)
    assert "After 1 generations, best cost is" in caplog.text
    assert "After 2 generations" not in caplog.text


def test_progressbar() -> None:
    pytest.importorskip("tqdm")
    _optimizer(callback=callbacks.ProgressBar()).optimize(5, verbose=False)


def test_callback_chain() -> None:
    calls: tp.List[int] = []
    chain = callbacks.CallbackChain(
        lambda opt: calls.append(1), lambda opt: calls.append(2)  # type: ignore
    )
    _optimizer(callback=chain).optimize(2, verbose=False)
    assert calls == [1, 2, 1, 2]


def test_loss_threshold() -> None:
    optimizer = DifferentialEvolution(
        corefuncs.SimpleQuadratic(), 30, termination_condition=callbacks.LossThreshold(1e-2)
    )
    optimizer.optimize(1000, verbose=False)
    assert optimizer.stop_reason == "termination_condition"
    assert optimizer.best_cost < 1e-2


def test_duration_criterion() -> None:
    optim = _optimizer()
    crit = callbacks.DurationCriterion(0.01)
    assert not crit(optim)
    assert not crit(optim)
    time.sleep(0.02)
    assert crit(optim)


class _FixedCost:
    """Fake optimizer, only providing a best cost"""

    def __init__(self, *costs: float) -> None:
        self._costs = list(costs)

    @property
    def best_cost(self) -> float:
        return self._costs.pop(0)


def test_no_improvement_criterion() -> None:
    crit = callbacks.NoImprovementCriterion(2)
    fake: tp.Any = _FixedCost(5, 4, 4, 4, 3, 3, 3, 3)
    assert [crit(fake) for _ in range(8)] == [False, False, False, False, False, False, False, True]


def test_any_criterion() -> None:
    crit = callbacks.AnyCriterion(lambda opt: False, callbacks.LossThreshold(1.0))
    assert crit(_FixedCost(0.5))  # type: ignore
    assert not crit(_FixedCost(1.5))  # type: ignore


def test_early_stopping() -> None:
    optimizer = _optimizer(callback=callbacks.EarlyStopping(lambda opt: opt.num_generations > 3))
    optimizer.optimize(100, verbose=False)
    assert optimizer.num_generations == 4
    assert optimizer.stop_reason == "termination_condition"
    # should not get triggered
    optimizer = _optimizer(callback=callbacks.EarlyStopping.timer(100))
    optimizer.optimize(5, verbose=False)
    assert optimizer.stop_reason == "max_iterations"
    # constant function never improves
    optimizer = DifferentialEvolution(_Flat(2), 10, callback=callbacks.EarlyStopping.no_improvement_stopper(3))
    optimizer.optimize(1000, verbose=False)
    assert optimizer.num_generations == 5


def test_early_stopping_raises() -> None:
    stopper = callbacks.EarlyStopping.loss_below(np.inf)
    optimizer = _optimizer()
    optimizer.init_population()
    with pytest.raises(errors.DiffEvoEarlyStopping):
        stopper(optimizer)
