# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import abc
import numpy as np
import diffevo.common.typing as tp
from diffevo.common import errors as errors


class Constraint:
    """Box constraint on a single dimension of the search space.

    Parameters
    ----------
    lower: float
        lower bound (inclusive)
    upper: float
        upper bound (inclusive)
    is_constrained: bool
        whether the bounds are enforced. When False, any value is accepted
        and the bounds are only informative.
    """

    def __init__(self, lower: float = 0.0, upper: float = 1.0, is_constrained: bool = False) -> None:
        self.lower = float(lower)
        self.upper = float(upper)
        self.is_constrained = bool(is_constrained)

    def check(self, value: float) -> bool:
        """Returns True if the value satisfies the constraint"""
        if not self.is_constrained:
            return True
        return self.lower <= value <= self.upper

    def __eq__(self, other: tp.Any) -> bool:
        if not isinstance(other, Constraint):
            return NotImplemented
        return (self.lower, self.upper, self.is_constrained) == (other.lower, other.upper, other.is_constrained)

    def __repr__(self) -> str:
        return f"Constraint(lower={self.lower}, upper={self.upper}, is_constrained={self.is_constrained})"


class CostFunction(abc.ABC):
    """Abstract cost function to minimize.

    Subclasses must implement:

    - :code:`evaluate_cost(x)` which maps a candidate (1d array of length
      :code:`number_of_parameters()`) to a float cost. It must not fail for any
      candidate of the correct length: a large value can be returned for
      infeasible points instead.
    - :code:`number_of_parameters()` which provides the fixed dimension of the problem.
    - :code:`get_constraints()` which provides one :code:`Constraint` per dimension.

    The evaluation is assumed to be deterministic and free of side effects.
    Calling the instance checks the candidate length before evaluating it.
    """

    @abc.abstractmethod
    def evaluate_cost(self, x: np.ndarray) -> float:
        raise NotImplementedError

    @abc.abstractmethod
    def number_of_parameters(self) -> int:
        raise NotImplementedError

    @abc.abstractmethod
    def get_constraints(self) -> tp.List[Constraint]:
        raise NotImplementedError

    def __call__(self, x: tp.ArrayLike) -> float:
        x = np.asarray(x, dtype=float)
        expected = self.number_of_parameters()
        if x.ndim != 1 or x.size != expected:
            raise errors.CandidateShapeError(
                f"{self.__class__.__name__} expects candidates of length {expected} (got shape {x.shape})"
            )
        return self.evaluate_cost(x)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(dimension={self.number_of_parameters()})"


def box_constraints(dimension: int, lower: float, upper: float) -> tp.List[Constraint]:
    """Enforced constraints with the same bounds for every dimension"""
    return [Constraint(lower, upper, True) for _ in range(dimension)]
