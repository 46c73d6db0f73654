# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import numpy as np
import diffevo.common.typing as tp
from diffevo.common.decorators import Registry
from diffevo.optimization import base


registry: Registry[tp.Type[base.CostFunction]] = Registry()
PENALTY = 1e7  # cost of points outside the domain, for functions which are not defined everywhere


class _BoxedFunction(base.CostFunction):
    """Cost function with the same box constraint on all dimensions"""

    lower = -1.0
    upper = 1.0

    def __init__(self, dims: int) -> None:
        if dims <= 0:
            raise ValueError(f"Dimension must be strictly positive (got {dims})")
        self._dim = int(dims)

    def number_of_parameters(self) -> int:
        return self._dim

    def get_constraints(self) -> tp.List[base.Constraint]:
        return base.box_constraints(self._dim, self.lower, self.upper)

    def _out_of_domain(self, x: np.ndarray) -> bool:
        return bool(np.any((x < self.lower) | (x > self.upper)))


@registry.register_with_info(dimension=5, minimum=0.0)
class Rastrigin(_BoxedFunction):
    """Classical multimodal function, with global minimum 0 at the origin.
    Points out of [-5.12, 5.12] are penalized.
    """

    lower = -5.12
    upper = 5.12

    def __init__(self, dims: int = 5) -> None:
        super().__init__(dims)

    def evaluate_cost(self, x: np.ndarray) -> float:
        if self._out_of_domain(x):
            return PENALTY
        return float(10 * self._dim + np.sum(x ** 2 - 10 * np.cos(2 * np.pi * x)))


@registry.register_with_info(dimension=5, minimum=-4.5)
class CosineMixture(_BoxedFunction):
    """Cosine mixture defined on [-1, 1]^d, minimum is -0.9 * d at the corners of the domain"""

    def __init__(self, dims: int = 5) -> None:
        super().__init__(dims)

    def evaluate_cost(self, x: np.ndarray) -> float:
        if self._out_of_domain(x):
            return PENALTY
        return float(-0.1 * np.sum(np.cos(5 * np.pi * x)) - np.sum(x ** 2))


@registry.register_with_info(dimension=2, minimum=1000.0)
class VSS(_BoxedFunction):
    """Quadratic well with cosine ripples, on [-100, 100]^d (minimum 1400 - 200 * d at the origin)"""

    lower = -100.0
    upper = 100.0

    def __init__(self, dims: int = 2) -> None:
        super().__init__(dims)

    def evaluate_cost(self, x: np.ndarray) -> float:
        cos = np.cos(x)
        val = np.sum(x ** 2 - 100 * cos * cos - 100 * np.cos(x ** 2 / 30))
        return float(val + 1400.0)


@registry.register_with_info(dimension=2, minimum=0.0)
class SimpleQuadratic(_BoxedFunction):
    """Convex 2d quadratic x^2 + 2xy + 3y^2 on [-100, 100]^2, minimum 0 at the origin"""

    lower = -100.0
    upper = 100.0

    def __init__(self, dims: int = 2) -> None:
        if dims != 2:
            raise ValueError(f"{self.__class__.__name__} is only defined in dimension 2 (got {dims})")
        super().__init__(2)

    def evaluate_cost(self, x: np.ndarray) -> float:
        assert x.size == 2
        return float(x[0] ** 2 + 2 * x[0] * x[1] + 3 * x[1] ** 2)


@registry.register_with_info(dimension=5, minimum=0.0)
class Sphere(base.CostFunction):
    """The most classical continuous optimization testbed, without any constraint.

    If you do not solve that one then you have a bug."""

    def __init__(self, dims: int = 5) -> None:
        if dims <= 0:
            raise ValueError(f"Dimension must be strictly positive (got {dims})")
        self._dim = int(dims)

    def evaluate_cost(self, x: np.ndarray) -> float:
        return float(x.dot(x))

    def number_of_parameters(self) -> int:
        return self._dim

    def get_constraints(self) -> tp.List[base.Constraint]:
        return [base.Constraint() for _ in range(self._dim)]
