# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import typing as tp
import numpy as np
import pytest
from diffevo.common import errors
from diffevo.common import testing
from diffevo.optimization import base
from . import corefuncs


@testing.parametrized(**{name: (name,) for name in corefuncs.registry})
def test_corefuncs_contract(name: str) -> None:
    func = corefuncs.registry.create(name)
    dimension = func.number_of_parameters()
    assert dimension == corefuncs.registry.get_info(name)["dimension"]
    constraints = func.get_constraints()
    assert len(constraints) == dimension
    assert all(isinstance(c, base.Constraint) for c in constraints)
    x = np.random.uniform(-0.5, 0.5, size=dimension)
    outputs = [func(x) for _ in range(2)]
    assert isinstance(outputs[0], float)
    np.testing.assert_equal(outputs[0], outputs[1], f"Function {name} is not deterministic")
    with pytest.raises(errors.CandidateShapeError):
        func(np.zeros(dimension + 1))


@testing.parametrized(**{name: (name,) for name in corefuncs.registry if name != "CosineMixture"})
def test_corefuncs_minimum_at_origin(name: str) -> None:
    func = corefuncs.registry.create(name)
    np.testing.assert_almost_equal(
        func(np.zeros(func.number_of_parameters())), corefuncs.registry.get_info(name)["minimum"]
    )


@testing.parametrized(
    rastrigin=(corefuncs.Rastrigin(2), [1.0, 0.0], 1.0),
    rastrigin_out=(corefuncs.Rastrigin(2), [6.0, 0.0], corefuncs.PENALTY),
    cosine_corner=(corefuncs.CosineMixture(2), [1.0, -1.0], -1.8),
    cosine_origin=(corefuncs.CosineMixture(2), [0.0, 0.0], -0.2),
    cosine_out=(corefuncs.CosineMixture(2), [0.0, 1.5], corefuncs.PENALTY),
    quadratic=(corefuncs.SimpleQuadratic(), [1.0, 2.0], 17.0),
    vss=(corefuncs.VSS(1), [np.pi / 2], 1400 + np.pi ** 2 / 4 - 100 * np.cos(np.pi ** 2 / 120)),
    sphere=(corefuncs.Sphere(3), [1.0, 2.0, 3.0], 14.0),
)
def test_corefuncs_values(func: base.CostFunction, x: tp.List[float], expected: float) -> None:
    np.testing.assert_almost_equal(func(x), expected, decimal=6)


def test_sphere_is_unconstrained() -> None:
    assert not any(c.is_constrained for c in corefuncs.Sphere(4).get_constraints())


def test_invalid_dimension() -> None:
    with pytest.raises(ValueError):
        corefuncs.Rastrigin(0)
    with pytest.raises(ValueError):
        corefuncs.Sphere(0)
    with pytest.raises(ValueError, match="only defined in dimension 2"):
        corefuncs.SimpleQuadratic(3)
    assert corefuncs.SimpleQuadratic(2).number_of_parameters() == 2


def test_registry_names() -> None:
    testing.assert_set_equal(
        corefuncs.registry, ["Rastrigin", "CosineMixture", "VSS", "SimpleQuadratic", "Sphere"]
    )
