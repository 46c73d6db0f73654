# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

# base classes


class DiffEvoError(Exception):
    """Base class for error raised by diffevo"""


class DiffEvoWarning(Warning):
    pass


# errors
# pylint: disable=too-many-ancestors


class DiffEvoEarlyStopping(StopIteration, DiffEvoError):
    """Stops the optimization loop if raised from a callback"""


class DiffEvoRuntimeError(RuntimeError, DiffEvoError):
    """Runtime error raised by diffevo"""


class DiffEvoTypeError(TypeError, DiffEvoError):
    """Type error raised by diffevo"""


class DiffEvoValueError(ValueError, DiffEvoError):
    """Value error raised by diffevo"""


class CandidateShapeError(DiffEvoValueError):
    """Candidate does not have the number of parameters the cost function expects"""


# warnings


class DiffEvoRuntimeWarning(RuntimeWarning, DiffEvoWarning):
    """Runtime warning raised by diffevo"""


class BadLossWarning(DiffEvoRuntimeWarning):
    """Provided cost is unhelpful (nan or infinite)"""


class FailedConstraintWarning(DiffEvoRuntimeWarning):
    """No feasible trial could be found within the allowed number of retries"""
