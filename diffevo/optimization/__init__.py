# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

from .base import Constraint as Constraint
from .base import CostFunction as CostFunction
from .differentialevolution import DifferentialEvolution as DifferentialEvolution
from . import callbacks as callbacks
