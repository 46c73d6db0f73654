# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

from .corefuncs import registry as registry
from .corefuncs import Rastrigin as Rastrigin
from .corefuncs import CosineMixture as CosineMixture
from .corefuncs import VSS as VSS
from .corefuncs import SimpleQuadratic as SimpleQuadratic
from .corefuncs import Sphere as Sphere
