"""
Copyright 2024-2026 The isobar developers.

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at

   https://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software
distributed under the License is distributed on an "AS IS" BASIS,
WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
See the License for the specific language governing permissions and
limitations under the License.
"""

from __future__ import annotations

__author__ = "The isobar developers"
__version__ = "0.2.0"


from . import config, decode, ecmwf, exceptions, policies, scripting, treatments, units, validate
from .ecmwf import PRESSURE_LEVELS, DerivedKind, Variable
from .policies import Eligibility, Interpolation, InterpolationKind
from .registry import *
