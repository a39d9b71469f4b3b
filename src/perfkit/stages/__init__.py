# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Load profile presets and threshold evaluation."""

from perfkit.stages.models import (
    Stage,
    StagePreset,
    Threshold,
    ThresholdOutcome,
    parse_duration,
)
from perfkit.stages.presets import PRESETS, get_preset, list_presets

__all__ = [
    "PRESETS",
    "Stage",
    "StagePreset",
    "Threshold",
    "ThresholdOutcome",
    "get_preset",
    "list_presets",
    "parse_duration",
]
