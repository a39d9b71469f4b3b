# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

from pydantic import BaseModel, ConfigDict


class BaseConfig(BaseModel):
    """Base class for all perfkit configuration models.

    Unknown keys are rejected so that typos in config files fail loudly, and
    assignments are validated so that configs stay consistent after creation.
    """

    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
        populate_by_name=True,
    )
