# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Built-in load profile presets."""

from perfkit.common.enums import StageType
from perfkit.common.exceptions import ConfigurationError
from perfkit.stages.models import Stage, StagePreset

__all__ = [
    "PRESETS",
    "get_preset",
    "list_presets",
]


def _stages(*pairs: tuple[str, int]) -> list[Stage]:
    return [Stage(duration=duration, target=target) for duration, target in pairs]


PRESETS: dict[StageType, StagePreset] = {
    StageType.SMOKE: StagePreset(
        name=StageType.SMOKE,
        description="Verify basic functionality under minimal load.",
        stages=_stages(("30s", 1), ("1m", 5), ("30s", 1), ("10s", 0)),
        thresholds={
            "http_req_duration": ["p(95)<500", "p(99)<1000"],
            "http_req_failed": ["rate<0.01"],
            "http_reqs": ["rate>1"],
            "vus_max": ["value<=5"],
            "checks": ["rate>=0.99"],
            "http_req_connecting": ["p(95)<50"],
            "http_req_receiving": ["p(95)<50"],
        },
        setup_timeout="30s",
        teardown_timeout="30s",
    ),
    StageType.LIGHT: StagePreset(
        name=StageType.LIGHT,
        description="Single user for a few seconds, for fast feedback during development.",
        vus=1,
        duration="20s",
        thresholds={
            "http_req_duration": ["p(95)<200"],
            "http_req_failed": ["rate<0.01"],
            "checks": ["rate>=0.99"],
        },
        setup_timeout="5s",
        teardown_timeout="5s",
        summary_trend_stats=["avg", "count"],
    ),
    StageType.LOAD: StagePreset(
        name=StageType.LOAD,
        description="Expected production traffic.",
        stages=_stages(("1m", 500), ("2m", 800), ("1m", 0)),
        thresholds={
            "http_req_duration": ["p(95)<1000"],
            "http_req_failed": ["rate<0.05"],
        },
    ),
    StageType.STRESS: StagePreset(
        name=StageType.STRESS,
        description="Step beyond normal capacity to find degradation.",
        stages=_stages(
            ("2m", 10), ("5m", 10), ("2m", 20), ("5m", 20), ("2m", 30), ("5m", 30), ("2m", 0)
        ),
        thresholds={
            "http_req_duration": ["p(95)<2000"],
            "http_req_failed": ["rate<0.1"],
        },
    ),
    StageType.SOAK: StagePreset(
        name=StageType.SOAK,
        description="Sustained load for two hours to surface leaks and drift.",
        stages=_stages(("5m", 50), ("10m", 100), ("2h", 100), ("5m", 50), ("5m", 0)),
        thresholds={
            "http_req_duration": ["p(95)<1000", "p(99)<1500"],
            "http_req_failed": ["rate<0.05"],
            "http_reqs": ["rate>20"],
            "vus_max": ["value<=100"],
            "http_req_connecting": ["p(95)<100"],
            "http_req_tls_handshaking": ["p(95)<200"],
            "checks": ["rate>=0.95"],
        },
        setup_timeout="120s",
        teardown_timeout="120s",
        summary_trend_stats=["avg", "min", "med", "max", "p(95)", "p(99)", "count"],
    ),
    StageType.SPIKE: StagePreset(
        name=StageType.SPIKE,
        description="Sudden surge from baseline to 1400 users and back.",
        stages=_stages(
            ("2m", 100), ("1m", 100), ("10s", 1400), ("3m", 1400), ("10s", 100), ("3m", 100), ("1m", 0)
        ),
        thresholds={
            "http_req_duration": ["p(95)<1500", "p(99)<3000"],
            "http_req_failed": ["rate<0.1"],
            "http_reqs": ["rate>50"],
            "vus_max": ["value<=1400"],
            "http_req_waiting": ["p(95)<1000"],
            "checks": ["rate>=0.85"],
        },
        setup_timeout="60s",
        teardown_timeout="60s",
    ),
    StageType.BREAKPOINT: StagePreset(
        name=StageType.BREAKPOINT,
        description="Ramp in 2 minute steps up to 1500 users to locate the breaking point.",
        executor="ramping-vus",
        stages=_stages(
            ("2m", 100), ("2m", 200), ("2m", 300), ("2m", 400), ("2m", 500),
            ("2m", 600), ("2m", 700), ("2m", 800), ("2m", 900), ("2m", 1000),
            ("2m", 1200), ("2m", 1500), ("5m", 1500), ("2m", 0),
        ),  # fmt: skip
        thresholds={
            "http_req_duration": ["p(50)<1000", "p(95)<5000", "p(99)<10000"],
            "http_req_failed": ["rate<0.3"],
            "http_reqs": ["rate>10"],
            "vus_max": ["value<=1500"],
            "http_req_connecting": ["p(95)<500"],
            "http_req_tls_handshaking": ["p(95)<1000"],
            "http_req_sending": ["p(95)<100"],
            "http_req_waiting": ["p(95)<8000"],
            "http_req_receiving": ["p(95)<500"],
            "checks": ["rate>=0.7"],
        },
        setup_timeout="120s",
        teardown_timeout="120s",
        abort_on_fail=True,
        system_tags=[
            "status", "method", "url", "name", "group", "check",
            "error", "tls_version", "scenario", "service",
        ],  # fmt: skip
    ),
    StageType.BURST: StagePreset(
        name=StageType.BURST,
        description="Four short bursts of growing size with recovery periods between them.",
        stages=_stages(
            ("30s", 200), ("1m", 200), ("30s", 20), ("2m", 20),
            ("30s", 300), ("1m", 300), ("30s", 20), ("2m", 20),
            ("30s", 400), ("1m", 400), ("30s", 20), ("2m", 20),
            ("30s", 500), ("1m", 500), ("30s", 0),
        ),  # fmt: skip
        thresholds={
            "http_req_duration": ["p(95)<1500", "p(99)<3000"],
            "http_req_failed": ["rate<0.08"],
            "http_reqs": ["rate>20"],
            "vus_max": ["value<=500"],
            "http_req_waiting": ["p(95)<1200"],
            "checks": ["rate>=0.90"],
        },
        setup_timeout="60s",
        teardown_timeout="60s",
    ),
    StageType.CAPACITY: StagePreset(
        name=StageType.CAPACITY,
        description="Climb to and sustain 500 users to measure maximum capacity.",
        stages=_stages(
            ("2m", 50), ("3m", 100), ("3m", 200), ("3m", 300),
            ("3m", 400), ("3m", 500), ("5m", 500), ("2m", 0),
        ),  # fmt: skip
        thresholds={
            "http_req_duration": ["p(95)<1500", "p(99)<2500"],
            "http_req_failed": ["rate<0.05"],
            "http_reqs": ["rate>25"],
            "vus_max": ["value<=500"],
            "http_req_connecting": ["p(95)<200"],
            "http_req_tls_handshaking": ["p(95)<300"],
            "http_req_sending": ["p(95)<100"],
            "http_req_waiting": ["p(95)<1200"],
            "http_req_receiving": ["p(95)<200"],
            "checks": ["rate>=0.95"],
        },
        setup_timeout="90s",
        teardown_timeout="90s",
    ),
    StageType.SCALABILITY: StagePreset(
        name=StageType.SCALABILITY,
        description="Hold at multiples of a 50 user baseline to measure how throughput scales.",
        stages=_stages(
            ("2m", 50), ("3m", 50), ("2m", 100), ("5m", 100),
            ("2m", 150), ("5m", 150), ("2m", 200), ("5m", 200),
            ("2m", 250), ("5m", 250), ("2m", 300), ("5m", 300), ("2m", 0),
        ),  # fmt: skip
        thresholds={
            "http_req_duration": ["p(95)<1500", "p(99)<3000"],
            "http_req_failed": ["rate<0.05"],
            "http_reqs": ["rate>30"],
            "vus_max": ["value<=300"],
            "http_req_waiting": ["p(95)<1200"],
            "checks": ["rate>=0.95"],
        },
        setup_timeout="90s",
        teardown_timeout="90s",
    ),
    StageType.RAMP: StagePreset(
        name=StageType.RAMP,
        description="Ramp and hold in steps up to 300 users.",
        stages=_stages(
            ("1m", 25), ("2m", 25), ("1m", 50), ("2m", 50), ("1m", 100), ("2m", 100),
            ("1m", 200), ("2m", 200), ("1m", 300), ("3m", 300), ("1m", 0),
        ),  # fmt: skip
        thresholds={
            "http_req_duration": ["p(95)<1200", "p(99)<2000"],
            "http_req_failed": ["rate<0.05"],
            "http_reqs": ["rate>15"],
            "vus_max": ["value<=300"],
            "http_req_waiting": ["p(95)<1000"],
            "checks": ["rate>=0.95"],
        },
        setup_timeout="60s",
        teardown_timeout="60s",
    ),
    StageType.BASELINE: StagePreset(
        name=StageType.BASELINE,
        description="Moderate steady load to establish reference numbers.",
        stages=_stages(("1m", 10), ("10m", 50), ("1m", 10), ("30s", 0)),
        thresholds={
            "http_req_duration": ["p(95)<800", "p(99)<1200"],
            "http_req_failed": ["rate<0.02"],
            "http_reqs": ["rate>10"],
            "vus_max": ["value<=50"],
            "http_req_connecting": ["p(95)<100"],
            "http_req_tls_handshaking": ["p(95)<200"],
            "http_req_sending": ["p(95)<50"],
            "http_req_waiting": ["p(95)<700"],
            "http_req_receiving": ["p(95)<100"],
            "checks": ["rate>=0.98"],
        },
        setup_timeout="60s",
        teardown_timeout="60s",
        summary_trend_stats=[
            "avg", "min", "med", "max", "p(90)", "p(95)", "p(99)", "p(99.9)", "count",
        ],  # fmt: skip
        tags={"test_type": "baseline", "environment": "test"},
    ),
    StageType.ENDURANCE: StagePreset(
        name=StageType.ENDURANCE,
        description="Four hours of varying load to check long-term stability.",
        stages=_stages(
            ("5m", 25), ("25m", 50),
            ("15m", 75), ("30m", 100), ("15m", 150), ("30m", 100), ("15m", 75), ("15m", 50),
            ("60m", 80),
            ("15m", 120), ("15m", 120),
            ("5m", 0),
        ),  # fmt: skip
        thresholds={
            "http_req_duration": ["p(95)<1500", "p(99)<2500"],
            "http_req_failed": ["rate<0.05"],
            "http_reqs": ["rate>25"],
            "vus_max": ["value<=150"],
            "http_req_connecting": ["p(95)<200"],
            "http_req_tls_handshaking": ["p(95)<300"],
            "http_req_waiting": ["p(95)<1200"],
            "checks": ["rate>=0.95"],
        },
        setup_timeout="120s",
        teardown_timeout="180s",
        summary_trend_stats=["avg", "min", "med", "max", "p(90)", "p(95)", "p(99)", "count"],
    ),
    StageType.RECOVERY: StagePreset(
        name=StageType.RECOVERY,
        description="Baseline, simulated failure load, then verify the system recovers.",
        stages=_stages(
            ("2m", 50), ("3m", 50), ("1m", 100), ("5m", 100), ("2m", 75),
            ("3m", 75), ("2m", 50), ("5m", 50), ("1m", 0),
        ),  # fmt: skip
        thresholds={
            "http_req_duration": ["p(95)<2000", "p(99)<5000"],
            "http_req_failed": ["rate<0.15"],
            "http_reqs": ["rate>15"],
            "vus_max": ["value<=100"],
            "http_req_connecting": ["p(95)<500"],
            "http_req_waiting": ["p(95)<1500"],
            "checks": ["rate>=0.80"],
        },
        setup_timeout="90s",
        teardown_timeout="90s",
    ),
    StageType.VOLUME: StagePreset(
        name=StageType.VOLUME,
        description="Moderate user count moving large payloads.",
        stages=_stages(("2m", 10), ("5m", 50), ("20m", 50), ("5m", 10), ("2m", 0)),
        thresholds={
            "http_req_duration": ["p(95)<5000", "p(99)<10000"],
            "http_req_failed": ["rate<0.05"],
            "http_reqs": ["rate>5"],
            "vus_max": ["value<=50"],
            "data_sent": ["rate>1048576"],
            "data_received": ["rate>1048576"],
            "http_req_sending": ["p(95)<1000"],
            "http_req_receiving": ["p(95)<2000"],
            "checks": ["rate>=0.95"],
        },
        setup_timeout="120s",
        teardown_timeout="120s",
    ),
}


def get_preset(name: str | StageType) -> StagePreset:
    """Return the preset with the given (case-insensitive) name.

    Raises:
        ConfigurationError: If no preset has that name
    """
    try:
        stage_type = StageType(name)
    except ValueError:
        available = ", ".join(sorted(str(t) for t in PRESETS))
        raise ConfigurationError(
            f"Unknown stage preset '{name}'. Available: {available}"
        ) from None
    return PRESETS[stage_type]


def list_presets() -> list[StagePreset]:
    """Return every preset, sorted by name."""
    return [PRESETS[name] for name in sorted(PRESETS, key=str)]
