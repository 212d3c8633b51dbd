"""Opt-in switch for tests that need live Postgres and Redis."""

from __future__ import annotations

import os

REAL_PROVIDERS_VAR = "PRESCAT_RUN_INTEGRATION_REAL"


def real_provider_tests_enabled() -> bool:
    return os.getenv(REAL_PROVIDERS_VAR, "").strip().lower() in {"1", "true", "yes", "on"}


requires_real_providers_reason = (
    f"set {REAL_PROVIDERS_VAR}=1 to run real-provider integration tests"
)
