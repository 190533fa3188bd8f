"""Orchestrator configuration.

Configuration is a frozen value built in one of three ways:

    # Defaults
    config = OrchestratorConfig()

    # Builder style
    config = OrchestratorConfig().with_approval(False).with_parallel_execution()

    # Environment ($ export PYAGENTFLOW_REQUIRE_APPROVAL=false)
    config = OrchestratorConfig.from_env()

Environment variables (all optional):
    PYAGENTFLOW_REQUIRE_APPROVAL       bool, default true
    PYAGENTFLOW_PARALLEL               bool, default false
    PYAGENTFLOW_MAX_EXECUTION_TIME     minutes, default 30
    PYAGENTFLOW_AUTO_RETRY             bool, default true
    PYAGENTFLOW_MAX_STEP_RERUNS        int, default 1
    PYAGENTFLOW_STEP_TIMEOUT_MS        int, default unset (30000 per attempt)
    PYAGENTFLOW_APPROVAL_TIMEOUT       seconds, default unset (wait forever)
    PYAGENTFLOW_MAX_RETRIES            int, default 3
    PYAGENTFLOW_BACKOFF_MS             int, default 1000
    PYAGENTFLOW_EXPONENTIAL_BACKOFF    bool, default true
    PYAGENTFLOW_CACHE_TTL              seconds, default 300 (0 disables caching)
    PYAGENTFLOW_LOG_LEVEL              logging level name, default WARNING
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from typing import TypeVar

from pyagentflow.core.errors import ConfigError
from pyagentflow.models import RetryPolicy

__all__ = ["OrchestratorConfig", "ENV_PREFIX"]

ENV_PREFIX = "PYAGENTFLOW_"

_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off"})

T = TypeVar("T")


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ValueError(f"expected a boolean, got {value!r}")


def _parse_non_negative(convert: Callable[[str], T]) -> Callable[[str], T]:
    def parse(value: str) -> T:
        number = convert(value)
        if number < 0:  # type: ignore[operator]
            raise ValueError(f"must be non-negative, got {value!r}")
        return number

    return parse


def _parse_log_level(value: str) -> str:
    level = value.strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(f"unknown log level {value!r}")
    return level


@dataclass(frozen=True)
class OrchestratorConfig:
    """
    Settings for one WorkflowOrchestrator.

    Attributes:
        require_approval: Ask the approval provider before executing
        allow_parallel_execution: Dispatch independent steps concurrently
        max_execution_time: Run deadline in minutes, checked between steps
        auto_retry: Allow the RETRY failure action to rerun steps
        max_step_reruns: Reruns per step for the RETRY failure action
        step_timeout_ms: Per-attempt timeout; None uses the context default
        approval_timeout: Seconds to wait for approval; None waits forever
        retry_policy: Executor retry policy for every step
        cache_ttl: Decomposition cache TTL in seconds; 0 disables the cache
        log_level: Level name the CLI configures logging with
    """

    require_approval: bool = True
    allow_parallel_execution: bool = False
    max_execution_time: float = 30.0
    auto_retry: bool = True
    max_step_reruns: int = 1
    step_timeout_ms: int | None = None
    approval_timeout: float | None = None
    retry_policy: RetryPolicy = field(default_factory=RetryPolicy)
    cache_ttl: float = 300.0
    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        if self.max_execution_time <= 0:
            raise ConfigError("max_execution_time must be positive")
        if self.max_step_reruns < 0:
            raise ConfigError("max_step_reruns must be non-negative")
        if self.step_timeout_ms is not None and self.step_timeout_ms <= 0:
            raise ConfigError("step_timeout_ms must be positive")
        if self.approval_timeout is not None and self.approval_timeout <= 0:
            raise ConfigError("approval_timeout must be positive")
        if self.cache_ttl < 0:
            raise ConfigError("cache_ttl must be non-negative")

    @property
    def max_execution_seconds(self) -> float:
        return self.max_execution_time * 60

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> OrchestratorConfig:
        """
        Build a config from PYAGENTFLOW_* environment variables.

        Unset variables keep their defaults.

        Raises:
            ConfigError: A variable is set to a value that cannot be parsed
        """
        env = os.environ if environ is None else environ
        defaults = cls()

        def read(name: str, parse: Callable[[str], T], default: T) -> T:
            raw = env.get(ENV_PREFIX + name)
            if raw is None or raw.strip() == "":
                return default
            try:
                return parse(raw)
            except ValueError as e:
                raise ConfigError(f"Invalid {ENV_PREFIX}{name}: {e}") from e

        retry = defaults.retry_policy
        try:
            retry_policy = RetryPolicy(
                max_retries=read("MAX_RETRIES", int, retry.max_retries),
                backoff_ms=read("BACKOFF_MS", int, retry.backoff_ms),
                exponential_backoff=read(
                    "EXPONENTIAL_BACKOFF", _parse_bool, retry.exponential_backoff
                ),
            )
        except ValueError as e:
            raise ConfigError(f"Invalid retry settings: {e}") from e

        return cls(
            require_approval=read("REQUIRE_APPROVAL", _parse_bool, defaults.require_approval),
            allow_parallel_execution=read(
                "PARALLEL", _parse_bool, defaults.allow_parallel_execution
            ),
            max_execution_time=read("MAX_EXECUTION_TIME", float, defaults.max_execution_time),
            auto_retry=read("AUTO_RETRY", _parse_bool, defaults.auto_retry),
            max_step_reruns=read(
                "MAX_STEP_RERUNS", _parse_non_negative(int), defaults.max_step_reruns
            ),
            step_timeout_ms=read("STEP_TIMEOUT_MS", int, defaults.step_timeout_ms),
            approval_timeout=read("APPROVAL_TIMEOUT", float, defaults.approval_timeout),
            retry_policy=retry_policy,
            cache_ttl=read("CACHE_TTL", _parse_non_negative(float), defaults.cache_ttl),
            log_level=read("LOG_LEVEL", _parse_log_level, defaults.log_level),
        )

    def with_approval(self, required: bool = True) -> OrchestratorConfig:
        return replace(self, require_approval=required)

    def with_parallel_execution(self, enabled: bool = True) -> OrchestratorConfig:
        return replace(self, allow_parallel_execution=enabled)

    def with_max_execution_time(self, minutes: float) -> OrchestratorConfig:
        return replace(self, max_execution_time=minutes)

    def with_auto_retry(
        self, enabled: bool = True, max_step_reruns: int | None = None
    ) -> OrchestratorConfig:
        reruns = self.max_step_reruns if max_step_reruns is None else max_step_reruns
        return replace(self, auto_retry=enabled, max_step_reruns=reruns)

    def with_step_timeout(self, timeout_ms: int | None) -> OrchestratorConfig:
        return replace(self, step_timeout_ms=timeout_ms)

    def with_approval_timeout(self, seconds: float | None) -> OrchestratorConfig:
        return replace(self, approval_timeout=seconds)

    def with_retry_policy(self, policy: RetryPolicy) -> OrchestratorConfig:
        return replace(self, retry_policy=policy)

    def with_log_level(self, level: str) -> OrchestratorConfig:
        try:
            return replace(self, log_level=_parse_log_level(level))
        except ValueError as e:
            raise ConfigError(str(e)) from e
