"""
Configuration for graceful shutdown.

This module provides:
- ShutdownOptions: Validated, immutable shutdown options
- read_grace_period_override: Resolves the grace period override from the environment
- GRACE_PERIOD_ENV_VAR: Name of the environment variable holding the override

The environment override is expressed in whole seconds and, when present,
always wins over the configured grace period.

Example:
    >>> options = ShutdownOptions(
    ...     grace_period_milliseconds=10_000,
    ...     signals=("TERM", "INT"),
    ...     finalizers=[("close_pool", close_pool)],
    ... )
    >>> options.signals
    ('SIGTERM', 'SIGINT')
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, InstanceOf, ValidationError, field_validator

from graceful_shutdown.callbacks import NamedCallback
from graceful_shutdown.exceptions import InvalidCallbackError, InvalidConfigurationError
from graceful_shutdown.signals import normalize_signal_name, resolve_signal

logger = logging.getLogger(__name__)

GRACE_PERIOD_ENV_VAR = "SERVER_SHUTDOWN_GRACE_PERIOD_SECONDS"

DEFAULT_GRACE_PERIOD_MILLISECONDS = 5_000
DEFAULT_DELAY_MILLISECONDS = 0
DEFAULT_SIGNALS: tuple[str, ...] = ("SIGTERM",)


def read_grace_period_override(environ: Mapping[str, str] | None = None) -> int | None:
    """
    Read the grace period override, in seconds, from the environment.

    Args:
        environ: Mapping to read from. Defaults to os.environ.

    Returns:
        The override in whole seconds, or None if unset or invalid
    """
    environ = os.environ if environ is None else environ
    raw = environ.get(GRACE_PERIOD_ENV_VAR)
    if raw is None or not raw.strip():
        return None

    try:
        seconds = int(raw.strip())
    except ValueError:
        seconds = -1

    if seconds < 0:
        logger.warning(
            "Ignoring invalid grace period override",
            extra={"variable": GRACE_PERIOD_ENV_VAR, "value": raw},
        )
        return None

    return seconds


class ShutdownOptions(BaseModel):
    """
    Options controlling the graceful shutdown sequence.

    Attributes:
        grace_period_milliseconds: Time allowing the orchestrator to take the
            server out of the routing table before connections are drained
        delay_milliseconds: Time between receiving a signal and starting the
            shutdown sequence
        signals: Names of the signals that start a graceful shutdown
        finalizers: Callbacks executed after connections are drained
        readiness_checks: Callbacks executed to establish readiness
        grace_period_override_seconds: Override for the grace period, in
            seconds. Defaults to the SERVER_SHUTDOWN_GRACE_PERIOD_SECONDS
            environment variable.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    grace_period_milliseconds: int = Field(
        default=DEFAULT_GRACE_PERIOD_MILLISECONDS,
        ge=0,
        description="Grace period before draining connections, in milliseconds",
    )
    delay_milliseconds: int = Field(
        default=DEFAULT_DELAY_MILLISECONDS,
        ge=0,
        description="Delay before the shutdown sequence starts, in milliseconds",
    )
    signals: tuple[str, ...] = Field(
        default=DEFAULT_SIGNALS,
        min_length=1,
        description="Signals that start a graceful shutdown",
    )
    finalizers: tuple[InstanceOf[NamedCallback], ...] = Field(
        default=(),
        description="Callbacks executed at the end of the shutdown sequence",
    )
    readiness_checks: tuple[InstanceOf[NamedCallback], ...] = Field(
        default=(),
        description="Callbacks executed at startup to establish readiness",
    )
    grace_period_override_seconds: int | None = Field(
        default_factory=read_grace_period_override,
        ge=0,
        description="Grace period override in seconds (environment)",
    )

    @field_validator("signals", mode="before")
    @classmethod
    def _normalize_signals(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = (value,)
        if isinstance(value, list | tuple):
            value = tuple(
                normalize_signal_name(name) if isinstance(name, str) else name for name in value
            )
            for name in value:
                if isinstance(name, str):
                    resolve_signal(name)
        return value

    @field_validator("finalizers", "readiness_checks", mode="before")
    @classmethod
    def _coerce_callbacks(cls, value: Any) -> Any:
        if value is None:
            return ()
        if not isinstance(value, list | tuple):
            raise ValueError("has to be a sequence of named callbacks")
        try:
            return tuple(NamedCallback.coerce(entry) for entry in value)
        except InvalidCallbackError as e:
            raise ValueError(str(e)) from e

    @classmethod
    def create(cls, options: ShutdownOptions | Mapping[str, Any] | None = None) -> ShutdownOptions:
        """
        Build options from an instance, a mapping, or nothing.

        Raises:
            InvalidConfigurationError: If the options are malformed
        """
        if options is None:
            options = {}
        if isinstance(options, cls):
            return options
        if not isinstance(options, Mapping):
            raise InvalidConfigurationError(
                f"options has to be a mapping or ShutdownOptions, got {type(options).__name__}"
            )
        try:
            return cls.model_validate(dict(options))
        except ValidationError as e:
            raise InvalidConfigurationError(f"invalid shutdown options: {e}") from e

    @property
    def effective_grace_period_milliseconds(self) -> int:
        """Grace period after applying the environment override."""
        if self.grace_period_override_seconds is not None:
            return self.grace_period_override_seconds * 1000
        return self.grace_period_milliseconds

    @property
    def grace_period_seconds(self) -> float:
        return self.effective_grace_period_milliseconds / 1000

    @property
    def delay_seconds(self) -> float:
        return self.delay_milliseconds / 1000


__all__ = [
    "GRACE_PERIOD_ENV_VAR",
    "DEFAULT_GRACE_PERIOD_MILLISECONDS",
    "DEFAULT_DELAY_MILLISECONDS",
    "DEFAULT_SIGNALS",
    "ShutdownOptions",
    "read_grace_period_override",
]
