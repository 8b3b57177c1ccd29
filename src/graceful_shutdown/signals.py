"""
Signal name to exit code lookup.

Exit codes follow the shell convention of 128 + signal number. Signals
missing from the table fall back to code 1, so an unknown signal exits
with 129.

Example:
    >>> exit_code("SIGTERM")
    143
    >>> exit_code("TERM")
    143
    >>> exit_code("SIGFOO")
    129
"""

from __future__ import annotations

from signal import Signals

from graceful_shutdown.exceptions import InvalidConfigurationError

SIGNAL_CODES: dict[str, int] = {
    "SIGHUP": 1,
    "SIGINT": 2,
    "SIGQUIT": 3,
    "SIGUSR1": 10,
    "SIGUSR2": 12,
    "SIGTERM": 15,
}
"""Numeric codes for the signals a server is expected to be stopped with."""

DEFAULT_SIGNAL_CODE = 1
"""Code used for signals that are not in SIGNAL_CODES."""

EXIT_CODE_BASE = 128

FORCED_EXIT_CODE = EXIT_CODE_BASE + DEFAULT_SIGNAL_CODE
"""Exit code used when a second signal forces the process down."""


def normalize_signal_name(signal: str) -> str:
    """
    Normalize a signal name to its canonical ``SIG`` prefixed form.

    Args:
        signal: Signal name such as "TERM", "sigterm" or "SIGTERM"

    Returns:
        Upper-case name with a "SIG" prefix
    """
    name = signal.strip().upper()
    if not name.startswith("SIG"):
        name = f"SIG{name}"
    return name


def resolve_signal(signal: str) -> Signals:
    """
    Resolve a signal name to the platform signal it denotes.

    Raises:
        InvalidConfigurationError: If the platform has no signal of that name
    """
    name = normalize_signal_name(signal)
    try:
        return Signals[name]
    except KeyError:
        raise InvalidConfigurationError(f"unknown signal {name!r}") from None


def code_number(signal: str) -> int:
    """Return the numeric code of a signal, or DEFAULT_SIGNAL_CODE if unknown."""
    return SIGNAL_CODES.get(normalize_signal_name(signal), DEFAULT_SIGNAL_CODE)


def exit_code(signal: str) -> int:
    """Return the process exit code for a shutdown triggered by ``signal``."""
    return EXIT_CODE_BASE + code_number(signal)


__all__ = [
    "SIGNAL_CODES",
    "DEFAULT_SIGNAL_CODE",
    "EXIT_CODE_BASE",
    "FORCED_EXIT_CODE",
    "normalize_signal_name",
    "resolve_signal",
    "code_number",
    "exit_code",
]
