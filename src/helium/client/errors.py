"""Typed exceptions and error handling decorator."""

from __future__ import annotations

import functools
from typing import Any, Callable, TypeVar

from rich.console import Console

F = TypeVar("F", bound=Callable[..., Any])

err_console = Console(stderr=True)


class HeliumError(Exception):
    """Base exception for helium."""

    exit_code: int = 1


class PanelConnectionError(HeliumError):
    """Cannot connect to the panel."""

    exit_code = 2


class AuthenticationError(HeliumError):
    """Authentication failed (401/403)."""

    exit_code = 3


class NotFoundError(HeliumError):
    """Resource not found (404)."""

    exit_code = 4


class ConflictError(HeliumError):
    """Resource conflict (409)."""

    exit_code = 5


class ConfigurationError(HeliumError):
    """Missing or invalid configuration."""

    exit_code = 6


class ValidationError(HeliumError):
    """Request rejected as invalid (422) or bad local input."""

    exit_code = 7

    def __init__(self, detail: str = "") -> None:
        super().__init__(detail or "Validation error")


class PanelAPIError(HeliumError):
    """Generic API error from the panel."""

    def __init__(self, status_code: int, detail: str = "") -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"Panel returned {status_code}: {detail}")


class RateLimitExceededError(PanelAPIError):
    """The panel kept answering 429 until the retry budget ran out."""

    exit_code = 8

    def __init__(self, attempts: int) -> None:
        self.attempts = attempts
        super().__init__(429, "Rate limit exceeded. Max retries reached.")


class RenewalDisabledError(HeliumError):
    """The renewal system is switched off in the config."""

    exit_code = 9


class InsufficientCoinsError(HeliumError):
    """The account cannot pay for the requested action."""

    exit_code = 10

    def __init__(self, balance: int, required: int) -> None:
        self.balance = balance
        self.required = required
        super().__init__(f"Insufficient coins: have {balance}, need {required}")


class SweepAbortedError(HeliumError):
    """A sweep tick could not enumerate tracked servers."""

    exit_code = 11


def error_handler(func: F) -> F:
    """Decorator that catches HeliumError and prints user-friendly messages."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except RateLimitExceededError:
            err_console.print(
                "[bold red]Error:[/] The panel is busy right now. Try again shortly."
            )
            raise SystemExit(RateLimitExceededError.exit_code)
        except HeliumError as exc:
            err_console.print(f"[bold red]Error:[/] {exc}")
            raise SystemExit(exc.exit_code)
        except ValueError as exc:
            err_console.print(f"[bold red]Error:[/] {exc}")
            raise SystemExit(1)

    return wrapper  # type: ignore[return-value]
