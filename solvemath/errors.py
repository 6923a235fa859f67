"""Error taxonomy crossing the client/resolver boundary."""

from __future__ import annotations

from typing import Optional

GENERIC_FAILURE_MESSAGE = "Erreur lors de la résolution"


class SolveError(RuntimeError):
    """Base error for every failed solve, carrying a stable kind and HTTP status."""

    kind = "solve_error"
    status_code = 500
    default_message = GENERIC_FAILURE_MESSAGE

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None) -> None:
        super().__init__(message or self.default_message)
        if status_code is not None:
            self.status_code = int(status_code)

    @property
    def message(self) -> str:
        return str(self.args[0]) if self.args else self.default_message


class InvalidRequestError(SolveError):
    """Neither problem text nor image was supplied."""

    kind = "invalid_request"
    status_code = 400
    default_message = "Le problème ou une image est requis"


class RateLimitedError(SolveError):
    kind = "rate_limited"
    status_code = 429
    default_message = "Limite de requêtes atteinte. Réessayez dans quelques instants."


class QuotaExhaustedError(SolveError):
    kind = "quota_exhausted"
    status_code = 402
    default_message = "Crédits insuffisants. Veuillez recharger votre compte."


class BackendUnavailableError(SolveError):
    kind = "backend_unavailable"
    status_code = 500
    default_message = GENERIC_FAILURE_MESSAGE


class ConfigurationError(SolveError):
    """Raised when the reasoning backend credential or endpoint is missing."""

    kind = "configuration_error"
    status_code = 500


class MalformedResponseError(SolveError):
    """The solve endpoint answered with a success status but an unusable body."""

    kind = "malformed_response"
    status_code = 502
    default_message = "Réponse invalide du solveur"


def error_for_status(status_code: int, message: Optional[str] = None) -> SolveError:
    """Maps an HTTP status to the matching solve error.

    Args:
        status_code: HTTP status returned by the remote side.
        message: Optional human-readable message from the response body.

    Returns:
        A `SolveError` subclass instance; unknown statuses become
        `BackendUnavailableError` with the original status preserved.
    """
    if status_code == 400:
        return InvalidRequestError(message)
    if status_code == 402:
        return QuotaExhaustedError(message)
    if status_code == 429:
        return RateLimitedError(message)
    return BackendUnavailableError(message, status_code=status_code if status_code >= 400 else None)
