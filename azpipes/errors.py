"""Exception hierarchy shared by the client, the run engine and the actions."""

from __future__ import annotations


class AzurePipelinesError(Exception):
    """Base exception for azpipes errors."""


class ConfigurationError(AzurePipelinesError):
    """Raised when no integration or token is available for a host.

    Always raised before any network call is made.
    """


class RemoteRequestError(AzurePipelinesError):
    """Raised for any non-2xx answer from Azure DevOps."""

    def __init__(self, status_code: int, message: str = "Request failed") -> None:
        self.status_code = status_code
        super().__init__(f"{message}. Status code {status_code}.")


class UnexpectedStatusError(AzurePipelinesError):
    """Raised when a run reports a status outside the known set."""

    def __init__(self, status: str | None) -> None:
        self.status = status
        super().__init__(f"Azure pipeline failed with status: {status}.")


class RunCancelledError(AzurePipelinesError):
    """Raised when polling stops before the run reached a terminal state."""

    def __init__(self, run_id: int, reason: str = "cancelled") -> None:
        self.run_id = run_id
        self.reason = reason
        super().__init__(f"Stopped waiting for pipeline run {run_id}: {reason}.")
