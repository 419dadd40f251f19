"""Domain errors returned to callers of the engine."""


class ScannerToolError(Exception):
    """Base class for every error the engine reports to its callers."""

    status_code: int = 400
    kind: str = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(ScannerToolError):
    status_code = 404
    kind = "not_found"


class ScannerUnavailable(ScannerToolError):
    status_code = 409
    kind = "scanner_unavailable"


class InvalidSettings(ScannerToolError):
    status_code = 422
    kind = "invalid_settings"


class InvalidTransition(ScannerToolError):
    status_code = 409
    kind = "invalid_transition"


class RemovalBlocked(ScannerToolError):
    status_code = 409
    kind = "removal_blocked"


class SimulatedFailure(ScannerToolError):
    """The designed random hardware fault at the end of a scan.

    Raised inside the job driver only; the job records it as
    ``Failed(simulated=True)``.
    """

    status_code = 500
    kind = "simulated_failure"


class DesktopError(ScannerToolError):
    status_code = 500
    kind = "desktop_error"


class ForbiddenPath(ScannerToolError):
    status_code = 403
    kind = "forbidden_path"
