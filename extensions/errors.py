"""Error types shared across the extension pipeline."""


class ExtstageError(Exception):
    """Base class for pipeline errors."""

    pass


class FatalSetupError(ExtstageError):
    """Raised when a pass cannot prepare its destination or session.

    Nothing downstream of a failed setup can be trusted, so this aborts the
    whole invocation instead of a single extension.
    """

    pass
