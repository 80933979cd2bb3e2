"""Shared exception handling for the CLI and the batch driver."""
from __future__ import annotations

from jtemplate.internals.exceptions import SpecializationError


def handle_specialization_exception(exc: Exception, reporter) -> bool:
    """Handle an exception by emitting diagnostics through the reporter.

    Args:
        exc: The exception to handle.
        reporter: Reporter for error/warning collection.

    Returns:
        True if the exception was handled, False otherwise.
    """
    from jtemplate.internals import errors as er

    if isinstance(exc, SpecializationError):
        er.emit(reporter, er.ERR[exc.code], exc.span, **exc.kwargs)
        return True

    if isinstance(exc, OSError):
        er.emit(reporter, er.ERR.TE5001, None,
                path=exc.filename or reporter.filename, reason=exc.strerror or str(exc))
        return True

    return False
