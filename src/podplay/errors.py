"""
Failures raised by the scheduling strategies and the bracket generator.

Strategies raise; the public entry points in `podplay.scheduler` turn any
SchedulingError into a failed SchedulerResult carrying str(exc).
"""


class SchedulingError(Exception):
    """Base class for every failure the engine reports to its caller."""


class InfeasibleInputError(SchedulingError):
    """The inputs cannot possibly be scheduled (e.g. fewer slots than matches)."""

    def __init__(self, message, required=None, available=None):
        super().__init__(message)
        self.required = required
        self.available = available


class NoLegalCandidateError(SchedulingError):
    """A specific match or pod has no slot satisfying the hard constraints."""

    def __init__(self, message, subject=None):
        super().__init__(message)
        self.subject = subject


class DegenerateBracketInputError(SchedulingError, ValueError):
    """Not enough qualified teams to build a bracket."""
