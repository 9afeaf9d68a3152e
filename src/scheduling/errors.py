"""Exceptions raised by the schedulers.

User-input problems (bad configuration, bad costs) subclass ``ValueError``;
``ReconstructionError`` subclasses ``RuntimeError`` because it can only be
caused by a bug in the search itself.
"""


class SchedulingError(Exception):
    """Base class for all scheduler errors."""


class InvalidConfigurationError(SchedulingError, ValueError):
    """The problem or a config value is malformed (e.g. no agents)."""


class InvalidCostError(SchedulingError, ValueError):
    """A distance evaluated to a negative or non-finite value."""


class ReconstructionError(SchedulingError, RuntimeError):
    """The best path could not be re-derived from the folded tree."""
