from __future__ import annotations


class CoincidenceError(Exception):
    """Base class for fatal errors raised during a coincidence run."""


class ConfigurationError(CoincidenceError, ValueError):
    """An option has a value the engine does not recognise."""


class MissingEdgeError(CoincidenceError, KeyError):
    """An edge implied by an alpha's connector set is absent from the registry."""
