"""Exception types raised by the examination core."""


class ExaminationError(Exception):
    """Base class for examination errors."""


class InvalidInputError(ExaminationError, ValueError):
    """Bad caller input: empty patient fields, unknown question ids, out-of-range scores."""


class InvalidStateError(ExaminationError, RuntimeError):
    """An operation was attempted from a state that does not allow it."""


class ConfigError(ExaminationError, ValueError):
    """A configuration value could not be parsed."""
