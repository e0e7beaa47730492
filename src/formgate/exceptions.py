"""Exceptions raised by formgate.

Only programmer errors are raised. Invalid user input never raises; it ends
up in the form's error collector instead.
"""


class FormgateError(Exception):
    """Base class for all formgate errors."""
    pass


class DefinitionError(FormgateError):
    """The form definition is wrong or a field is referenced that does not exist."""
    pass


class SessionError(FormgateError):
    """validate() and the error accessors were called in the wrong order."""
    pass


class OptionsError(FormgateError):
    """An option list could not be found or loaded."""
    pass


class FactoryError(FormgateError):
    """A form name could not be resolved to a form."""
    pass


class ConfigError(FormgateError):
    """Invalid configuration (environment or constructor arguments)."""
    pass
