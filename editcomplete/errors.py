class EditcompleteError(Exception):
    """Base class for errors raised by editcomplete."""


class ConfigError(EditcompleteError):
    """Raised when a configuration file cannot be used."""
