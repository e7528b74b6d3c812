"""Custom exceptions for multitrigger."""


class MultiTriggerError(Exception):
    """Base exception for all multitrigger errors."""


class ConfigError(MultiTriggerError):
    """Configuration file could not be read or holds invalid values."""


class AutocompleteConfigurationError(MultiTriggerError, ValueError):
    """Coordinator constructed with mutually exclusive or invalid arguments."""
