"""
Drafting System Exceptions

Custom exceptions for template configuration, wizard navigation and
persistence errors.
"""


class DraftingError(Exception):
    """Base exception for all drafting system errors."""
    pass


class ConfigurationError(DraftingError):
    """
    Raised when system template configuration is invalid.

    This includes YAML syntax errors, schema validation failures and
    duplicate template names or field labels in the seed files.
    """
    pass


class ValidationError(DraftingError):
    """
    Raised when a single template definition fails validation.

    Contains details about what specifically failed.
    """
    def __init__(self, message: str, template_name: str = None, field: str = None):
        self.template_name = template_name
        self.field = field
        super().__init__(message)


class WorkflowError(DraftingError):
    """
    Raised when a wizard transition is not allowed from the current state,
    e.g. advancing past category selection before a category is chosen.
    """
    def __init__(self, message: str, step: int = None):
        self.step = step
        super().__init__(message)


class StoreError(DraftingError):
    """
    Raised when a store read or write fails.

    Wraps the underlying database error with the record kind involved.
    """
    def __init__(self, message: str, kind: str = None):
        self.kind = kind
        super().__init__(message)


class ClientSyncError(StoreError):
    """
    Raised by save_resolution when the document was stored but the client
    master update failed. ``record`` is the saved document.
    """
    def __init__(self, message: str, record=None):
        self.record = record
        super().__init__(message, kind='clients')
