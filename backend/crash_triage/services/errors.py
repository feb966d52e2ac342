"""
Crash Triage Engine - Error Taxonomy

All three are handled at the boundary of one submission or one sweep
batch. None of them escapes to the HTTP layer.
"""


class TriageError(Exception):
    """Base class for triage pipeline failures."""
    pass


class ParseError(TriageError):
    """Malformed or oversized crash report markup."""
    pass


class ValidationError(TriageError):
    """A report field failed its character-class or length contract."""

    def __init__(self, field_name: str, value: str):
        self.field_name = field_name
        self.value = value
        super().__init__(f"Invalid value for {field_name}")


class StorageError(TriageError):
    """Reading or writing the catalog or the crash record store failed."""
    pass
