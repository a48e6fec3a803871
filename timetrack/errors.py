"""
Shared error types.

Kept in a separate module so the store adapters, record operations and the
API layer all raise and catch the same exception classes.
"""


class TimeTrackError(Exception):
    """Base exception for the service"""
    pass


class ValidationError(TimeTrackError):
    """Input rejected before any store call"""
    pass


class InvalidTimeRangeError(ValidationError):
    """Time log end is not after its start"""
    pass


class InvalidFilterError(ValidationError):
    """Filter value could not be parsed (bad date, year or month)"""
    pass


class StoreError(TimeTrackError):
    """Record store reported a failure"""

    def __init__(self, message: str, table: str = None):
        super().__init__(message)
        self.table = table


class RecordNotFoundError(StoreError):
    """No row with the requested identifier"""

    def __init__(self, table: str, record_id: str):
        super().__init__(f"{table} record not found: {record_id}", table=table)
        self.record_id = record_id
