"""
Domain errors.

There is a single exception type, `HabitError`, tagged with an `ErrorKind`.
Callers branch on `exc.kind`; every kind has an entry in each of the tables
below so that mapping a kind to a response can't miss a case.
"""
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    VALIDATION = "ValidationError"
    INVALID_DATE = "InvalidDateError"
    RECORD_BEFORE_START_DATE = "RecordBeforeStartDateError"
    DUPLICATE_HABIT = "DuplicateHabitError"
    STORAGE_QUOTA_EXCEEDED = "StorageQuotaExceededError"


STATUS_CODES = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.INVALID_DATE: 400,
    ErrorKind.RECORD_BEFORE_START_DATE: 422,
    ErrorKind.DUPLICATE_HABIT: 422,
    ErrorKind.STORAGE_QUOTA_EXCEEDED: 507,
}

ERROR_CODES = {
    ErrorKind.VALIDATION: "VALIDATION_ERROR",
    ErrorKind.INVALID_DATE: "INVALID_DATE",
    ErrorKind.RECORD_BEFORE_START_DATE: "RECORD_BEFORE_START_DATE",
    ErrorKind.DUPLICATE_HABIT: "DUPLICATE_HABIT",
    ErrorKind.STORAGE_QUOTA_EXCEEDED: "STORAGE_QUOTA_EXCEEDED",
}

DEFAULT_MESSAGES = {
    ErrorKind.VALIDATION: "Invalid input.",
    ErrorKind.INVALID_DATE: "Invalid date.",
    ErrorKind.RECORD_BEFORE_START_DATE: "Cannot record a day before the habit's start date.",
    ErrorKind.DUPLICATE_HABIT: "A habit is already registered. Delete the current habit to start a new one.",
    ErrorKind.STORAGE_QUOTA_EXCEEDED: "Storage is full. Delete old data and try again.",
}


class HabitError(Exception):
    def __init__(self, kind: ErrorKind, message: Optional[str] = None):
        self.kind = kind
        self.message = message or DEFAULT_MESSAGES[kind]
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return STATUS_CODES[self.kind]

    @property
    def code(self) -> str:
        return ERROR_CODES[self.kind]

    def as_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "code": self.code,
            "message": self.message,
            "statusCode": self.status_code,
        }

    def __repr__(self) -> str:
        return f"HabitError({self.kind.value}, {self.message!r})"
