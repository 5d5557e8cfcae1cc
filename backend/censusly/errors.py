from __future__ import annotations


class CensusError(RuntimeError):
    """Base class for every failure a census lookup can surface."""

    user_message = "Failed to load census data."

    def __init__(self, stage: str, message: str):
        super().__init__(f"[{stage}] {message}")
        self.stage = stage
        self.message = message

    @property
    def kind(self) -> str:
        return type(self).__name__


class InvalidRequest(CensusError):
    user_message = "The selected location is incomplete."


class NetworkFailure(CensusError):
    user_message = "Could not reach the Census Bureau API."


class NoDataFound(CensusError):
    user_message = "No data is available for this location."


class DecodeError(CensusError):
    user_message = "The Census Bureau returned data in an unexpected shape."

    def __init__(self, expected: int, actual: int, stage: str = "decode"):
        super().__init__(stage, f"Expected {expected} cells in data row, got {actual}")
        self.expected = expected
        self.actual = actual
