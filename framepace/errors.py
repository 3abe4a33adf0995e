"""Errors raised while turning a trace into a metrics report."""

from enum import Enum


class ParseErrorKind(str, Enum):
    EMPTY_INPUT = "empty_input"
    MISSING_CSV_HEADER = "missing_csv_header"
    NO_FRAME_DATA = "no_frame_data"
    INSUFFICIENT_DATA = "insufficient_data"
    MALFORMED = "malformed"


class ParseError(Exception):
    """
    Structural failure that aborts parsing or metric computation.

    Content-level anomalies never raise this; they fall back to defaults and
    are recorded as assumptions instead.
    """

    def __init__(self, kind: ParseErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
