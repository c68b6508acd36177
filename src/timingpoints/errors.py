"""Exception hierarchy for timing point parsing and resolution."""

from __future__ import annotations


class TimingError(Exception):
    """Base class for all errors raised by timingpoints."""


class TimingParseError(TimingError, ValueError):
    """Malformed input: a field is missing or does not parse."""

    def __init__(
        self,
        message: str,
        *,
        line_no: int | None = None,
        field: str | None = None,
        line: str | None = None,
    ) -> None:
        self.line_no = line_no
        self.field = field
        self.line = line
        parts = []
        if line_no is not None:
            parts.append(f"line {line_no}")
        if field is not None:
            parts.append(f"field {field!r}")
        prefix = f"{', '.join(parts)}: " if parts else ""
        super().__init__(f"{prefix}{message}")


class InconsistentTimingError(TimingError):
    """The timing hierarchy cannot answer the query (structural failure)."""


class UnresolvedAncestorError(InconsistentTimingError):
    """An inherited timing point was queried before its ancestor was assigned."""


class InvalidSampleSetError(InconsistentTimingError, ValueError):

    def __init__(self, code: object) -> None:
        self.code = code
        super().__init__(f"Invalid sample set {code!r}")
