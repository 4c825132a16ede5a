# =============================================================================
# DIP REGISTRY - EXCEPTIONS
# =============================================================================
#
# EXCEPTION HIERARCHY:
#
# DipError (base)
# ├── ParseError              - Malformed document structure
# ├── ValidationError         - One schema violation (returned, not raised)
# ├── IllegalTransitionError  - Lifecycle state machine violation
# ├── DuplicateIdError        - DIP number already registered
# ├── NotFoundError           - DIP number not registered
# ├── InvalidDocumentError    - Registration refused because of violations
# └── StorageError            - Persisting the registry failed
#
# No error in this package is retryable. Every one of them is a
# deterministic function of the input or registry state.
#
# =============================================================================

from typing import List, Optional


class DipError(Exception):
    """
    Base class for all registry errors.

    Allows catching every registry error in a single except block.
    """

    def __init__(self, message: str, dip_id: Optional[int] = None):
        """
        Initialize registry error.

        Args:
            message: Error description
            dip_id: Optional DIP number for context
        """
        self.message = message
        self.dip_id = dip_id
        super().__init__(message)

    def __str__(self) -> str:
        if self.dip_id is not None:
            return f"[DIP{self.dip_id}] {self.message}"
        return self.message

    @property
    def is_retryable(self) -> bool:
        """
        Registry errors describe caller or input mistakes, not transient
        conditions.

        Returns:
            Always False
        """
        return False


class ParseError(DipError):
    """
    Document text could not be turned into a ProposalDocument.

    Carries the 1-based line number and the source (path or URL)
    where the problem was found, when known.
    """

    def __init__(
        self,
        message: str,
        line: Optional[int] = None,
        source: Optional[str] = None,
    ):
        super().__init__(message)
        self.line = line
        self.source = source

    def __str__(self) -> str:
        location = self.source or "<text>"
        if self.line is not None:
            location = f"{location}:{self.line}"
        return f"{location}: {self.message}"


class ValidationError(DipError):
    """
    A single schema violation.

    The validator collects these into a list and returns them.
    They are never raised on their own.
    """

    def __init__(
        self,
        check: str,
        field: str,
        message: str,
        dip_id: Optional[int] = None,
    ):
        super().__init__(message, dip_id)
        self.check = check
        self.field = field

    def __repr__(self) -> str:
        return f"ValidationError(check={self.check!r}, field={self.field!r}, message={self.message!r})"

    def __eq__(self, other) -> bool:
        if not isinstance(other, ValidationError):
            return NotImplemented
        return (
            self.check == other.check
            and self.field == other.field
            and self.message == other.message
            and self.dip_id == other.dip_id
        )

    def __hash__(self) -> int:
        return hash((self.check, self.field, self.message, self.dip_id))

    def to_dict(self) -> dict:
        return {
            "check": self.check,
            "field": self.field,
            "message": self.message,
            "dip_id": self.dip_id,
        }


class IllegalTransitionError(DipError):
    """
    Requested lifecycle transition is not in the transition graph.

    The request is never coerced into a nearby legal state.
    """

    def __init__(self, current, target, dip_id: Optional[int] = None):
        """
        Args:
            current: The document's current Status (None if unknown)
            target: The rejected target Status
            dip_id: The DIP number
        """
        current_label = str(current) if current is not None else "Unknown"
        super().__init__(
            f"Illegal transition: {current_label} -> {target}",
            dip_id,
        )
        self.current = current
        self.target = target


class DuplicateIdError(DipError):
    """DIP number is already present in the registry."""

    def __init__(self, dip_id: int):
        super().__init__(f"DIP {dip_id} is already registered", dip_id)


class NotFoundError(DipError):
    """DIP number is not present in the registry."""

    def __init__(self, dip_id: int):
        super().__init__(f"DIP {dip_id} is not registered", dip_id)


class InvalidDocumentError(DipError):
    """Registration refused because the document failed validation."""

    def __init__(self, dip_id: Optional[int], violations: List[ValidationError]):
        summary = "; ".join(v.message for v in violations)
        super().__init__(f"Document rejected: {summary}", dip_id)
        self.violations = list(violations)


class StorageError(DipError):
    """Writing or reading the persisted registry failed."""

    def __init__(self, message: str, path=None):
        super().__init__(message)
        self.path = path

    def __str__(self) -> str:
        if self.path is not None:
            return f"{self.message} ({self.path})"
        return self.message
