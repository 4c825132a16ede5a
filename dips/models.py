# =============================================================================
# DIP REGISTRY - DATA MODELS
# =============================================================================
#
# These dataclasses define the IMMUTABLE structure of proposal documents.
# A document never changes in place: the transition engine returns a new
# instance and the registry swaps it in.
#
# STATUS:
# Status is a tagged variant. The kind is a closed enum and only
# COMMUNITY_REVIEW (required) and FINAL_REVIEW / POSTPONED (optional)
# carry a round number. Any other combination fails at construction.
#
# =============================================================================

import json
import re
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Tuple

from shared.enums import StatusKind, TERMINAL_KINDS


_COMMUNITY_REVIEW_PATTERN = re.compile(
    r"^community[\s_-]*review(?:[\s_-]*round)?[\s_#(:-]*(\d+)\)?$"
)

# Kinds that may remember the community review round they came from
_ROUND_CARRYING_KINDS = frozenset({StatusKind.FINAL_REVIEW, StatusKind.POSTPONED})

_KIND_ALIASES = {
    "draft": StatusKind.DRAFT,
    "finalreview": StatusKind.FINAL_REVIEW,
    "accepted": StatusKind.ACCEPTED,
    "rejected": StatusKind.REJECTED,
    "withdrawn": StatusKind.WITHDRAWN,
    "postponed": StatusKind.POSTPONED,
}


@dataclass(frozen=True)
class Status:
    """
    Lifecycle state of a DIP.

    round:
    - COMMUNITY_REVIEW: the review round, always >= 1
    - FINAL_REVIEW / POSTPONED: the last community review round, or None
      when unknown (e.g. parsed from a header that does not say)
    - everything else: None
    """
    kind: StatusKind
    round: Optional[int] = None

    def __post_init__(self):
        if not isinstance(self.kind, StatusKind):
            raise ValueError(f"Invalid status kind: {self.kind!r}")

        if self.kind is StatusKind.COMMUNITY_REVIEW:
            if self.round is None or self.round < 1:
                raise ValueError(
                    f"Community review requires a round >= 1, got {self.round!r}"
                )
        elif self.kind in _ROUND_CARRYING_KINDS:
            if self.round is not None and self.round < 1:
                raise ValueError(f"Invalid round for {self.kind.label}: {self.round}")
        elif self.round is not None:
            raise ValueError(f"{self.kind.label} does not carry a round")

    # -------------------------------------------------------------------------
    # Constructors
    # -------------------------------------------------------------------------

    @classmethod
    def draft(cls) -> "Status":
        return cls(StatusKind.DRAFT)

    @classmethod
    def community_review(cls, round_number: int) -> "Status":
        return cls(StatusKind.COMMUNITY_REVIEW, round_number)

    @classmethod
    def parse(cls, text: str) -> "Status":
        """
        Parse a status as written in a DIP header or on the command line.

        Accepts "Draft", "Community Review Round 2", "CommunityReview(2)",
        "community-review-2", "Final Review", "Accepted", ...

        Raises:
            ValueError: if the text is not a known lifecycle state
        """
        normalized = str(text).strip().strip("*_`").strip().lower()
        if not normalized:
            raise ValueError("Empty status")

        match = _COMMUNITY_REVIEW_PATTERN.match(normalized)
        if match:
            return cls.community_review(int(match.group(1)))

        key = re.sub(r"[\s_-]+", "", normalized)
        kind = _KIND_ALIASES.get(key)
        if kind is None:
            raise ValueError(f"Unknown status: {text!r}")
        return cls(kind)

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        return self.kind in TERMINAL_KINDS

    @property
    def is_community_review(self) -> bool:
        return self.kind is StatusKind.COMMUNITY_REVIEW

    def __str__(self) -> str:
        if self.kind is StatusKind.COMMUNITY_REVIEW:
            return f"Community Review Round {self.round}"
        return self.kind.label

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "round": self.round}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Status":
        return cls(StatusKind(data["kind"]), data.get("round"))


@dataclass(frozen=True)
class Section:
    """One heading-delimited block of free text."""
    heading: str
    level: int
    body: str

    def to_dict(self) -> Dict[str, Any]:
        return {"heading": self.heading, "level": self.level, "body": self.body}


@dataclass(frozen=True)
class ProposalDocument:
    """
    Structured proposal document.

    - This object is IMMUTABLE (frozen=True); id never changes
    - status is None when the header named an unknown lifecycle state;
      status_text always keeps the raw header value
    - sections keep document order
    """
    id: int
    title: str
    status: Optional[Status]
    review_count: int
    author: str
    implementation: Optional[str] = None
    sections: Tuple[Section, ...] = ()
    status_text: str = ""
    extra_fields: Tuple[Tuple[str, str], ...] = ()
    source: Optional[str] = field(default=None, compare=False)

    @property
    def status_label(self) -> str:
        if self.status is not None:
            return str(self.status)
        return self.status_text or "Unknown"

    @property
    def headings(self) -> Tuple[str, ...]:
        return tuple(s.heading for s in self.sections if s.heading)

    def section(self, heading: str) -> Optional[Section]:
        """Return the first section with this heading (case-insensitive)."""
        wanted = heading.strip().lower()
        for section in self.sections:
            if section.heading.lower() == wanted:
                return section
        return None

    def with_status(self, status: Status, review_count: int) -> "ProposalDocument":
        """Copy of this document in a new lifecycle state."""
        return replace(
            self,
            status=status,
            review_count=review_count,
            status_text=str(status),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "title": self.title,
            "status": self.status.to_dict() if self.status is not None else None,
            "status_text": self.status_text,
            "review_count": self.review_count,
            "author": self.author,
            "implementation": self.implementation,
            "sections": [s.to_dict() for s in self.sections],
            "extra_fields": dict(self.extra_fields),
            "source": self.source,
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProposalDocument":
        """
        Create a document from its dictionary form.

        Missing mandatory keys raise KeyError.
        """
        status_data = data.get("status")
        return cls(
            id=int(data["id"]),
            title=data["title"],
            status=Status.from_dict(status_data) if status_data else None,
            review_count=int(data["review_count"]),
            author=data["author"],
            implementation=data.get("implementation"),
            sections=tuple(
                Section(s["heading"], int(s["level"]), s["body"])
                for s in data.get("sections", [])
            ),
            status_text=data.get("status_text", ""),
            extra_fields=tuple(data.get("extra_fields", {}).items()),
            source=data.get("source"),
        )
