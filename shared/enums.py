# =============================================================================
# DIP REGISTRY - SHARED ENUMS
# =============================================================================
#
# These enums define the shared vocabulary of the registry.
# They encode the proposal lifecycle at the type level.
#
# STATUS KIND ENUM:
# The closed set of lifecycle states a DIP can be in.
# The round number of a Community Review lives on dips.models.Status,
# not on the enum.
#
# =============================================================================

from enum import Enum


class StatusKind(Enum):
    """
    Lifecycle states of a DIP.

    DRAFT:            Initial state, not yet reviewed
    COMMUNITY_REVIEW: Under community review (carries a round number)
    FINAL_REVIEW:     Accepted for final review by the language maintainers
    ACCEPTED:         Terminal - proposal accepted
    REJECTED:         Terminal - proposal rejected
    WITHDRAWN:        Terminal - withdrawn by the author
    POSTPONED:        Review suspended, may be resumed
    """
    DRAFT = "DRAFT"
    COMMUNITY_REVIEW = "COMMUNITY_REVIEW"
    FINAL_REVIEW = "FINAL_REVIEW"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    WITHDRAWN = "WITHDRAWN"
    POSTPONED = "POSTPONED"

    @property
    def label(self) -> str:
        """Human-readable label as used in DIP headers."""
        return self.value.replace("_", " ").title()


TERMINAL_KINDS = frozenset({
    StatusKind.ACCEPTED,
    StatusKind.REJECTED,
    StatusKind.WITHDRAWN,
})


class RegistryEvent(Enum):
    """Event types written to the audit log."""
    REGISTERED = "REGISTERED"
    TRANSITION = "TRANSITION"
