# =============================================================================
# DIP REGISTRY - STATUS TRANSITION ENGINE
# =============================================================================
#
# Enforces the DIP lifecycle graph:
#
#   Draft                 -> Community Review Round 1
#   Community Review n    -> Community Review n+1   (revision requested)
#                         -> Final Review           (accepted for final review)
#                         -> Postponed
#                         -> Withdrawn
#   Final Review          -> Accepted
#                         -> Rejected
#                         -> Community Review n+1   (sent back)
#   Postponed             -> Community Review n     (resumed)
#   Accepted / Rejected / Withdrawn are terminal.
#
# Every successful entry into a Community Review state increments the
# review count by one. Anything else raises IllegalTransitionError and
# the document is left as it was.
#
# =============================================================================

import logging
from typing import List, Union

from dips.exceptions import IllegalTransitionError
from dips.models import ProposalDocument, Status
from shared.enums import StatusKind

logger = logging.getLogger(__name__)


class TransitionEngine:
    """Stateless lifecycle state machine."""

    def allowed_targets(self, document: ProposalDocument) -> List[Status]:
        """
        Legal next states of a document, with round numbers filled in.

        Returns an empty list for terminal or unknown states.
        """
        status = document.status
        if status is None:
            return []

        kind = status.kind

        if kind is StatusKind.DRAFT:
            return [Status.community_review(1)]

        if kind is StatusKind.COMMUNITY_REVIEW:
            n = status.round
            return [
                Status.community_review(n + 1),
                Status(StatusKind.FINAL_REVIEW, n),
                Status(StatusKind.POSTPONED, n),
                Status(StatusKind.WITHDRAWN),
            ]

        if kind is StatusKind.FINAL_REVIEW:
            return [
                Status(StatusKind.ACCEPTED),
                Status(StatusKind.REJECTED),
                Status.community_review(self._last_round(document) + 1),
            ]

        if kind is StatusKind.POSTPONED:
            return [Status.community_review(self._last_round(document))]

        return []

    def can_transition(self, document: ProposalDocument, target: Union[Status, str]) -> bool:
        return self._match(document, self._coerce(target)) is not None

    def transition(self, document: ProposalDocument, target: Union[Status, str]) -> ProposalDocument:
        """
        Move a document into a new lifecycle state.

        Args:
            document: The current document (not modified)
            target: Target Status, or its text form ("Community Review Round 2")

        Returns:
            New ProposalDocument in the target state

        Raises:
            IllegalTransitionError: target is not reachable from the current state
            ValueError: target text is not a lifecycle state
        """
        target = self._coerce(target)
        resolved = self._match(document, target)
        if resolved is None:
            raise IllegalTransitionError(document.status, target, document.id)

        review_count = document.review_count
        if resolved.is_community_review:
            review_count += 1

        logger.debug(f"DIP{document.id}: {document.status} -> {resolved} (review count {review_count})")
        return document.with_status(resolved, review_count)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _coerce(target: Union[Status, str]) -> Status:
        if isinstance(target, Status):
            return target
        return Status.parse(target)

    def _match(self, document: ProposalDocument, target: Status):
        """
        Find the allowed state the request refers to.

        Community Review targets must name the exact round. For other
        kinds the carried round is filled in by the engine.
        """
        for candidate in self.allowed_targets(document):
            if candidate.kind is not target.kind:
                continue
            if target.is_community_review and candidate.round != target.round:
                continue
            return candidate
        return None

    @staticmethod
    def _last_round(document: ProposalDocument) -> int:
        if document.status.round is not None:
            return document.status.round
        return max(document.review_count, 1)
