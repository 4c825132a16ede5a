# =============================================================================
# DIP REGISTRY - SCHEMA VALIDATOR
# =============================================================================
#
# The validator checks a parsed ProposalDocument against EXPLICIT,
# NAMED rules and returns every violation it finds.
#
# CHECKS:
# - id_positive:               DIP number > 0
# - title_present:             title is not blank
# - status_known:              status is a known lifecycle state
# - author_present:            author is not blank
# - review_count_non_negative: review count >= 0
# - review_count_consistent:   review count matches the status
#     Draft                   -> review count == 0
#     Community Review Round n -> review count >= n
#     any later state         -> review count >= 1
#
# All checks run on every call. The validator never stops at the first
# problem, never raises and never modifies the document.
#
# =============================================================================

from typing import Dict, List, Optional

from dips.exceptions import ValidationError
from dips.models import ProposalDocument
from shared.enums import StatusKind


class SchemaValidator:
    """Validator for proposal documents. Stateless."""

    CHECKS = (
        "id_positive",
        "title_present",
        "status_known",
        "author_present",
        "review_count_non_negative",
        "review_count_consistent",
    )

    def validate(self, document: ProposalDocument) -> List[ValidationError]:
        """
        Validate a document.

        Args:
            document: The document to check

        Returns:
            List of ValidationError, empty when the document is valid
        """
        violations: List[ValidationError] = []

        def violation(check: str, field: str, message: str) -> None:
            violations.append(ValidationError(check, field, message, document.id))

        if not isinstance(document.id, int) or document.id <= 0:
            violation("id_positive", "id", f"DIP number must be a positive integer, got {document.id}")

        if not document.title.strip():
            violation("title_present", "title", "Title is empty")

        if document.status is None:
            violation(
                "status_known",
                "status",
                f"Unknown lifecycle state: {document.status_text!r}",
            )

        if not document.author.strip():
            violation("author_present", "author", "Author is empty")

        if document.review_count < 0:
            violation(
                "review_count_non_negative",
                "review_count",
                f"Review count must not be negative, got {document.review_count}",
            )
        elif document.status is not None:
            problem = self._review_count_problem(document)
            if problem:
                violation("review_count_consistent", "review_count", problem)

        return violations

    def is_valid(self, document: ProposalDocument) -> bool:
        return not self.validate(document)

    def checks_performed(self, document: ProposalDocument) -> Dict[str, bool]:
        """Map of check name -> passed, for reporting."""
        failed = {v.check for v in self.validate(document)}
        return {check: check not in failed for check in self.CHECKS}

    @staticmethod
    def _review_count_problem(document: ProposalDocument) -> Optional[str]:
        status = document.status
        count = document.review_count

        if status.kind is StatusKind.DRAFT:
            if count != 0:
                return f"A Draft must have review count 0, got {count}"
            return None

        if status.kind is StatusKind.COMMUNITY_REVIEW:
            if count < status.round:
                return (
                    f"{status} requires review count >= {status.round}, got {count}"
                )
            return None

        if count < 1:
            return f"{status} requires at least one completed review, got {count}"
        return None


def validate_document(document: ProposalDocument) -> List[ValidationError]:
    """Convenience function to validate a document."""
    return SchemaValidator().validate(document)
