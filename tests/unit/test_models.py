# =============================================================================
# UNIT TESTS - DATA MODELS
# =============================================================================

import pytest

from dips.models import ProposalDocument, Section, Status
from shared.enums import StatusKind


# =============================================================================
# STATUS
# =============================================================================

class TestStatusParse:
    """Status.parse accepts header and command-line spellings."""

    @pytest.mark.parametrize("text,expected", [
        ("Draft", Status(StatusKind.DRAFT)),
        ("  draft  ", Status(StatusKind.DRAFT)),
        ("Community Review Round 1", Status.community_review(1)),
        ("Community Review Round #3", Status.community_review(3)),
        ("CommunityReview(2)", Status.community_review(2)),
        ("community-review-4", Status.community_review(4)),
        ("community_review_2", Status.community_review(2)),
        ("Final Review", Status(StatusKind.FINAL_REVIEW)),
        ("final-review", Status(StatusKind.FINAL_REVIEW)),
        ("Accepted", Status(StatusKind.ACCEPTED)),
        ("REJECTED", Status(StatusKind.REJECTED)),
        ("Withdrawn", Status(StatusKind.WITHDRAWN)),
        ("Postponed", Status(StatusKind.POSTPONED)),
        ("**Accepted**", Status(StatusKind.ACCEPTED)),
    ])
    def test_known_spellings(self, text, expected):
        assert Status.parse(text) == expected

    @pytest.mark.parametrize("text", ["", "   ", "Superseded", "Community Review", "In Progress"])
    def test_unknown_raises(self, text):
        with pytest.raises(ValueError):
            Status.parse(text)


class TestStatusConstruction:
    """Illegal status shapes cannot be built."""

    def test_community_review_requires_round(self):
        with pytest.raises(ValueError, match="round"):
            Status(StatusKind.COMMUNITY_REVIEW)

    def test_community_review_round_zero_rejected(self):
        with pytest.raises(ValueError):
            Status.community_review(0)

    def test_draft_cannot_carry_round(self):
        with pytest.raises(ValueError, match="does not carry a round"):
            Status(StatusKind.DRAFT, 1)

    def test_final_review_round_optional(self):
        assert Status(StatusKind.FINAL_REVIEW).round is None
        assert Status(StatusKind.FINAL_REVIEW, 2).round == 2

    def test_kind_must_be_enum(self):
        with pytest.raises(ValueError):
            Status("DRAFT")

    def test_str_uses_header_spelling(self):
        assert str(Status.community_review(2)) == "Community Review Round 2"
        assert str(Status(StatusKind.FINAL_REVIEW, 2)) == "Final Review"
        assert str(Status.draft()) == "Draft"

    def test_terminal_kinds(self):
        assert Status(StatusKind.ACCEPTED).is_terminal
        assert Status(StatusKind.REJECTED).is_terminal
        assert Status(StatusKind.WITHDRAWN).is_terminal
        assert not Status(StatusKind.POSTPONED).is_terminal
        assert not Status.community_review(1).is_terminal


# =============================================================================
# PROPOSAL DOCUMENT
# =============================================================================

@pytest.fixture
def document():
    return ProposalDocument(
        id=1030,
        title="Named Arguments",
        status=Status.community_review(1),
        review_count=1,
        author="Walter Bright",
        sections=(
            Section("Abstract", 2, "Short."),
            Section("Rationale", 2, "Long."),
        ),
        status_text="Community Review Round 1",
        extra_fields=(("Discussion", "forum link"),),
        source="DIPs/DIP1030.md",
    )


class TestProposalDocument:

    def test_is_immutable(self, document):
        with pytest.raises(AttributeError):
            document.id = 7

    def test_with_status_returns_new_instance(self, document):
        updated = document.with_status(Status.community_review(2), 2)
        assert updated is not document
        assert updated.status == Status.community_review(2)
        assert updated.status_text == "Community Review Round 2"
        assert document.status == Status.community_review(1)
        assert document.review_count == 1

    def test_section_lookup_is_case_insensitive(self, document):
        assert document.section("abstract").body == "Short."
        assert document.section("Missing") is None

    def test_headings(self, document):
        assert document.headings == ("Abstract", "Rationale")

    def test_status_label_falls_back_to_raw_text(self, document):
        unknown = ProposalDocument(
            id=1, title="t", status=None, review_count=0, author="a",
            status_text="Superseded",
        )
        assert unknown.status_label == "Superseded"
        assert document.status_label == "Community Review Round 1"

    def test_dict_form_restores_document(self, document):
        restored = ProposalDocument.from_dict(document.to_dict())
        assert restored == document
        assert restored.source == "DIPs/DIP1030.md"

    def test_from_dict_missing_key_raises(self, document):
        data = document.to_dict()
        del data["title"]
        with pytest.raises(KeyError):
            ProposalDocument.from_dict(data)
