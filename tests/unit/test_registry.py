# =============================================================================
# UNIT TESTS - REGISTRY
# =============================================================================

import threading
from dataclasses import replace
from unittest.mock import MagicMock

import pytest

from dips.exceptions import (
    DuplicateIdError,
    IllegalTransitionError,
    InvalidDocumentError,
    NotFoundError,
    ParseError,
    StorageError,
)
from dips.models import ProposalDocument, Status
from dips.registry import Registry
from dips.storage import RegistryStorage
from shared.enums import StatusKind


def make_document(dip_id, status=None, review_count=0, **kwargs):
    status = status or Status.draft()
    return ProposalDocument(
        id=dip_id,
        title=kwargs.pop("title", f"Proposal {dip_id}"),
        status=status,
        review_count=review_count,
        author=kwargs.pop("author", "Jane Doe"),
        status_text=str(status),
        **kwargs,
    )


@pytest.fixture
def registry():
    return Registry()


# =============================================================================
# REGISTER / GET
# =============================================================================

class TestRegister:

    def test_register_and_get(self, registry):
        doc = make_document(1030)
        assert registry.register(doc) == []
        assert registry.get(1030) is doc
        assert 1030 in registry
        assert len(registry) == 1

    def test_duplicate_id_rejected(self, registry):
        registry.register(make_document(1030, title="First"))
        with pytest.raises(DuplicateIdError) as exc_info:
            registry.register(make_document(1030, title="Second"))
        assert exc_info.value.dip_id == 1030
        assert len(registry) == 1
        assert registry.get(1030).title == "First"

    def test_get_missing(self, registry):
        with pytest.raises(NotFoundError) as exc_info:
            registry.get(42)
        assert "42" in str(exc_info.value)
        assert exc_info.value.is_retryable is False

    def test_strict_refuses_any_violation(self, registry):
        with pytest.raises(InvalidDocumentError) as exc_info:
            registry.register(make_document(1, review_count=3))
        assert [v.check for v in exc_info.value.violations] == ["review_count_consistent"]
        assert 1 not in registry

    def test_lenient_accepts_non_blocking_violations(self, registry):
        violations = registry.register(make_document(1, review_count=3), strict=False)
        assert [v.check for v in violations] == ["review_count_consistent"]
        assert registry.get(1).review_count == 3

    def test_lenient_still_refuses_unknown_status(self, registry):
        doc = replace(make_document(2), status=None, status_text="Superseded")
        with pytest.raises(InvalidDocumentError) as exc_info:
            registry.register(doc, strict=False)
        assert [v.check for v in exc_info.value.violations] == ["status_known"]

    def test_lenient_still_refuses_non_positive_id(self, registry):
        with pytest.raises(InvalidDocumentError):
            registry.register(make_document(0), strict=False)

    def test_lenient_still_refuses_negative_review_count(self, registry):
        with pytest.raises(InvalidDocumentError) as exc_info:
            registry.register(make_document(5, review_count=-1), strict=False)
        assert "review_count_non_negative" in [v.check for v in exc_info.value.violations]
        assert 5 not in registry

    def test_ingest(self, registry, sample_dip):
        doc = registry.ingest(sample_dip, source="DIP1030.md")
        assert registry.get(1030) == doc
        assert doc.source == "DIP1030.md"

    def test_ingest_parse_error_leaves_registry_empty(self, registry):
        with pytest.raises(ParseError):
            registry.ingest("# Title only\n")
        assert len(registry) == 0


# =============================================================================
# LIST
# =============================================================================

class TestList:

    def test_ascending_order(self, registry):
        for dip_id in (1044, 1001, 1030):
            registry.register(make_document(dip_id))
        assert registry.list().ids() == [1001, 1030, 1044]

    def test_filter_by_predicate(self, registry):
        registry.register(make_document(1, title="Named Arguments"))
        registry.register(make_document(2, title="Borrow Checker"))
        view = registry.list(lambda d: "Named" in d.title)
        assert view.ids() == [1]

    def test_filter_by_status(self, registry):
        registry.register(make_document(1))
        registry.register(make_document(2, Status.community_review(1), 1))
        registry.register(make_document(3, Status.community_review(2), 2))
        assert registry.list_by_status(StatusKind.COMMUNITY_REVIEW).ids() == [2, 3]
        assert registry.list_by_status(StatusKind.ACCEPTED).count() == 0

    def test_view_is_restartable(self, registry):
        registry.register(make_document(1))
        registry.register(make_document(2))
        view = registry.list()
        assert [d.id for d in view] == [1, 2]
        assert [d.id for d in view] == [1, 2]

    def test_view_is_lazy(self, registry):
        view = registry.list()
        registry.register(make_document(5))
        assert view.ids() == [5]

    def test_view_reflects_transitions(self, registry):
        registry.register(make_document(1))
        view = registry.list_by_status(StatusKind.DRAFT)
        assert view.count() == 1
        registry.apply_transition(1, "Community Review Round 1")
        assert view.count() == 0


# =============================================================================
# TRANSITIONS
# =============================================================================

class TestApplyTransition:

    def test_review_rounds(self, registry):
        registry.register(make_document(1030))
        assert registry.apply_transition(1030, Status.community_review(1)).review_count == 1
        assert registry.apply_transition(1030, Status.community_review(2)).review_count == 2
        assert registry.get(1030).status == Status.community_review(2)

    def test_illegal_transition_leaves_document(self, registry):
        doc = make_document(1030)
        registry.register(doc)
        with pytest.raises(IllegalTransitionError):
            registry.apply_transition(1030, Status(StatusKind.ACCEPTED))
        assert registry.get(1030) is doc

    def test_missing_document(self, registry):
        with pytest.raises(NotFoundError):
            registry.apply_transition(7, "Community Review Round 1")

    def test_allowed_targets(self, registry):
        registry.register(make_document(1))
        assert registry.allowed_targets(1) == [Status.community_review(1)]

    def test_storage_failure_leaves_document(self):
        storage = MagicMock(spec=RegistryStorage)
        registry = Registry(storage=storage)
        doc = make_document(1)
        registry.register(doc)

        storage.save_documents.side_effect = StorageError("disk full")
        with pytest.raises(StorageError):
            registry.apply_transition(1, "Community Review Round 1")
        assert registry.get(1) is doc
        storage.append_transition.assert_not_called()

    def test_storage_failure_on_register(self):
        storage = MagicMock(spec=RegistryStorage)
        storage.save_documents.side_effect = StorageError("disk full")
        registry = Registry(storage=storage)
        with pytest.raises(StorageError):
            registry.register(make_document(1))
        assert 1 not in registry

    def test_log_failure_does_not_undo_transition(self):
        storage = MagicMock(spec=RegistryStorage)
        storage.append_transition.side_effect = StorageError("log unwritable")
        registry = Registry(storage=storage)
        registry.register(make_document(1))
        updated = registry.apply_transition(1, "Community Review Round 1")
        assert registry.get(1) is updated

    def test_audit_records(self):
        audit = MagicMock()
        registry = Registry(audit=audit)
        registry.register(make_document(1))
        registry.apply_transition(1, "Community Review Round 1")
        events = [call.args[0] for call in audit.log_event.call_args_list]
        assert events == ["REGISTERED", "TRANSITION"]
        details = audit.log_event.call_args_list[1].args[1]
        assert details["from"] == "Draft"
        assert details["to"] == "Community Review Round 1"


class TestConcurrency:

    def test_concurrent_rounds_are_serialized(self, registry):
        registry.register(make_document(1))
        registry.apply_transition(1, "Community Review Round 1")

        results = []

        def advance():
            try:
                registry.apply_transition(1, "Community Review Round 2")
                results.append("ok")
            except IllegalTransitionError:
                results.append("illegal")

        threads = [threading.Thread(target=advance) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count("ok") == 1
        assert results.count("illegal") == 7
        assert registry.get(1).review_count == 2

    def test_concurrent_duplicate_registration(self, registry):
        errors = []

        def register():
            try:
                registry.register(make_document(9))
            except DuplicateIdError:
                errors.append(True)

        threads = [threading.Thread(target=register) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(errors) == 7
        assert len(registry) == 1
