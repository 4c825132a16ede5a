# =============================================================================
# DIP REGISTRY - REGISTRY
# =============================================================================
#
# The registry OWNS every ProposalDocument, keyed by DIP number.
#
# - Documents are immutable. A transition replaces the stored instance,
#   it never edits it, so callers can hold documents safely.
# - Documents are never removed. They retire into a terminal status.
# - Mutations (register, apply_transition) are serialized behind one
#   lock. Reads only hold the lock long enough to snapshot the keys.
# - When storage is configured a change is persisted BEFORE it becomes
#   visible in memory. A failed write leaves the registry unchanged.
#
# =============================================================================

import logging
import threading
from typing import Callable, Dict, Iterator, List, Optional, Union

from dips.exceptions import (
    DuplicateIdError,
    InvalidDocumentError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from dips.lifecycle import TransitionEngine
from dips.models import ProposalDocument, Status
from dips.parser import DocumentParser
from dips.storage import RegistryStorage
from dips.validator import SchemaValidator
from shared.enums import RegistryEvent, StatusKind

logger = logging.getLogger(__name__)

Predicate = Callable[[ProposalDocument], bool]

# Violations that make a document unusable as a registry entry
BLOCKING_CHECKS = frozenset({"id_positive", "status_known", "review_count_non_negative"})


class DocumentView:
    """
    Lazy, restartable view over registry documents in ascending DIP order.

    Every iteration starts from a fresh snapshot of the registry.
    """

    def __init__(self, registry: "Registry", predicate: Optional[Predicate] = None):
        self._registry = registry
        self._predicate = predicate

    def __iter__(self) -> Iterator[ProposalDocument]:
        for dip_id in self._registry._sorted_ids():
            document = self._registry._documents.get(dip_id)
            if document is None:
                continue
            if self._predicate is None or self._predicate(document):
                yield document

    def ids(self) -> List[int]:
        return [d.id for d in self]

    def count(self) -> int:
        return sum(1 for _ in self)


class Registry:
    """In-memory registry of proposal documents with optional persistence."""

    def __init__(
        self,
        storage: Optional[RegistryStorage] = None,
        audit=None,
        parser: Optional[DocumentParser] = None,
        validator: Optional[SchemaValidator] = None,
        engine: Optional[TransitionEngine] = None,
    ):
        """
        Args:
            storage: Optional RegistryStorage for persistence
            audit: Optional shared.logging_config.AuditLogger
            parser: Parser used by ingest()
            validator: Validator used by register()
            engine: Transition engine used by apply_transition()
        """
        self._documents: Dict[int, ProposalDocument] = {}
        self._lock = threading.RLock()
        self._storage = storage
        self._audit = audit
        self._parser = parser or DocumentParser()
        self._validator = validator or SchemaValidator()
        self._engine = engine or TransitionEngine()

    @classmethod
    def from_storage(cls, storage: RegistryStorage, **kwargs) -> "Registry":
        """
        Rebuild a registry from its persisted snapshot.

        Raises:
            StorageError: the snapshot cannot be read
        """
        registry = cls(storage=storage, **kwargs)
        for document in storage.load_documents():
            registry._documents[document.id] = document
        logger.info(f"Loaded {len(registry._documents)} documents from {storage.snapshot_path}")
        return registry

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def register(self, document: ProposalDocument, strict: bool = True) -> List[ValidationError]:
        """
        Add a new document.

        Args:
            document: Parsed document
            strict: Refuse documents with any violation. When False, only
                    a non-positive DIP number, an unknown status or a
                    negative review count refuses the document; other
                    violations are logged and returned.

        Returns:
            The violations the document was accepted with

        Raises:
            DuplicateIdError: DIP number already registered
            InvalidDocumentError: document refused by validation
            StorageError: persisting failed (registry unchanged)
        """
        with self._lock:
            if document.id in self._documents:
                raise DuplicateIdError(document.id)

            violations = self._validator.validate(document)
            blocking = [v for v in violations if v.check in BLOCKING_CHECKS]
            if strict and violations:
                raise InvalidDocumentError(document.id, violations)
            if blocking:
                raise InvalidDocumentError(document.id, blocking)

            for violation in violations:
                logger.warning(f"Registering with violation: {violation}")

            if self._storage is not None:
                self._storage.save_documents(list(self._documents.values()) + [document])

            self._documents[document.id] = document
            self._log_registration(document)

        logger.info(f"Registered DIP{document.id} '{document.title}' ({document.status_label})")
        return violations

    def ingest(
        self,
        text: str,
        source: Optional[str] = None,
        strict: bool = True,
    ) -> ProposalDocument:
        """
        Parse text and register the resulting document.

        Raises:
            ParseError, DuplicateIdError, InvalidDocumentError, StorageError
        """
        document = self._parser.parse(text, source=source)
        self.register(document, strict=strict)
        return document

    def apply_transition(self, dip_id: int, target: Union[Status, str]) -> ProposalDocument:
        """
        Move a registered document into a new lifecycle state.

        Returns:
            The updated document

        Raises:
            NotFoundError: DIP number not registered
            IllegalTransitionError: target not reachable (document unchanged)
            StorageError: persisting failed (document unchanged)
        """
        with self._lock:
            current = self.get(dip_id)
            updated = self._engine.transition(current, target)

            if self._storage is not None:
                documents = dict(self._documents)
                documents[dip_id] = updated
                self._storage.save_documents(list(documents.values()))

            self._documents[dip_id] = updated
            self._log_transition(current, updated)

        logger.info(
            f"DIP{dip_id}: {current.status_label} -> {updated.status_label} "
            f"(review count {updated.review_count})"
        )
        return updated

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get(self, dip_id: int) -> ProposalDocument:
        """
        Raises:
            NotFoundError: DIP number not registered
        """
        document = self._documents.get(dip_id)
        if document is None:
            raise NotFoundError(dip_id)
        return document

    def list(self, predicate: Optional[Predicate] = None) -> DocumentView:
        """Documents matching predicate, ascending by DIP number."""
        return DocumentView(self, predicate)

    def list_by_status(self, kind: StatusKind) -> DocumentView:
        return DocumentView(
            self,
            lambda d: d.status is not None and d.status.kind is kind,
        )

    def allowed_targets(self, dip_id: int) -> List[Status]:
        return self._engine.allowed_targets(self.get(dip_id))

    def __contains__(self, dip_id) -> bool:
        return dip_id in self._documents

    def __len__(self) -> int:
        return len(self._documents)

    def _sorted_ids(self) -> List[int]:
        with self._lock:
            return sorted(self._documents)

    # -------------------------------------------------------------------------
    # Records
    # -------------------------------------------------------------------------

    def _log_registration(self, document: ProposalDocument):
        if self._audit is not None:
            self._audit.log_event(RegistryEvent.REGISTERED.value, {
                "dip_id": document.id,
                "title": document.title,
                "status": document.status_label,
                "review_count": document.review_count,
            })
        if self._storage is not None:
            try:
                self._storage.append_registration(document)
            except StorageError as e:
                logger.error(f"Registration of DIP{document.id} not written to log: {e}")

    def _log_transition(self, before: ProposalDocument, after: ProposalDocument):
        if self._audit is not None:
            self._audit.log_event(RegistryEvent.TRANSITION.value, {
                "dip_id": after.id,
                "from": before.status_label,
                "to": after.status_label,
                "review_count": after.review_count,
            })
        if self._storage is not None:
            try:
                self._storage.append_transition(before, after)
            except StorageError as e:
                logger.error(f"Transition of DIP{after.id} not written to log: {e}")
