# =============================================================================
# DIP REGISTRY
# =============================================================================
#
# Registry and validator for D Improvement Proposals.
#
# ARCHITECTURE:
#   Text -> Parser -> Validator -> Registry <-> Transition Engine
#                                     |
#                                  Storage
#
# The registry never deletes a document. Documents leave the process by
# reaching Accepted, Rejected or Withdrawn.
#
# =============================================================================

from dips.exceptions import (
    DipError,
    ParseError,
    ValidationError,
    IllegalTransitionError,
    DuplicateIdError,
    NotFoundError,
    InvalidDocumentError,
    StorageError,
)
from dips.models import ProposalDocument, Section, Status
from dips.parser import DocumentParser, parse_document
from dips.validator import SchemaValidator, validate_document
from dips.lifecycle import TransitionEngine
from dips.registry import Registry, DocumentView
from dips.storage import RegistryStorage

__all__ = [
    "DipError",
    "ParseError",
    "ValidationError",
    "IllegalTransitionError",
    "DuplicateIdError",
    "NotFoundError",
    "InvalidDocumentError",
    "StorageError",
    "ProposalDocument",
    "Section",
    "Status",
    "DocumentParser",
    "parse_document",
    "SchemaValidator",
    "validate_document",
    "TransitionEngine",
    "Registry",
    "DocumentView",
    "RegistryStorage",
]
