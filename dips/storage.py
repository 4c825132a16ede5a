# =============================================================================
# DIP REGISTRY - STORAGE
# =============================================================================
#
# Persists the registry between runs.
#
# FILES:
# - registry.json:   Snapshot of every registered document, keyed by DIP
#                    number. Rewritten atomically (temp file + rename).
# - transitions.md:  Human-readable, APPEND-ONLY log of registrations
#                    and lifecycle transitions.
#
# Documents are never deleted from the snapshot. A DIP that leaves the
# process does so by reaching a terminal status, not by removal.
#
# =============================================================================

import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, List, Optional

from dips.exceptions import StorageError
from dips.models import ProposalDocument
from shared.config import BASE_DIR

logger = logging.getLogger(__name__)


def _unique_keys(pairs):
    """json object hook: refuse objects that repeat a key."""
    result = {}
    for key, value in pairs:
        if key in result:
            raise ValueError(f"duplicate key {key!r}")
        result[key] = value
    return result


class RegistryStorage:
    """
    File-backed storage for the registry.

    Write failures raise StorageError so the registry can keep its
    in-memory state unchanged.
    """

    def __init__(self, base_dir: Optional[Path] = None):
        """
        Initialize storage.

        Args:
            base_dir: Directory for the storage files.
                      Defaults to data/registry under BASE_DIR.
        """
        if base_dir is None:
            base_dir = BASE_DIR / "data" / "registry"

        self.base_dir = Path(base_dir)
        self.snapshot_path = self.base_dir / "registry.json"
        self.log_path = self.base_dir / "transitions.md"

        self.base_dir.mkdir(parents=True, exist_ok=True)
        self._init_files()

    def _init_files(self):
        """Create the transition log with its header if it does not exist."""
        if not self.log_path.exists():
            header = """# DIP Registry Transition Log

> This file is an append-only record of registrations and lifecycle
> transitions. Do not modify or delete existing entries.

---

"""
            self._append_text(self.log_path, header)

    def _append_text(self, path: Path, text: str):
        try:
            with open(path, 'a', encoding='utf-8') as f:
                f.write(text)
        except OSError as e:
            logger.error(f"Failed to append to {path}: {e}")
            raise StorageError(f"Failed to append to log: {e}", path) from e

    def _write_json_atomic(self, path: Path, data: Any):
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
                f.write("\n")
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
        except OSError as e:
            logger.error(f"Failed to write {path}: {e}")
            raise StorageError(f"Failed to write registry snapshot: {e}", path) from e

    # -------------------------------------------------------------------------
    # Snapshot
    # -------------------------------------------------------------------------

    def save_documents(self, documents: List[ProposalDocument]):
        """
        Write the full snapshot.

        Args:
            documents: Every registered document
        """
        ordered = sorted(documents, key=lambda d: d.id)
        self._write_json_atomic(self.snapshot_path, {
            "_metadata": {
                "last_modified": datetime.now().isoformat(),
                "total_documents": len(ordered),
                "notice": "Documents are never removed from this file.",
            },
            "documents": {str(d.id): d.to_dict() for d in ordered},
        })

    def load_documents(self) -> List[ProposalDocument]:
        """
        Load the snapshot.

        Returns:
            Documents in ascending DIP order; empty when no snapshot exists

        Raises:
            StorageError: the snapshot exists but cannot be read
        """
        if not self.snapshot_path.exists():
            return []

        try:
            with open(self.snapshot_path, 'r', encoding='utf-8') as f:
                data = json.load(f, object_pairs_hook=_unique_keys)
        except (OSError, ValueError) as e:
            raise StorageError(f"Failed to read registry snapshot: {e}", self.snapshot_path) from e

        entries = data.get("documents", {}) if isinstance(data, dict) else None
        if not isinstance(entries, dict):
            raise StorageError("Failed to read registry snapshot: no documents mapping", self.snapshot_path)

        documents = []
        for key, entry in entries.items():
            try:
                document = ProposalDocument.from_dict(entry)
            except (KeyError, TypeError, ValueError) as e:
                raise StorageError(f"Corrupt registry entry {key!r}: {e}", self.snapshot_path) from e
            # Each entry is keyed by its own DIP number
            if key != str(document.id):
                raise StorageError(
                    f"Corrupt registry entry {key!r}: holds DIP{document.id}",
                    self.snapshot_path,
                )
            documents.append(document)

        return sorted(documents, key=lambda d: d.id)

    # -------------------------------------------------------------------------
    # Transition log
    # -------------------------------------------------------------------------

    def append_registration(self, document: ProposalDocument):
        lines = [
            f"## DIP{document.id} registered - {datetime.now().isoformat()}",
            "",
            f"**Title:** {document.title}",
            f"**Author:** {document.author}",
            f"**Status:** {document.status_label}",
            f"**Review Count:** {document.review_count}",
            "",
            "---",
            "",
        ]
        self._append_text(self.log_path, "\n".join(lines) + "\n")

    def append_transition(self, before: ProposalDocument, after: ProposalDocument):
        lines = [
            f"## DIP{after.id} transition - {datetime.now().isoformat()}",
            "",
            f"**Title:** {after.title}",
            f"**From:** {before.status_label}",
            f"**To:** {after.status_label}",
            f"**Review Count:** {before.review_count} -> {after.review_count}",
            "",
            "---",
            "",
        ]
        self._append_text(self.log_path, "\n".join(lines) + "\n")
