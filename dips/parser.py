# =============================================================================
# DIP REGISTRY - DOCUMENT PARSER
# =============================================================================
#
# Turns DIP markdown into a ProposalDocument.
#
# EXPECTED SHAPE:
#
#   # Named Arguments
#
#   | Field           | Value                        |
#   |-----------------|------------------------------|
#   | DIP:            | 1030                         |
#   | Review Count:   | 2                            |
#   | Author:         | Walter Bright walter@dm.com  |
#   | Implementation: |                              |
#   | Status:         | Community Review Round 2     |
#
#   ## Abstract
#   ...free text...
#
# The parser only checks STRUCTURE. Whether the values make sense
# (positive id, known status, consistent review count) is the
# validator's job, so values that are readable but wrong are passed on.
#
# The parser is a pure function of its input.
#
# =============================================================================

import logging
import re
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from dips.exceptions import ParseError
from dips.loader import read_document
from dips.models import ProposalDocument, Section, Status

logger = logging.getLogger(__name__)


_TITLE_RE = re.compile(r"^#\s+(.+?)(?:\s+#+)?\s*$")
_HEADING_RE = re.compile(r"^(#{1,6})\s+(.+?)(?:\s+#+)?\s*$")
_FENCE_RE = re.compile(r"^\s*(```|~~~)")
_SEPARATOR_CELL_RE = re.compile(r"^:?-+:?$")
_LEADING_INT_RE = re.compile(r"^(?:DIP\s*)?(-?\d+)", re.IGNORECASE)
_BR_RE = re.compile(r"\s*<br\s*/?>\s*", re.IGNORECASE)

# normalized key -> display name
REQUIRED_FIELDS = {
    "dip": "DIP",
    "review count": "Review Count",
    "author": "Author",
    "status": "Status",
}


class DocumentParser:
    """
    Parser for DIP documents.

    No state is kept between documents.
    """

    def parse(self, text: str, source: Optional[str] = None) -> ProposalDocument:
        """
        Parse a DIP document.

        Args:
            text: Raw markdown text
            source: Optional path or URL, used in error messages

        Returns:
            ProposalDocument

        Raises:
            ParseError: title or metadata table missing or malformed,
                        or a required field absent
        """
        lines = text.splitlines()

        title, cursor = self._parse_title(lines, source)
        table_start, table_end = self._locate_table(lines, cursor, source)
        fields = self._parse_table(lines, table_start, table_end, source)

        for key, display in REQUIRED_FIELDS.items():
            if key not in fields:
                raise ParseError(
                    f"Missing required field '{display}'",
                    line=table_start + 1,
                    source=source,
                )

        dip_id = self._parse_int(fields["dip"], "DIP", source)
        review_count = self._parse_int(fields["review count"], "Review Count", source)

        status_text = fields["status"][1]
        try:
            status = Status.parse(status_text)
        except ValueError:
            logger.debug(f"Unrecognized status {status_text!r} in {source or '<text>'}")
            status = None

        author = _BR_RE.sub("; ", fields["author"][1]).strip()
        implementation = fields["implementation"][1] if "implementation" in fields else ""

        extra = tuple(
            (name, value)
            for key, (_, value, name) in fields.items()
            if key not in REQUIRED_FIELDS and key != "implementation"
        )

        sections = self._parse_sections(lines[table_end:])

        document = ProposalDocument(
            id=dip_id,
            title=title,
            status=status,
            review_count=review_count,
            author=author,
            implementation=implementation or None,
            sections=tuple(sections),
            status_text=status_text,
            extra_fields=extra,
            source=source,
        )
        logger.debug(
            f"Parsed DIP{document.id} '{document.title}' "
            f"({len(document.sections)} sections) from {source or '<text>'}"
        )
        return document

    def parse_file(self, path) -> ProposalDocument:
        """
        Read a UTF-8 file and parse it.

        Raises:
            ParseError: file is not valid UTF-8 or not a DIP document
            OSError: file cannot be read
        """
        path = Path(path)
        return self.parse(read_document(path), source=str(path))

    # -------------------------------------------------------------------------
    # Title and table
    # -------------------------------------------------------------------------

    def _parse_title(self, lines: List[str], source: Optional[str]) -> Tuple[str, int]:
        """Find the level-1 title. Returns (title, index of next line)."""
        for index, line in enumerate(lines):
            stripped = line.strip()
            if not stripped:
                continue
            if stripped.startswith("|"):
                raise ParseError("Missing title before metadata table", line=index + 1, source=source)
            match = _TITLE_RE.match(stripped)
            if match:
                return match.group(1).strip(), index + 1
        raise ParseError("Missing title", source=source)

    def _locate_table(self, lines: List[str], start: int, source: Optional[str]) -> Tuple[int, int]:
        """Return [start, end) line indexes of the metadata table."""
        index = start
        while index < len(lines):
            stripped = lines[index].strip()
            if stripped.startswith("|"):
                break
            if _HEADING_RE.match(stripped):
                raise ParseError("Missing metadata table", line=index + 1, source=source)
            index += 1
        else:
            raise ParseError("Missing metadata table", source=source)

        end = index
        while end < len(lines) and lines[end].strip().startswith("|"):
            end += 1
        return index, end

    def _parse_table(
        self,
        lines: List[str],
        start: int,
        end: int,
        source: Optional[str],
    ) -> Dict[str, Tuple[int, str, str]]:
        """Parse table rows into {normalized field: (line number, value, display name)}."""
        fields: Dict[str, Tuple[int, str, str]] = {}

        for index in range(start, end):
            line_number = index + 1
            cells = self._split_row(lines[index])

            if all(_SEPARATOR_CELL_RE.match(cell) for cell in cells):
                continue
            if index == start and [c.rstrip(":").strip().lower() for c in cells] == ["field", "value"]:
                continue

            if len(cells) != 2:
                raise ParseError(
                    f"Malformed metadata row: expected 2 cells, found {len(cells)}",
                    line=line_number,
                    source=source,
                )

            name = cells[0].rstrip(":").strip()
            if not name:
                raise ParseError("Malformed metadata row: empty field name", line=line_number, source=source)

            key = " ".join(name.lower().split())
            if key in fields:
                raise ParseError(f"Duplicate field '{name}'", line=line_number, source=source)

            fields[key] = (line_number, cells[1], name)

        return fields

    @staticmethod
    def _split_row(line: str) -> List[str]:
        stripped = line.strip()
        if stripped.startswith("|"):
            stripped = stripped[1:]
        if stripped.endswith("|"):
            stripped = stripped[:-1]
        return [cell.strip() for cell in stripped.split("|")]

    @staticmethod
    def _parse_int(entry: Tuple[int, str, str], display: str, source: Optional[str]) -> int:
        line_number, value, _ = entry
        match = _LEADING_INT_RE.match(value)
        if not match:
            raise ParseError(
                f"Field '{display}' is not a number: {value!r}",
                line=line_number,
                source=source,
            )
        return int(match.group(1))

    # -------------------------------------------------------------------------
    # Sections
    # -------------------------------------------------------------------------

    def _parse_sections(self, lines: List[str]) -> List[Section]:
        """Split the body into sections at headings outside code fences."""
        sections: List[Section] = []
        heading, level = "", 0
        body: List[str] = []
        in_fence = False

        for line in lines:
            if _FENCE_RE.match(line):
                in_fence = not in_fence
                body.append(line)
                continue

            match = None if in_fence else _HEADING_RE.match(line.strip())
            if match:
                if heading or _has_content(body):
                    sections.append(Section(heading, level, _trim_blank_lines(body)))
                heading, level = match.group(2).strip(), len(match.group(1))
                body = []
            else:
                body.append(line)

        if heading or _has_content(body):
            sections.append(Section(heading, level, _trim_blank_lines(body)))
        return sections


def _has_content(lines: List[str]) -> bool:
    return any(line.strip() for line in lines)


def _trim_blank_lines(lines: List[str]) -> str:
    start, end = 0, len(lines)
    while start < end and not lines[start].strip():
        start += 1
    while end > start and not lines[end - 1].strip():
        end -= 1
    return "\n".join(lines[start:end])


def parse_document(text: str, source: Optional[str] = None) -> ProposalDocument:
    """Convenience function to parse a document."""
    return DocumentParser().parse(text, source)
