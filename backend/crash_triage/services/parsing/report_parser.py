"""
Crash Triage Engine - Crash Report Parser

Streams a <crashlog> document through SAX events and emits IncomingReport
values. Single forward pass, no DOM: log bodies can be large and arrive
split across several CDATA/text chunks, so each field accumulates every
character event until its end tag.

Schema:
    <crashlog>
        <version/> <crashappversion/> <startmemory/>
        <endmemory/> <contact/> <log><![CDATA[...]]></log>
    </crashlog>
"""
from __future__ import annotations
import logging
import os
import xml.sax
from xml.sax.handler import ContentHandler, feature_external_ges, feature_external_pes, feature_namespaces
from typing import Dict, List, Optional, Union, IO

from ...models.triage import IncomingReport
from ..errors import ParseError

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

MAX_FIELD_LENGTH = int(os.getenv("CRASH_TRIAGE_MAX_FIELD_LENGTH", str(1024 * 1024)))

# Characters handed to the tokenizer per feed() call
READ_CHUNK_SIZE = 64 * 1024

REPORT_TAG = "crashlog"

# Allow-listed element name -> IncomingReport attribute
FIELD_TAGS: Dict[str, str] = {
    "version": "app_version",
    "crashappversion": "crash_app_version",
    "startmemory": "start_memory",
    "endmemory": "end_memory",
    "contact": "contact",
    "log": "log_text",
}

Source = Union[str, bytes, IO]


# =============================================================================
# SAX HANDLER
# =============================================================================

class CrashlogHandler(ContentHandler):
    """Collects field text between start/end events, one report per <crashlog>."""

    def __init__(self, max_field_length: int = MAX_FIELD_LENGTH):
        super().__init__()
        self.max_field_length = max_field_length
        self.reports: List[IncomingReport] = []
        self.dropped = 0
        self._fields: Dict[str, str] = {}
        self._field_tag: Optional[str] = None
        self._chunks: List[str] = []
        self._length = 0

    def startElement(self, name, attrs):
        if name == REPORT_TAG:
            # New report in the stream, forget anything accumulated so far
            self._fields = {}
            self._field_tag = None
        elif name in FIELD_TAGS and self._field_tag is None:
            self._field_tag = name
            self._chunks = []
            self._length = 0

    def characters(self, content):
        if self._field_tag is None:
            return
        self._length += len(content)
        if self._length > self.max_field_length:
            raise ParseError(
                f"<{self._field_tag}> exceeds {self.max_field_length} characters"
            )
        self._chunks.append(content)

    # Only reported by validating parsers, same treatment as text
    ignorableWhitespace = characters

    def endElement(self, name):
        if name == self._field_tag:
            self._fields[FIELD_TAGS[name]] = "".join(self._chunks)
            self._field_tag = None
            self._chunks = []
        elif name == REPORT_TAG:
            report = IncomingReport(**self._fields)
            self._fields = {}
            if report.is_complete:
                self.reports.append(report)
            else:
                self.dropped += 1
                logger.info("Dropping crash report without log text or app version")


# =============================================================================
# PARSER
# =============================================================================

class ReportParser:
    """
    Event-driven parser for crash report submissions.

    Usage:
        parser = ReportParser()
        reports = parser.parse(xmlstring)
    """

    def __init__(self, max_field_length: int = MAX_FIELD_LENGTH, chunk_size: int = READ_CHUNK_SIZE):
        self.max_field_length = max_field_length
        self.chunk_size = chunk_size

    def parse(self, source: Source) -> List[IncomingReport]:
        """
        Parse every complete <crashlog> in the source.

        Args:
            source: Markup as str/bytes, or a readable file-like object

        Returns:
            Complete reports in document order (may be empty)

        Raises:
            ParseError: Malformed markup or a field over max_field_length
        """
        handler = CrashlogHandler(self.max_field_length)
        sax_parser = self._make_sax_parser(handler)

        try:
            for chunk in self._iter_chunks(source):
                sax_parser.feed(chunk)
            sax_parser.close()
        except xml.sax.SAXException as e:
            raise ParseError(f"Malformed crash report: {e}") from e

        return handler.reports

    def _make_sax_parser(self, handler: CrashlogHandler):
        sax_parser = xml.sax.make_parser()
        sax_parser.setFeature(feature_namespaces, False)
        # Untrusted input: never resolve external entities
        sax_parser.setFeature(feature_external_ges, False)
        sax_parser.setFeature(feature_external_pes, False)
        sax_parser.setContentHandler(handler)
        return sax_parser

    def _iter_chunks(self, source: Source):
        if isinstance(source, (str, bytes)):
            for start in range(0, len(source), self.chunk_size):
                yield source[start:start + self.chunk_size]
            return

        while True:
            chunk = source.read(self.chunk_size)
            if not chunk:
                break
            yield chunk


def parse_reports(source: Source, max_field_length: int = MAX_FIELD_LENGTH) -> List[IncomingReport]:
    """Convenience function: parse all complete reports from a submission."""
    return ReportParser(max_field_length=max_field_length).parse(source)


def parse_report(source: Source, max_field_length: int = MAX_FIELD_LENGTH) -> Optional[IncomingReport]:
    """Convenience function: first complete report, or None if it was dropped."""
    reports = parse_reports(source, max_field_length=max_field_length)
    return reports[0] if reports else None
