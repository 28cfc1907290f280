"""Public API for dbprops.

High-level functions for the editing workflow: select and aggregate a
document group, edit its schema, then save it back document by document.
"""

import logging
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field

from dbprops.config import Config
from dbprops.errors import DocumentReadError, DocumentWriteError
from dbprops.kernel.session import SchemaSession
from dbprops.progress import LoggingProgress, ProgressSink, progress_message
from dbprops.source import DocumentRef, DocumentSource, Selector

logger = logging.getLogger(__name__)


class FailedWrite(BaseModel):
    """A document whose metadata block could not be written."""
    document: str
    index: int  # Position in the selection (0-based)
    error: str


class SaveReport(BaseModel):
    """Stable result model for a save."""
    total: int  # Documents in the selection
    written: List[str] = Field(default_factory=list)  # Paths written, in order
    failed: List[FailedWrite] = Field(default_factory=list)
    aborted: bool = False  # True when the save stopped at a failure

    @property
    def ok(self) -> bool:
        return not self.failed and not self.aborted


class EditingSession:
    """The state of one editing workflow: selected documents plus their schema.

    Created by ``open_session`` and discarded after ``save``. Opening a new
    session never reuses the state of a previous one.
    """

    def __init__(self, selector: Selector, refs: List[DocumentRef], schema: SchemaSession):
        self.selector = selector
        self.refs: Tuple[DocumentRef, ...] = tuple(refs)
        self.schema = schema

    @property
    def can_save(self) -> bool:
        return self.schema.can_save

    def __repr__(self) -> str:
        return f"EditingSession(selector={self.selector!r}, documents={len(self.refs)}, properties={len(self.schema)})"


def open_session(source: DocumentSource, selector: Selector, config: Optional[Config] = None) -> EditingSession:
    """
    Select documents, read their metadata blocks and aggregate them.

    An empty selection yields a session with no properties and no save
    action (``can_save`` is False).
    """
    config = config or Config()
    refs = list(source.list_documents(selector))
    blocks = [source.read_metadata(ref) for ref in refs]
    schema = SchemaSession.from_documents(
        blocks,
        labels=[ref.path for ref in refs],
        reserved_keys=config.reserved_keys,
    )
    logger.info("Opened session on %d documents with %d properties", len(refs), len(schema))
    return EditingSession(selector, refs, schema)


def save(
    session: EditingSession,
    source: DocumentSource,
    progress: Optional[ProgressSink] = None,
    config: Optional[Config] = None,
) -> SaveReport:
    """
    Replay the working schema onto every selected document and write it.

    Documents are processed strictly one at a time in selection order.
    Nothing is retried or rolled back. With ``on_write_error="abort"`` the
    first failure stops the save and raises ``DocumentWriteError`` (earlier
    documents stay written, later ones are untouched). With ``"continue"``
    failures are recorded in the returned report.

    Raises:
        SessionClosedError: The session was already saved.
        DocumentWriteError: A write failed under the abort policy.
    """
    config = config or Config()
    progress = progress or LoggingProgress()
    total = len(session.refs)
    report = SaveReport(total=total)

    try:
        for index, (ref, (_, entries)) in enumerate(zip(session.refs, session.schema.replay())):
            progress.update(progress_message(index + 1, total))
            try:
                written = source.write_metadata(ref, entries)
                error = None if written else "document store reported failure"
            except (OSError, DocumentReadError) as e:
                error = str(e) or type(e).__name__
                cause: Optional[BaseException] = e
            else:
                cause = None

            if error is None:
                report.written.append(ref.path)
                continue

            logger.error("Failed to write %s: %s", ref, error)
            report.failed.append(FailedWrite(document=ref.path, index=index, error=error))
            if config.on_write_error == "abort":
                report.aborted = True
                raise DocumentWriteError(
                    ref, index, f"Failed to write {ref} ({index + 1} of {total}): {error}", report=report
                ) from cause
    finally:
        progress.done()

    logger.info("Saved %d of %d documents (%d failed)", len(report.written), total, len(report.failed))
    return report
