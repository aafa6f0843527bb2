"""Concurrent document processing with a single-writer invoice store.

Documents are extracted on a thread pool. Workers never touch session state:
each completion (an :class:`InvoiceData` or a failure reason) is posted to a
queue, and :meth:`InvoiceSession.apply_pending` on the owning thread applies
them one by one. Batches may overlap; a late completion from an earlier batch
is applied like any other.

Example
-------
>>> with InvoiceSession() as session:
...     ids = session.submit(documents, CustomerProfile.CLINIQON_BIOTECH, directory)
...     session.wait(ids)
...     invoices = list(session.invoices)
"""

from __future__ import annotations

import queue
import uuid
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import wait as wait_futures
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Protocol

from invoice_automator.config import setup_logging
from invoice_automator.extractor.extraction import process_document
from invoice_automator.models import (
    DEFAULT_PROFILE,
    CustomerMasterEntry,
    CustomerProfile,
    FileProcessingStatus,
    InvoiceData,
    ProcessStatus,
)

if TYPE_CHECKING:
    from collections.abc import Iterable
    from concurrent.futures import Future

logger = setup_logging(__name__)

DEFAULT_MAX_WORKERS = 4


class ExtractFn(Protocol):
    def __call__(
        self,
        document: bytes,
        media_type: str,
        profile: CustomerProfile,
        directory: Iterable[CustomerMasterEntry],
    ) -> InvoiceData: ...


@dataclass(frozen=True)
class Document:
    """One uploaded file."""

    name: str
    content: bytes
    media_type: str


@dataclass(frozen=True)
class _Completion:
    file_id: str
    invoice: InvoiceData | None = None
    error: str | None = None


class InvoiceSession:
    """Holds submitted documents, their statuses, and the extracted invoices.

    Parameters
    ----------
    extract_fn
        Called on a worker thread as ``extract_fn(content, media_type,
        profile, directory)``; defaults to :func:`process_document`.
    max_workers
        Thread pool size.

    Attributes
    ----------
    invoices : list[InvoiceData]
        Successfully processed invoices in completion order.
    statuses : dict[str, FileProcessingStatus]
        Per-document status in submission order.
    """

    def __init__(self, extract_fn: ExtractFn = process_document, max_workers: int = DEFAULT_MAX_WORKERS) -> None:
        self._extract_fn = extract_fn
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="invoice")
        self._events: queue.Queue[_Completion] = queue.Queue()
        self._futures: dict[str, Future[None]] = {}
        self.invoices: list[InvoiceData] = []
        self.statuses: dict[str, FileProcessingStatus] = {}

    def __enter__(self) -> InvoiceSession:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # =========================================================================
    # Processing
    # =========================================================================

    def submit(
        self,
        documents: Iterable[Document],
        profile: CustomerProfile = DEFAULT_PROFILE,
        directory: Iterable[CustomerMasterEntry] = (),
    ) -> list[str]:
        """Queue documents for extraction and return their ids.

        The customer directory is snapshotted here, so later directory edits
        do not affect documents already submitted.
        """
        snapshot = tuple(CustomerMasterEntry(e.customer_name, e.customer_code) for e in directory)
        ids: list[str] = []
        for document in documents:
            file_id = uuid.uuid4().hex[:9]
            status = FileProcessingStatus(id=file_id, name=document.name)
            self.statuses[file_id] = status
            self._futures[file_id] = self._executor.submit(self._run, file_id, document, profile, snapshot)
            status.status = ProcessStatus.PROCESSING
            ids.append(file_id)

        logger.info("Submitted %s document(s) as %s", len(ids), profile.label)
        return ids

    def _run(
        self,
        file_id: str,
        document: Document,
        profile: CustomerProfile,
        directory: tuple[CustomerMasterEntry, ...],
    ) -> None:
        try:
            invoice = self._extract_fn(document.content, document.media_type, profile, directory)
        except Exception as e:
            logger.warning("Failed to process %s: %s", document.name, e)
            self._events.put(_Completion(file_id, error=str(e) or type(e).__name__))
        else:
            self._events.put(_Completion(file_id, invoice=invoice))

    def apply_pending(self) -> int:
        """Apply every queued completion and return how many were applied."""
        applied = 0
        while True:
            try:
                event = self._events.get_nowait()
            except queue.Empty:
                return applied
            self._apply(event)
            applied += 1

    def _apply(self, event: _Completion) -> None:
        self._futures.pop(event.file_id, None)
        status = self.statuses.get(event.file_id)
        if status is None:
            logger.debug("Dropping completion for cleared document %s", event.file_id)
            return

        if event.invoice is not None:
            status.status = ProcessStatus.COMPLETED
            status.result = event.invoice
            self.invoices.append(event.invoice)
            logger.info("Processed %s (%s line items)", status.name, len(event.invoice.line_items))
        else:
            status.status = ProcessStatus.ERROR
            status.message = event.error

    def wait(self, ids: Iterable[str] | None = None, timeout: float | None = None) -> list[FileProcessingStatus]:
        """Block until the given documents (default: all) finish, then apply completions.

        Returns
        -------
        list[FileProcessingStatus]
            Statuses of the waited-on documents, in the order given.
        """
        wanted = list(ids) if ids is not None else list(self.statuses)
        wait_futures([self._futures[i] for i in wanted if i in self._futures], timeout=timeout)
        self.apply_pending()
        return [self.statuses[i] for i in wanted if i in self.statuses]

    # =========================================================================
    # User edits
    # =========================================================================

    def update_invoice(self, index: int, **changes: Any) -> InvoiceData:
        """Replace invoice-level fields, e.g. ``update_invoice(0, customer_code="C1")``."""
        updated = replace(self.invoices[index], **changes)
        self.invoices[index] = updated
        return updated

    def update_line_item(self, invoice_index: int, item_index: int, **changes: Any) -> InvoiceData:
        """Replace fields of one line item. No re-sanitization or reconciliation runs."""
        invoice = self.invoices[invoice_index]
        items = list(invoice.line_items)
        items[item_index] = replace(items[item_index], **changes)
        return self.update_invoice(invoice_index, line_items=items)

    def remove_invoice(self, index: int) -> InvoiceData:
        return self.invoices.pop(index)

    def clear(self) -> None:
        """Drop all invoices and statuses. Completions still in flight are discarded."""
        self.apply_pending()
        self.invoices.clear()
        self.statuses.clear()
        self._futures.clear()

    # =========================================================================
    # Reporting
    # =========================================================================

    def failed(self) -> list[FileProcessingStatus]:
        return [s for s in self.statuses.values() if s.status == ProcessStatus.ERROR]

    def summary(self) -> dict[str, int]:
        """Count documents per status."""
        counts = {str(status): 0 for status in ProcessStatus}
        for status in self.statuses.values():
            counts[str(status.status)] += 1
        return counts

    def close(self) -> None:
        self._executor.shutdown(wait=True)
