"""Download packaging: per-invoice filenames and multi-invoice zip archives.

A single invoice downloads as one workbook named after its reference number.
Several invoices download as one zip holding a workbook per invoice, named
``invoices_archive_<YYYY-MM-DD>.zip``.
"""

from __future__ import annotations

import io
import re
import zipfile
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from pathlib import Path
from typing import TYPE_CHECKING

from invoice_automator.config import OUTPUT_DIR, get_export_config, setup_logging
from invoice_automator.writer.workbook import XLSX_MEDIA_TYPE, invoices_to_xlsx

if TYPE_CHECKING:
    from collections.abc import Sequence

    from invoice_automator.models import InvoiceData, MappingField

logger = setup_logging(__name__)

__all__ = [
    "ArchiveDownload",
    "DownloadFile",
    "build_download",
    "export_invoice",
    "invoice_filename_base",
    "sanitize_filename",
    "unique_filename",
    "write_download",
]

PLACEHOLDER_NAME = "invoice"
ZIP_MEDIA_TYPE = "application/zip"

_UNSAFE_FILENAME_RE = re.compile(r"[^a-z0-9_ -]", re.IGNORECASE)


@dataclass
class DownloadFile:
    """One named byte stream."""

    filename: str
    content: bytes
    media_type: str = XLSX_MEDIA_TYPE


@dataclass
class ArchiveDownload:
    """A zip archive and the workbooks bundled inside it."""

    filename: str
    content: bytes
    entries: list[DownloadFile] = field(default_factory=list)
    media_type: str = ZIP_MEDIA_TYPE


def sanitize_filename(text: str) -> str:
    """Replace every character outside ``[a-z0-9_ -]`` (any case) with ``_``."""
    return _UNSAFE_FILENAME_RE.sub("_", text or "")


def invoice_filename_base(invoice: InvoiceData, index: int | None = None) -> str:
    """Return the filename stem for ``invoice``.

    Parameters
    ----------
    invoice
        Invoice whose reference number names the file.
    index
        Zero-based position in a batch. When given, the placeholder used for
        an empty reference includes ``index + 1`` so unnamed invoices stay
        distinct.
    """
    safe = sanitize_filename(invoice.reference_no)
    if safe:
        return safe
    return PLACEHOLDER_NAME if index is None else f"{PLACEHOLDER_NAME}_{index + 1}"


def unique_filename(stem: str, extension: str, taken: set[str]) -> str:
    """Return ``stem + extension``, adding ``_1``, ``_2``, ... until not in ``taken``."""
    filename = f"{stem}{extension}"
    counter = 1
    while filename in taken:
        filename = f"{stem}_{counter}{extension}"
        counter += 1
    return filename


def _workbook_extension() -> str:
    return get_export_config().get("workbook_extension", ".xlsx")


def export_invoice(invoice: InvoiceData, schema: Sequence[MappingField]) -> DownloadFile:
    """Build the single-workbook download for one invoice."""
    filename = f"{invoice_filename_base(invoice)}{_workbook_extension()}"
    return DownloadFile(filename=filename, content=invoices_to_xlsx([invoice], schema))


def _archive_filename(today: date | None) -> str:
    day = today or datetime.now(UTC).date()
    prefix = get_export_config().get("archive_prefix", "invoices_archive")
    return f"{prefix}_{day.isoformat()}.zip"


def build_download(
    invoices: Sequence[InvoiceData],
    schema: Sequence[MappingField],
    today: date | None = None,
) -> DownloadFile | ArchiveDownload:
    """Package invoices for download.

    Parameters
    ----------
    invoices
        Normalized invoices; read only.
    schema
        Output columns applied to each invoice independently.
    today
        Date stamped on the archive name; defaults to the current UTC date.

    Returns
    -------
    DownloadFile | ArchiveDownload
        One workbook for a single invoice, otherwise a zip archive whose
        entries have collision-free names.

    Raises
    ------
    ValueError
        If ``invoices`` is empty.
    """
    if not invoices:
        msg = "No invoices to export"
        raise ValueError(msg)

    if len(invoices) == 1:
        download = export_invoice(invoices[0], schema)
        logger.info("Built workbook %s", download.filename)
        return download

    extension = _workbook_extension()
    taken: set[str] = set()
    entries: list[DownloadFile] = []
    for index, invoice in enumerate(invoices):
        filename = unique_filename(invoice_filename_base(invoice, index), extension, taken)
        taken.add(filename)
        entries.append(DownloadFile(filename=filename, content=invoices_to_xlsx([invoice], schema)))

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for entry in entries:
            zf.writestr(entry.filename, entry.content)

    archive = ArchiveDownload(filename=_archive_filename(today), content=buffer.getvalue(), entries=entries)
    logger.info("Built archive %s with %s workbooks", archive.filename, len(entries))
    return archive


def write_download(download: DownloadFile | ArchiveDownload, output_dir: Path | None = None) -> Path:
    """Write a download to ``output_dir`` (default ``OUTPUT_DIR``) and return its path."""
    save_dir = output_dir if output_dir is not None else OUTPUT_DIR
    save_dir.mkdir(parents=True, exist_ok=True)

    filepath = save_dir / download.filename
    filepath.write_bytes(download.content)

    logger.info("Saved download: %s", filepath)
    return filepath
