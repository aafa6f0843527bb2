"""Writer module: mapping schema, Excel serialization, and download packaging.

Single invoices download as ``<reference>.xlsx``; batches download as
``invoices_archive_<YYYY-MM-DD>.zip`` with one workbook per invoice.
"""

from invoice_automator.writer.archive import (
    ArchiveDownload,
    DownloadFile,
    build_download,
    export_invoice,
    invoice_filename_base,
    sanitize_filename,
    unique_filename,
    write_download,
)
from invoice_automator.writer.mapping import (
    DEFAULT_MAPPING,
    add_column,
    default_mapping,
    flatten,
    move_column,
    remove_column,
    resolve,
    resolve_cell,
    schema_headers,
    update_column,
)
from invoice_automator.writer.workbook import invoices_to_xlsx, rows_to_xlsx

__all__ = [
    # Mapping schema
    "DEFAULT_MAPPING",
    "add_column",
    "default_mapping",
    "flatten",
    "move_column",
    "remove_column",
    "resolve",
    "resolve_cell",
    "schema_headers",
    "update_column",
    # Workbook
    "invoices_to_xlsx",
    "rows_to_xlsx",
    # Downloads
    "ArchiveDownload",
    "DownloadFile",
    "build_download",
    "export_invoice",
    "invoice_filename_base",
    "sanitize_filename",
    "unique_filename",
    "write_download",
]
