"""Invoice Automator: invoice documents in, spreadsheet rows out.

The package sends invoice PDFs and images to a vision model, cleans the
returned records per customer layout, and exports them as Excel workbooks
(one per invoice, zipped when there are several).

Architecture
------------
* ``extractor``: vision-model calls (Mistral or OpenRouter) and per-customer prompts.
* ``transformer``: SKU/batch sanitization, quantity reconciliation, normalization,
  and batch-ID checks.
* ``directory``: customer-name to customer-code directory and master-file import.
* ``writer``: mapping schema, flattening, xlsx building, and zip packaging.
* ``session``: concurrent per-document processing with a single-writer store.
* ``store``: JSON persistence of the mapping schema and the customer directory.

Configuration and credentials
-----------------------------
Paths default to the ``data/`` and ``logs/`` trees but respect ``DATA_DIR``,
``LOGS_DIR``, and ``OUTPUT_DIR`` overrides. Extraction uses
``MISTRAL_API_KEY`` or ``OPENROUTER_API_KEY`` depending on
``extraction.provider`` in ``config/config.json``.

Examples
--------
Process two invoices from the Cliniqon Biotech layout:

    >>> invoice-automator process a.pdf b.pdf --profile CLINIQON_BIOTECH

Import a customer master file:

    >>> invoice-automator import-customers customer_master.xlsx
"""

from invoice_automator.errors import ExtractionError, InvoiceAutomatorError, SchemaError
from invoice_automator.models import CustomerProfile

__version__ = "0.1.0"
__all__ = ["CustomerProfile", "ExtractionError", "InvoiceAutomatorError", "SchemaError", "__version__"]


def get_version() -> str:
    """Return the current package version string.

    Returns
    -------
    str
        Semantic version identifier (e.g., ``"0.1.0"``).
    """
    return __version__


__all__.append("get_version")
