"""Tests for the command line entrypoint with extraction and persistence mocked."""

from __future__ import annotations

import json
from collections.abc import Iterable, Iterator
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from invoice_automator.errors import ExtractionError
from invoice_automator.main import choose_profile, main
from invoice_automator.models import CustomerMasterEntry, CustomerProfile, InvoiceData, LineItem, MappingSource
from invoice_automator.session import InvoiceSession
from invoice_automator.writer.mapping import default_mapping


def fake_extract(
    document: bytes,
    media_type: str,
    profile: CustomerProfile,
    directory: Iterable[CustomerMasterEntry],
) -> InvoiceData:
    """Invoice named after the document content; 'broken' documents fail."""
    text = document.decode()
    if text == "broken":
        msg = "Could not parse invoice"
        raise ExtractionError(msg)
    return InvoiceData(reference_no=text, line_items=[LineItem(sku="A1", batch_id="L 1")])


@pytest.fixture
def mocked_cli(tmp_path: Path) -> Iterator[SimpleNamespace]:
    """Patch persistence and extraction used by the CLI."""
    with (
        patch(
            "invoice_automator.main.InvoiceSession",
            side_effect=lambda max_workers: InvoiceSession(extract_fn=fake_extract, max_workers=max_workers),
        ),
        patch("invoice_automator.main.load_customer_directory", return_value=[]) as load_directory,
        patch("invoice_automator.main.save_customer_directory") as save_directory,
        patch("invoice_automator.main.load_mapping_schema", return_value=default_mapping()),
        patch("invoice_automator.main.save_mapping_schema") as save_schema,
    ):
        yield SimpleNamespace(
            out=tmp_path / "out",
            load_directory=load_directory,
            save_directory=save_directory,
            save_schema=save_schema,
        )


def _write(path: Path, content: str) -> Path:
    path.write_text(content, encoding="utf-8")
    return path


class TestProcessCommand:
    """Tests for 'process'."""

    def test_single_document(self, tmp_path: Path, mocked_cli: SimpleNamespace) -> None:
        """One document writes one workbook."""
        doc = _write(tmp_path / "a.png", "INV-1")

        code = main(["process", str(doc), "--profile", "SLIM_HEALTHCARE", "--output-dir", str(mocked_cli.out)])

        assert code == 0
        assert (mocked_cli.out / "INV-1.xlsx").exists()

    def test_batch_writes_archive_and_json(
        self,
        tmp_path: Path,
        mocked_cli: SimpleNamespace,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Several documents write a zip; --json also saves the invoices."""
        docs = [_write(tmp_path / "a.pdf", "INV-1"), _write(tmp_path / "b.jpg", "INV-2")]

        code = main(["process", *map(str, docs), "-p", "CLINIQON_BIOTECH", "-o", str(mocked_cli.out), "--json"])

        assert code == 0
        assert len(list(mocked_cli.out.glob("invoices_archive_*.zip"))) == 1
        saved = json.loads((mocked_cli.out / "invoices.json").read_text(encoding="utf-8"))
        assert sorted(item["referenceNo"] for item in saved) == ["INV-1", "INV-2"]
        assert "Invalid Batch ID" in capsys.readouterr().out

    def test_partial_failure_still_succeeds(self, tmp_path: Path, mocked_cli: SimpleNamespace) -> None:
        """Failed documents are reported; the rest are exported."""
        docs = [_write(tmp_path / "a.png", "INV-1"), _write(tmp_path / "b.png", "broken")]

        assert main(["process", *map(str, docs), "-p", "SLIM_HEALTHCARE", "-o", str(mocked_cli.out)]) == 0
        assert (mocked_cli.out / "INV-1.xlsx").exists()

    def test_all_failed(self, tmp_path: Path, mocked_cli: SimpleNamespace) -> None:
        """Exit code is 1 when nothing was processed."""
        doc = _write(tmp_path / "a.png", "broken")
        assert main(["process", str(doc), "-p", "SLIM_HEALTHCARE", "-o", str(mocked_cli.out)]) == 1

    def test_unsupported_files_skipped(self, tmp_path: Path, mocked_cli: SimpleNamespace) -> None:
        """Nothing to do when every file is unsupported."""
        doc = _write(tmp_path / "notes.txt", "INV-1")
        assert main(["process", str(doc), "-p", "SLIM_HEALTHCARE"]) == 1


class TestExportCommand:
    """Tests for 'export'."""

    def test_rebuilds_download(self, tmp_path: Path, mocked_cli: SimpleNamespace) -> None:
        """Saved invoices are exported again."""
        source = tmp_path / "invoices.json"
        source.write_text(json.dumps([InvoiceData(reference_no="X-1", line_items=[LineItem()]).to_dict()]), encoding="utf-8")

        assert main(["export", str(source), "-o", str(mocked_cli.out)]) == 0
        assert (mocked_cli.out / "X-1.xlsx").exists()

    def test_invalid_json(self, tmp_path: Path, mocked_cli: SimpleNamespace) -> None:
        """Unreadable input fails with exit code 1."""
        source = _write(tmp_path / "invoices.json", "{oops")
        assert main(["export", str(source)]) == 1


class TestImportCustomersCommand:
    """Tests for 'import-customers'."""

    def test_merges_and_saves(self, tmp_path: Path, mocked_cli: SimpleNamespace, capsys: pytest.CaptureFixture[str]) -> None:
        """A valid file is merged and persisted."""
        mocked_cli.load_directory.return_value = [CustomerMasterEntry("Acme", "C0")]
        source = _write(tmp_path / "master.csv", "Customer Name,Customer Code\nAcme,C1\nBeta,B1\n")

        assert main(["import-customers", str(source)]) == 0

        saved = mocked_cli.save_directory.call_args.args[0]
        assert saved == [CustomerMasterEntry("Acme", "C1"), CustomerMasterEntry("Beta", "B1")]
        assert "Added: 1, Updated: 1" in capsys.readouterr().out

    def test_schema_error_leaves_directory(self, tmp_path: Path, mocked_cli: SimpleNamespace) -> None:
        """A rejected file exits 1 and saves nothing."""
        source = _write(tmp_path / "master.csv", "Foo,Bar\n1,2\n")

        assert main(["import-customers", str(source)]) == 1
        mocked_cli.save_directory.assert_not_called()


class TestMappingCommand:
    """Tests for 'mapping'."""

    def test_show(self, mocked_cli: SimpleNamespace, capsys: pytest.CaptureFixture[str]) -> None:
        """The schema is printed in order."""
        assert main(["mapping", "show"]) == 0
        out = capsys.readouterr().out
        assert out.index("Order no") < out.index("Quantity2")

    def test_reset(self, mocked_cli: SimpleNamespace) -> None:
        """Reset saves the default schema."""
        assert main(["mapping", "reset"]) == 0
        mocked_cli.save_schema.assert_called_once_with(default_mapping())

    def test_add_static_column(self, mocked_cli: SimpleNamespace) -> None:
        """A new column is appended and saved."""
        assert main(["mapping", "add", "Warehouse", "--value", "WH1"]) == 0

        saved = mocked_cli.save_schema.call_args.args[0]
        assert len(saved) == 13
        assert (saved[-1].header, saved[-1].source, saved[-1].value) == ("Warehouse", MappingSource.STATIC, "WH1")

    def test_add_item_column(self, mocked_cli: SimpleNamespace) -> None:
        """Item columns take a line-item key."""
        assert main(["mapping", "add", "Description", "-s", "item", "-v", "description"]) == 0
        assert mocked_cli.save_schema.call_args.args[0][-1].source == MappingSource.ITEM

    def test_add_rejects_unknown_field_key(self, mocked_cli: SimpleNamespace) -> None:
        """Invoice/item columns must name a known field."""
        assert main(["mapping", "add", "Colour", "-s", "item", "-v", "colour"]) == 1
        mocked_cli.save_schema.assert_not_called()

    def test_remove_column(self, mocked_cli: SimpleNamespace) -> None:
        """Columns are removed by their printed position."""
        assert main(["mapping", "remove", "4"]) == 0

        headers = [column.header for column in mocked_cli.save_schema.call_args.args[0]]
        assert "Quantity" not in headers
        assert len(headers) == 11

    def test_update_column(self, mocked_cli: SimpleNamespace) -> None:
        """Only the given attributes change."""
        assert main(["mapping", "update", "6", "--value", "USD"]) == 0

        column = mocked_cli.save_schema.call_args.args[0][5]
        assert (column.header, column.value) == ("Currency code", "USD")

    def test_update_switches_source(self, mocked_cli: SimpleNamespace) -> None:
        """A static column can be pointed at a line-item field."""
        assert main(["mapping", "update", "4", "-s", "item", "-v", "quantity"]) == 0

        column = mocked_cli.save_schema.call_args.args[0][3]
        assert (column.source, column.value) == (MappingSource.ITEM, "quantity")

    def test_update_without_changes(self, mocked_cli: SimpleNamespace) -> None:
        """An update with no attributes is rejected."""
        assert main(["mapping", "update", "6"]) == 1
        mocked_cli.save_schema.assert_not_called()

    def test_move_column(self, mocked_cli: SimpleNamespace) -> None:
        """A column moves to the requested position."""
        assert main(["mapping", "move", "11", "2"]) == 0

        headers = [column.header for column in mocked_cli.save_schema.call_args.args[0]]
        assert headers[:3] == ["Order no", "Lot no.", "Code"]

    @pytest.mark.parametrize("argv", [["remove", "0"], ["remove", "99"], ["move", "13", "1"]])
    def test_position_out_of_range(self, mocked_cli: SimpleNamespace, argv: list[str]) -> None:
        """Unknown positions fail without saving."""
        assert main(["mapping", *argv]) == 1
        mocked_cli.save_schema.assert_not_called()


class TestCustomersCommand:
    """Tests for 'customers'."""

    def test_list(self, mocked_cli: SimpleNamespace, capsys: pytest.CaptureFixture[str]) -> None:
        """Saved customers are printed by name."""
        mocked_cli.load_directory.return_value = [CustomerMasterEntry("Beta", "B1"), CustomerMasterEntry("Acme", "C1")]

        assert main(["customers", "list"]) == 0

        out = capsys.readouterr().out
        assert out.index("Acme") < out.index("Beta")
        assert "C1" in out

    def test_list_empty(self, mocked_cli: SimpleNamespace, capsys: pytest.CaptureFixture[str]) -> None:
        """An empty directory is reported."""
        assert main(["customers", "list"]) == 0
        assert "empty" in capsys.readouterr().out

    def test_add(self, mocked_cli: SimpleNamespace) -> None:
        """A trimmed entry is saved."""
        assert main(["customers", "add", " Acme ", "C1 "]) == 0
        mocked_cli.save_directory.assert_called_once_with([CustomerMasterEntry("Acme", "C1")])

    def test_add_updates_existing_code(self, mocked_cli: SimpleNamespace) -> None:
        """Adding a known name (any case) replaces its code."""
        mocked_cli.load_directory.return_value = [CustomerMasterEntry("Acme", "C0")]

        assert main(["customers", "add", "ACME", "C9"]) == 0

        saved = mocked_cli.save_directory.call_args.args[0]
        assert [entry.customer_code for entry in saved] == ["C9"]

    def test_add_blank_code(self, mocked_cli: SimpleNamespace) -> None:
        """Both name and code are required."""
        assert main(["customers", "add", "Acme", " "]) == 1
        mocked_cli.save_directory.assert_not_called()

    def test_remove(self, mocked_cli: SimpleNamespace) -> None:
        """Customers are removed case-insensitively."""
        mocked_cli.load_directory.return_value = [CustomerMasterEntry("Acme", "C1"), CustomerMasterEntry("Beta", "B1")]

        assert main(["customers", "remove", "acme"]) == 0
        mocked_cli.save_directory.assert_called_once_with([CustomerMasterEntry("Beta", "B1")])

    def test_remove_unknown(self, mocked_cli: SimpleNamespace) -> None:
        """Removing a missing customer fails without saving."""
        assert main(["customers", "remove", "Nobody"]) == 1
        mocked_cli.save_directory.assert_not_called()


class TestChooseProfile:
    """Tests for profile selection."""

    def test_flag_value(self) -> None:
        """An explicit value is used as is."""
        assert choose_profile("CLINIQON_BIOTECH") == CustomerProfile.CLINIQON_BIOTECH

    def test_non_interactive_default(self) -> None:
        """Without a terminal the default profile is used."""
        with patch("invoice_automator.main.sys.stdin", SimpleNamespace(isatty=lambda: False)):
            assert choose_profile(None) == CustomerProfile.SLIM_HEALTHCARE

    def test_interactive_prompt(self) -> None:
        """On a terminal the user picks from the profiles."""
        prompt = MagicMock()
        prompt.ask.return_value = CustomerProfile.CLINIQON_BIOTECH

        with (
            patch("invoice_automator.main.sys.stdin", SimpleNamespace(isatty=lambda: True)),
            patch("invoice_automator.main.questionary.select", return_value=prompt) as mock_select,
        ):
            assert choose_profile(None) == CustomerProfile.CLINIQON_BIOTECH

        assert len(mock_select.call_args.kwargs["choices"]) == len(CustomerProfile)
