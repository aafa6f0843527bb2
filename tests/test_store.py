"""Tests for JSON persistence of the mapping schema and customer directory."""

from __future__ import annotations

import json
from pathlib import Path

from invoice_automator.models import CustomerMasterEntry, MappingSource
from invoice_automator.store import (
    load_customer_directory,
    load_mapping_schema,
    save_customer_directory,
    save_mapping_schema,
)
from invoice_automator.writer.mapping import add_column, default_mapping, schema_headers


class TestMappingSchemaStore:
    """Tests for mapping schema load/save."""

    def test_missing_file_gives_default(self, tmp_path: Path) -> None:
        """Without a saved schema the default is returned."""
        assert load_mapping_schema(tmp_path / "mapping_schema.json") == default_mapping()

    def test_round_trip(self, tmp_path: Path) -> None:
        """A saved schema loads back identically."""
        path = tmp_path / "mapping_schema.json"
        schema = add_column(default_mapping(), header="Notes", source=MappingSource.STATIC, value="n/a")

        save_mapping_schema(schema, path)
        loaded = load_mapping_schema(path)

        assert schema_headers(loaded)[-1] == "Notes"
        assert loaded == schema

    def test_saved_as_camel_case_list(self, tmp_path: Path) -> None:
        """The file is a JSON list of {id, header, source, value}."""
        path = save_mapping_schema(default_mapping(), tmp_path / "m.json")
        data = json.loads(path.read_text(encoding="utf-8"))

        assert data[0] == {"id": "1", "header": "Order no", "source": "invoice", "value": "referenceNo"}

    def test_corrupt_file_falls_back_to_default(self, tmp_path: Path) -> None:
        """Unreadable or invalid content is ignored."""
        path = tmp_path / "m.json"
        path.write_text("{not json", encoding="utf-8")
        assert load_mapping_schema(path) == default_mapping()

        path.write_text(json.dumps([{"id": "1", "source": "formula"}]), encoding="utf-8")
        assert load_mapping_schema(path) == default_mapping()


class TestCustomerDirectoryStore:
    """Tests for customer directory load/save."""

    def test_missing_file_gives_empty(self, tmp_path: Path) -> None:
        """A fresh install has no customers."""
        assert load_customer_directory(tmp_path / "customer_directory.json") == []

    def test_round_trip(self, tmp_path: Path, directory: list[CustomerMasterEntry]) -> None:
        """Saved entries load back in order."""
        path = save_customer_directory(directory, tmp_path / "nested" / "customer_directory.json")

        assert load_customer_directory(path) == directory
        assert json.loads(path.read_text(encoding="utf-8"))[0] == {
            "customerName": "Acme Pharmacy",
            "customerCode": "C1",
        }

    def test_non_list_file_gives_empty(self, tmp_path: Path) -> None:
        """A JSON object instead of a list is ignored."""
        path = tmp_path / "customer_directory.json"
        path.write_text('{"customerName": "Acme"}', encoding="utf-8")
        assert load_customer_directory(path) == []
