"""Tests for loading record files."""

import json
from decimal import Decimal

import pytest

from services.record_loader import RecordLoadError, load_record_bundle, parse_record_bundle


def _write(tmp_path, payload, name="records.json"):
    path = tmp_path / name
    path.write_text(payload if isinstance(payload, str) else json.dumps(payload))
    return path


class TestParseRecordBundle:
    def test_object_with_both_collections(self):
        bundle = parse_record_bundle({
            "transactions": [{"symbol": "BTC", "side": "buy", "amount": "1", "price": "10"}],
            "transfers": [{"asset": "BTC", "type": "Deposit", "amount": "0.5"}],
        })
        assert len(bundle.transactions) == 1
        assert len(bundle.transfers) == 1
        assert bundle.transactions[0].amount == Decimal("1")

    def test_bare_list_is_transactions(self):
        bundle = parse_record_bundle([{"symbol": "ETH", "side": "sell"}])
        assert len(bundle.transactions) == 1
        assert bundle.transfers == []

    def test_missing_collections_default_empty(self):
        bundle = parse_record_bundle({})
        assert bundle.transactions == []
        assert bundle.transfers == []

    def test_unknown_fields_ignored(self):
        bundle = parse_record_bundle([{"symbol": "BTC", "someVendorField": 3}])
        assert bundle.transactions[0].symbol == "BTC"

    @pytest.mark.parametrize("payload", ["text", 42, None])
    def test_wrong_top_level_type(self, payload):
        with pytest.raises(RecordLoadError, match="expected an object or a list"):
            parse_record_bundle(payload, "data.json")

    def test_invalid_field_wrapped(self):
        with pytest.raises(RecordLoadError, match="invalid record field") as exc_info:
            parse_record_bundle({"transactions": [{"amount": "lots"}]}, "bad.json")
        assert exc_info.value.path == "bad.json"

    def test_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_record_bundle("nope")


class TestLoadRecordBundle:
    def test_loads_file(self, tmp_path):
        path = _write(tmp_path, {"transactions": [{"symbol": "BTC", "side": "buy"}]})
        bundle = load_record_bundle(path)
        assert bundle.transactions[0].side == "buy"

    def test_accepts_str_path(self, tmp_path):
        path = _write(tmp_path, [])
        assert load_record_bundle(str(path)).transactions == []

    def test_missing_file(self, tmp_path):
        missing = tmp_path / "missing.json"
        with pytest.raises(RecordLoadError, match="cannot read file") as exc_info:
            load_record_bundle(missing)
        assert exc_info.value.path == str(missing)

    def test_invalid_json_reports_position(self, tmp_path):
        path = _write(tmp_path, '{"transactions": [\n  {"symbol": }\n]}')
        with pytest.raises(RecordLoadError, match="invalid JSON at line 2"):
            load_record_bundle(path)

    def test_logs_counts(self, tmp_path, caplog):
        path = _write(tmp_path, {"transactions": [{}, {}], "transfers": [{}]})
        with caplog.at_level("INFO", logger="services.record_loader"):
            load_record_bundle(path)
        assert "Loaded 2 transactions and 1 transfers" in caplog.text
