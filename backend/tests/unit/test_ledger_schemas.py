"""Unit tests for record, ledger and cost basis Pydantic schemas."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from schemas.cost_basis import AssetAccountingSnapshot, BasisConfidence
from schemas.ledger import ACQUISITION_KINDS, LedgerEvent, LedgerEventKind
from schemas.records import PortfolioAsset, RawTransactionRecord, RawTransferRecord
from tests.fixtures import T0, buy


# --- Raw records ---


class TestRawTransactionRecord:
    def test_camel_case_keys(self):
        record = RawTransactionRecord.model_validate({
            "feeUsd": "1.5",
            "quoteAsset": "USDT",
            "connectionId": "c1",
            "estimatedBasis": True,
        })
        assert record.fee_usd == Decimal("1.5")
        assert record.quote_asset == "USDT"
        assert record.connection_id == "c1"
        assert record.estimated_basis is True

    def test_snake_case_names(self):
        record = RawTransactionRecord(fee_usd=Decimal("2"), source_type="dex")
        assert record.fee_usd == Decimal("2")
        assert record.source_type == "dex"

    def test_all_fields_optional(self):
        record = RawTransactionRecord()
        assert record.id == ""
        assert record.amount is None
        assert record.timestamp is None

    def test_numeric_id_coerced_to_str(self):
        assert RawTransactionRecord.model_validate({"id": 12}).id == "12"

    def test_non_finite_numbers_accepted(self):
        record = RawTransactionRecord.model_validate({"price": "NaN", "amount": "Infinity"})
        assert not record.price.is_finite()
        assert not record.amount.is_finite()

    def test_unparseable_number_rejected(self):
        with pytest.raises(ValidationError):
            RawTransactionRecord.model_validate({"amount": "a lot"})


class TestRawTransferRecord:
    def test_internal_flag_alias(self):
        record = RawTransferRecord.model_validate({"isInternalTransfer": True, "txHash": "0xabc"})
        assert record.is_internal_transfer is True
        assert record.tx_hash == "0xabc"


class TestPortfolioAsset:
    def test_price_change_alias(self):
        asset = PortfolioAsset.model_validate({"symbol": "BTC", "priceChange24h": "-3.2"})
        assert asset.price_change_24h == Decimal("-3.2")

    def test_defaults(self):
        asset = PortfolioAsset(symbol="BTC")
        assert asset.balance == Decimal("0")
        assert asset.value_usd == Decimal("0")
        assert asset.price is None

    def test_symbol_required(self):
        with pytest.raises(ValidationError):
            PortfolioAsset()


# --- Ledger events ---


class TestLedgerEvent:
    def test_frozen(self):
        event = buy("1", "100")
        with pytest.raises(ValidationError):
            event.qty = Decimal("2")

    def test_defaults(self):
        event = LedgerEvent(
            kind=LedgerEventKind.FEE, symbol="BTC", timestamp=T0, qty=Decimal("1")
        )
        assert event.price is None
        assert event.fee_usd is None
        assert event.estimated_basis is False

    def test_kind_from_string(self):
        event = LedgerEvent(kind="TRANSFER_IN", symbol="BTC", timestamp=T0, qty=Decimal("1"))
        assert event.kind == LedgerEventKind.TRANSFER_IN

    def test_acquisition_kinds(self):
        assert ACQUISITION_KINDS == {
            LedgerEventKind.TRADE_BUY,
            LedgerEventKind.TRANSFER_IN,
            LedgerEventKind.INTERNAL_MOVE_IN,
        }


# --- Snapshot ---


class TestAssetAccountingSnapshot:
    def test_json_dump(self):
        snapshot = AssetAccountingSnapshot(
            avg_buy_price_current=Decimal("1"),
            avg_buy_price_lifetime=Decimal("1"),
            avg_sell_price=Decimal("0"),
            cost_basis=Decimal("1"),
            realized_pnl=Decimal("0"),
            unrealized_pnl=Decimal("0"),
            total_fees_usd=Decimal("0"),
            basis_confidence=BasisConfidence.ESTIMATED,
            total_bought=Decimal("1"),
            total_sold=Decimal("0"),
            total_cost=Decimal("1"),
            total_proceeds=Decimal("0"),
            buy_count=1,
            sell_count=0,
            net_position=Decimal("1"),
            first_buy_date=T0,
            last_buy_date=T0,
            last_sell_date=0,
        )
        data = snapshot.model_dump(mode="json")
        assert data["basis_confidence"] == "estimated"
        assert data["cost_basis"] == "1"
        assert data["first_buy_date"] == T0
