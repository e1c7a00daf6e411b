from __future__ import annotations

from decimal import Decimal

from statement_import.ingest.amounts import ofx_date_to_iso, parse_amount
from statement_import.ingest.ofx import parse_ofx, parse_ofx_block, split_blocks

from tests.helpers.statements import MIXED_OFX, ofx_block, ofx_document


def test_mixed_statement_keeps_order_and_drops_malformed_block():
    result = parse_ofx(MIXED_OFX)

    assert result.dropped == 1
    assert [tx.id for tx in result.transactions] == ["ofx-0", "ofx-1", "ofx-2", "ofx-3", "ofx-5"]
    assert [tx.date for tx in result.transactions] == [
        "2024-01-05",
        "2024-01-10",
        "2024-01-15",
        "2024-01-20",
        "2024-02-01",
    ]
    assert result.transactions[3].amount == Decimal("-1000.00")
    assert all(tx.source == "ofx" for tx in result.transactions)


def test_name_falls_back_to_memo():
    result = parse_ofx(ofx_document(ofx_block(dtposted="20240105", trnamt="-1", memo="Padaria")))

    (tx,) = result.transactions
    assert tx.description == "Padaria"
    assert tx.memo == "Padaria"


def test_name_and_memo_are_kept_separately():
    result = parse_ofx(
        ofx_document(
            ofx_block(dtposted="20240105", trnamt="-1", name="PIX ENVIADO", memo="Fulano")
        )
    )

    (tx,) = result.transactions
    assert tx.description == "PIX ENVIADO"
    assert tx.memo == "Fulano"


def test_blank_memo_is_none():
    tx = parse_ofx_block("<DTPOSTED>20240105<TRNAMT>10<NAME>Deposito<MEMO>", 0)

    assert tx is not None
    assert tx.memo is None


def test_blocks_missing_fields_are_dropped():
    doc = ofx_document(
        ofx_block(dtposted="", trnamt="-10", name="No date"),
        ofx_block(dtposted="20240105", trnamt="abc", name="Bad amount"),
        ofx_block(dtposted="20240105", trnamt="-10"),
        ofx_block(dtposted="20240105", trnamt="-10", name="", memo=""),
        ofx_block(dtposted="20241332", trnamt="-10", name="Impossible date"),
    )

    result = parse_ofx(doc)

    assert result.transactions == ()
    assert result.dropped == 5


def test_comma_decimal_amount_and_timestamped_date():
    tx = parse_ofx_block(
        "<DTPOSTED>20240105120000[-3:BRT]\n<TRNAMT>-150,00\n<NAME>Aplicacao RDB\n", 7
    )

    assert tx is not None
    assert tx.id == "ofx-7"
    assert tx.date == "2024-01-05"
    assert tx.amount == Decimal("-150.00")


def test_xml_style_closed_tags_and_entities():
    block = (
        "<DTPOSTED>20240301</DTPOSTED><TRNAMT>-42.10</TRNAMT>"
        "<NAME>Padaria P&amp;B</NAME><MEMO>Cafe &lt;manha&gt;</MEMO>"
    )

    tx = parse_ofx_block(block, 0)

    assert tx is not None
    assert tx.description == "Padaria P&B"
    assert tx.memo == "Cafe <manha>"
    assert tx.amount == Decimal("-42.10")


def test_split_blocks_stops_at_closing_tag():
    blocks = split_blocks(MIXED_OFX)

    assert len(blocks) == 6
    assert all("LEDGERBAL" not in b for b in blocks)


def test_document_without_transactions_is_empty():
    result = parse_ofx(ofx_document())

    assert len(result) == 0
    assert result.dropped == 0


def test_ofx_date_to_iso():
    assert ofx_date_to_iso("20240105") == "2024-01-05"
    assert ofx_date_to_iso("20240105120000.000[-3:BRT]") == "2024-01-05"
    assert ofx_date_to_iso("2024010") is None
    assert ofx_date_to_iso("20240230") is None
    assert ofx_date_to_iso(None) is None


def test_parse_amount_locale_variants():
    assert parse_amount("1.234,56") == Decimal("1234.56")
    assert parse_amount("-150,00") == Decimal("-150.00")
    assert parse_amount("R$ 1.000,00") == Decimal("1000.00")
    assert parse_amount("-R$ 15,90") == Decimal("-15.90")
    assert parse_amount("(12,34)") == Decimal("-12.34")
    assert parse_amount("150,00-") == Decimal("-150.00")
    assert parse_amount("1.234.567") == Decimal("1234567")
    assert parse_amount("+7.5") == Decimal("7.5")


def test_parse_amount_rejects_garbage_and_non_finite():
    for raw in (None, "", "   ", "abc", "NaN", "Infinity", "-inf", "1,2,3"):
        assert parse_amount(raw) is None, raw


def test_parse_amount_accepts_only_digits_and_separators():
    for raw in ("1e30", "1E+5", "-2e-3", "1_000", "0x10", "12,5a"):
        assert parse_amount(raw) is None, raw
    assert parse_amount("1000000000000000000000000000000") == Decimal(10) ** 30
