"""Small statement fixtures shared by the parser, CLI and end-to-end tests."""

from __future__ import annotations

from pathlib import Path

OFX_HEADER = """OFXHEADER:100
DATA:OFXSGML
VERSION:102
SECURITY:NONE
ENCODING:USASCII
CHARSET:1252
COMPRESSION:NONE
OLDFILEUID:NONE
NEWFILEUID:NONE

<OFX>
<BANKMSGSRSV1>
<STMTTRNRS>
<STMTRS>
<CURDEF>BRL
<BANKTRANLIST>
<DTSTART>20240101000000[-3:BRT]
<DTEND>20240229000000[-3:BRT]
"""

OFX_FOOTER = """</BANKTRANLIST>
<LEDGERBAL>
<BALAMT>1234.56
<DTASOF>20240229000000[-3:BRT]
</LEDGERBAL>
</STMTRS>
</STMTTRNRS>
</BANKMSGSRSV1>
</OFX>
"""


def ofx_block(
    *,
    dtposted: str,
    trnamt: str,
    name: str | None = None,
    memo: str | None = None,
    fitid: str = "1",
) -> str:
    lines = ["<STMTTRN>", "<TRNTYPE>OTHER", f"<DTPOSTED>{dtposted}", f"<TRNAMT>{trnamt}"]
    lines.append(f"<FITID>{fitid}")
    if name is not None:
        lines.append(f"<NAME>{name}")
    if memo is not None:
        lines.append(f"<MEMO>{memo}")
    lines.append("</STMTTRN>")
    return "\n".join(lines) + "\n"


def ofx_document(*blocks: str) -> str:
    return OFX_HEADER + "".join(blocks) + OFX_FOOTER


# Mixed statement: expense (memo only), salary, pix out, investment, a broken
# block, and an investment yield in the next month.
MIXED_OFX = ofx_document(
    ofx_block(dtposted="20240105120000[-3:BRT]", trnamt="-52.30", memo="Supermercado Dia", fitid="1"),
    ofx_block(dtposted="20240110", trnamt="3500.00", name="Salario ACME", fitid="2"),
    ofx_block(
        dtposted="20240115",
        trnamt="-200.00",
        memo="Transferência enviada pelo Pix - Fulano de Tal",
        fitid="3",
    ),
    ofx_block(dtposted="20240120", trnamt="-1000,00", name="Aplicação RDB", fitid="4"),
    ofx_block(dtposted="2024XX01", trnamt="-9.99", name="Broken date", fitid="5"),
    ofx_block(dtposted="20240201", trnamt="15.20", memo="Rendimento RDB", fitid="6"),
)

SEMICOLON_CSV = (
    "Data;Valor;Descricao;Tipo\n"
    "05/01/2024;200,50;Salario;Credito\n"
    "06/01/2024;45,90;Padaria Pao Quente;Debito\n"
    "2024-01-07;-30,00;Uber trip;\n"
    "31/02/2024;10,00;Impossible date;\n"
    "08-01-2024;(12,34);Tarifa mensal;\n"
)


def write_statement(tmp_path: Path, name: str, content: str, *, encoding: str = "utf-8") -> Path:
    path = tmp_path / name
    path.write_bytes(content.encode(encoding))
    return path
