from __future__ import annotations

import logging
from pathlib import Path

import pytest

from conferencia.core.config import Settings
from conferencia.domain.errors import ComparisonError, MalformedDocument
from conferencia.domain.models import LineStatus, MatchTag
from conferencia.services.comparison_service import ComparisonService


@pytest.fixture
def service() -> ComparisonService:
    return ComparisonService(Settings(_env_file=None))


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("30", 30.0),
        ("12,5", 12.5),
        (25, 25.0),
        (None, 50.0),
        ("", 50.0),
        ("abc", 50.0),
        ("0", 50.0),
        ("-5", 50.0),
    ],
)
def test_resolve_margin_falls_back_to_default(service, raw, expected) -> None:
    assert service.resolve_margin(raw) == expected


def test_compare_end_to_end(service, sample_nfe_xml, sample_price_table) -> None:
    result = service.compare(
        [("nota.xml", sample_nfe_xml)],
        sample_price_table,
        table_name="tabela.xlsx",
    )

    first, second = result.items
    assert first.match.tag is MatchTag.barcode_primary
    assert first.match.price == 5.0
    assert first.enriched.unit_cost == 3.474
    assert first.minimum_price == 5.211
    assert first.status is LineStatus.below_minimum

    assert second.match.tag is MatchTag.code
    assert second.match.price == 3.5
    assert second.enriched.unit_cost == 2.0
    assert second.minimum_price == 3.0
    assert second.status is LineStatus.ok

    assert result.conference.items_total == 62.6
    assert result.conference.balanced
    assert result.margin_percent == 50.0
    assert result.multiplier == 1.5
    assert result.diagnostics["linhas_tabela_ignoradas"] == 1


def test_compare_with_custom_margin(service, sample_nfe_xml, sample_price_table) -> None:
    result = service.compare(
        [("nota.xml", sample_nfe_xml)], sample_price_table, margin_percent="40"
    )
    assert result.margin_percent == 40.0
    assert result.multiplier == 1.4
    # 3.474 × 1.4 = 4.8636
    assert result.items[0].minimum_price == 4.8636
    assert result.items[0].status is LineStatus.ok


def test_legacy_mode_ignores_taxes(service, sample_nfe_xml, sample_price_table) -> None:
    result = service.compare(
        [("nota.xml", sample_nfe_xml)], sample_price_table, tax_enrichment=False
    )
    assert [item.enriched.total_paid for item in result.items] == [36.0, 24.0]
    assert result.conference.difference == -2.6
    assert not result.conference.balanced


def test_documents_keep_upload_order(service, sample_nfe_xml, sample_price_table) -> None:
    result = service.compare(
        [("b.xml", sample_nfe_xml), ("a.xml", sample_nfe_xml)], sample_price_table
    )
    assert [item.enriched.line.source_document for item in result.items] == [
        "b.xml",
        "b.xml",
        "a.xml",
        "a.xml",
    ]
    assert result.conference.items_total == 125.2
    assert result.conference.declared_total == 125.2


def test_compare_requires_documents(service, sample_price_table) -> None:
    with pytest.raises(ComparisonError, match="Nenhum arquivo XML informado"):
        service.compare([], sample_price_table)


def test_one_malformed_document_fails_the_request(
    service, sample_nfe_xml, sample_price_table
) -> None:
    with pytest.raises(MalformedDocument) as excinfo:
        service.compare(
            [("ok.xml", sample_nfe_xml), ("ruim.xml", b"<nfeProc>")],
            sample_price_table,
        )
    assert excinfo.value.source == "ruim.xml"


def test_custom_table_headers(sample_nfe_xml, make_price_table) -> None:
    settings = Settings(_env_file=None, price_header="Valor", barcode_header="EAN")
    table = make_price_table([("7891234567890", 6.0)], header=("EAN", "Valor"))
    result = ComparisonService(settings).compare([("nota.xml", sample_nfe_xml)], table)
    assert result.items[0].match.price == 6.0
    assert result.items[0].status is LineStatus.ok


def test_exempt_codes_from_settings(sample_nfe_xml, sample_price_table) -> None:
    settings = Settings(_env_file=None, icms_st_exempt_codes=["10", "60"])
    result = ComparisonService(settings).compare(
        [("nota.xml", sample_nfe_xml)], sample_price_table
    )
    assert result.items[0].enriched.icms_st_charged == 0.0
    assert result.items[0].enriched.total_paid == 36.3


def test_compare_files(tmp_path: Path, service, sample_nfe_xml, sample_price_table) -> None:
    xml_path = tmp_path / "nota.xml"
    xml_path.write_bytes(sample_nfe_xml)
    table_path = tmp_path / "tabela.xlsx"
    table_path.write_bytes(sample_price_table)

    result = service.compare_files([xml_path], table_path, margin_percent="50")
    assert len(result.items) == 2
    assert result.documents[0].source == "nota.xml"


def test_diagnostics_enabled_logs_engine_events(
    caplog, sample_nfe_xml, sample_price_table
) -> None:
    caplog.set_level(logging.DEBUG, logger="conferencia.diagnostics")
    service = ComparisonService(Settings(_env_file=None, diagnostics_enabled=True))
    service.compare([("nota.xml", sample_nfe_xml)], sample_price_table)

    events = [
        record.event
        for record in caplog.records
        if record.name == "conferencia.diagnostics"
    ]
    assert events[0] == "invoice.decomposed"
    assert "line.matched" in events
    assert events[-1] == "run.summary"
