from __future__ import annotations

import logging
import unittest

from conferencia.domain.models import (
    InvoiceLine,
    LineStatus,
    MatchTag,
    ParsedInvoice,
    PriceTableRow,
)
from conferencia.services.reconciliation import (
    DiagnosticEvent,
    ReconciliationOptions,
    logging_observer,
    run_reconciliation,
    unpriced_samples,
)


def _line(code: str, gross: float, quantity: float = 1.0, **extra) -> InvoiceLine:
    return InvoiceLine(
        code=code,
        description=extra.pop("description", f"PRODUTO {code}"),
        commercial_unit="UN",
        commercial_quantity=quantity,
        taxable_unit="UN",
        taxable_quantity=quantity,
        gross_value=gross,
        **extra,
    )


def _invoices() -> list[ParsedInvoice]:
    return [
        ParsedInvoice(
            lines=[_line("A", 80.0, 10), _line("B", 20.0, 4)],
            declared_discount_total=10.0,
            declared_grand_total=90.0,
            source="a.xml",
        ),
        ParsedInvoice(
            lines=[_line("C", 50.0, 5, barcode="7891234567890")],
            declared_discount_total=0.0,
            declared_grand_total=50.0,
            source="b.xml",
        ),
    ]


_ROWS = [
    PriceTableRow(price=11.0, barcode="", description="", code="A"),
    PriceTableRow(price=6.0, barcode="", description="", code="B"),
    PriceTableRow(price=0.0, barcode="7890000000001", description="SEM PRECO", code="Z"),
]


class RunReconciliationTestCase(unittest.TestCase):
    def test_discount_is_apportioned_per_document(self) -> None:
        result = run_reconciliation(_invoices(), _ROWS)

        self.assertEqual(
            [item.enriched.applied_discount for item in result.items], [8.0, 2.0, 0.0]
        )
        self.assertEqual(
            [item.enriched.total_paid for item in result.items], [72.0, 18.0, 50.0]
        )
        self.assertEqual(
            [item.enriched.line.code for item in result.items], ["A", "B", "C"]
        )

    def test_statuses_and_minimum_prices(self) -> None:
        result = run_reconciliation(_invoices(), _ROWS)
        first, second, third = result.items

        # 7.2 × 1.5 = 10.8
        self.assertEqual(first.minimum_price, 10.8)
        self.assertEqual(first.status, LineStatus.ok)
        self.assertEqual(first.match.tag, MatchTag.code)
        # 4.5 × 1.5 = 6.75
        self.assertEqual(second.status, LineStatus.below_minimum)
        self.assertEqual(third.status, LineStatus.no_price)
        self.assertEqual(third.match.note, "cEAN sem match")

    def test_conferences_per_document_and_for_the_run(self) -> None:
        result = run_reconciliation(_invoices(), _ROWS)

        self.assertEqual([doc.source for doc in result.documents], ["a.xml", "b.xml"])
        self.assertTrue(all(doc.balanced for doc in result.documents))
        self.assertEqual(result.conference.items_total, 140.0)
        self.assertEqual(result.conference.declared_total, 140.0)
        self.assertEqual(result.conference.declared_discount_total, 10.0)
        self.assertTrue(result.conference.balanced)

    def test_margin_is_reported(self) -> None:
        result = run_reconciliation(
            _invoices(), _ROWS, ReconciliationOptions(margin_percent=20)
        )
        self.assertEqual(result.margin_percent, 20)
        self.assertEqual(result.multiplier, 1.2)
        # 7.2 × 1.2 = 8.64
        self.assertEqual(result.items[0].minimum_price, 8.64)

    def test_same_input_same_result(self) -> None:
        first = run_reconciliation(_invoices(), _ROWS)
        second = run_reconciliation(_invoices(), _ROWS)
        self.assertEqual(first, second)

    def test_diagnostics_summary(self) -> None:
        result = run_reconciliation(_invoices(), _ROWS)
        diagnostics = result.diagnostics

        self.assertEqual(diagnostics["itens"], 3)
        self.assertEqual(diagnostics["com_ean"], 1)
        self.assertEqual(diagnostics["com_ean_trib"], 0)
        self.assertEqual(
            diagnostics["por_status"],
            {"ok": 1, "below-minimum": 1, "no-price": 1, "parse-error": 0},
        )
        self.assertEqual(diagnostics["por_match"]["code"], 2)
        self.assertEqual(diagnostics["por_match"]["none"], 1)
        self.assertEqual(diagnostics["por_unidade"], {"direct-unit": 3})
        self.assertEqual(diagnostics["linhas_tabela"], 3)
        self.assertEqual(diagnostics["linhas_tabela_indexadas"], 2)
        self.assertEqual(diagnostics["linhas_tabela_ignoradas"], 1)
        self.assertEqual(diagnostics["documentos_divergentes"], [])

    def test_unpriced_samples(self) -> None:
        result = run_reconciliation(_invoices(), _ROWS)
        self.assertEqual(
            unpriced_samples(result.items),
            [{"descricao": "PRODUTO C", "ean": "7891234567890", "ean_trib": ""}],
        )


def test_observer_receives_events_in_order() -> None:
    invoices = _invoices()
    invoices.append(
        ParsedInvoice(
            lines=[_line("A", 30.0, 3)],
            declared_discount_total=0.0,
            declared_grand_total=31.0,
            source="c.xml",
        )
    )
    events: list[DiagnosticEvent] = []
    result = run_reconciliation(invoices, _ROWS, observer=events.append)

    names = [event.name for event in events]
    assert names.count("invoice.decomposed") == 3
    assert names.count("line.units") == 4
    assert names.count("line.matched") == 4
    assert names.index("index.built") > names.index("invoice.decomposed")
    assert names[-1] == "run.summary"

    unbalanced = [event for event in events if event.name == "run.unbalanced"]
    assert len(unbalanced) == 1
    assert unbalanced[0].level == logging.WARNING
    assert unbalanced[0].payload["source"] == "c.xml"
    assert unbalanced[0].payload["difference"] == -1.0

    assert result.diagnostics["documentos_divergentes"] == ["c.xml"]
    assert not result.conference.balanced


def test_without_observer_nothing_is_logged(caplog) -> None:
    caplog.set_level(logging.DEBUG, logger="conferencia.services.reconciliation")
    run_reconciliation(_invoices(), _ROWS)
    assert not [
        record
        for record in caplog.records
        if record.name.startswith("conferencia.services.reconciliation")
    ]


def test_logging_observer_forwards_events(caplog) -> None:
    target = logging.getLogger("conferencia.test.diagnostics")
    caplog.set_level(logging.INFO, logger=target.name)

    run_reconciliation(_invoices(), _ROWS, observer=logging_observer(target))

    events = [record.event for record in caplog.records if record.name == target.name]
    assert "invoice.decomposed" in events
    assert "index.built" in events
    assert "run.summary" in events
    # eventi DEBUG sotto la soglia
    assert "line.matched" not in events

    built = next(record for record in caplog.records if getattr(record, "event", None) == "index.built")
    assert built.payload["skipped"] == 1
    assert "rows=3" in built.getMessage()
