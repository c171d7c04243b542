"""Conferenza da riga di comando su file locali (XML NF-e + tabella XLSX)."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from conferencia.core.logging import configure_logging
from conferencia.domain.errors import ComparisonError
from conferencia.domain.models import ReconciliationResult
from conferencia.schemas import ComparacaoResponse
from conferencia.services.comparison_service import ComparisonService

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="conferencia",
        description="Confronta righe NF-e con una tabella prezzi XLSX.",
    )
    parser.add_argument(
        "--xml",
        dest="xml_files",
        action="append",
        type=Path,
        required=True,
        help="File XML NF-e (ripetibile, in ordine).",
    )
    parser.add_argument("--xlsx", type=Path, required=True, help="Tabella prezzi XLSX.")
    parser.add_argument(
        "--margin",
        default=None,
        help="Margine percentuale minimo (default da configurazione, 50).",
    )
    parser.add_argument(
        "--legacy",
        action="store_true",
        help="Ignora IPI, ICMS-ST, altre spese e sconto di documento.",
    )
    parser.add_argument("--json", action="store_true", help="Stampa il risultato in JSON.")
    parser.add_argument("--log-level", default=None, help="Livello di log (es. DEBUG).")
    return parser


def format_summary(result: ReconciliationResult) -> str:
    lines = [
        f"{'STATUS':<14} {'MATCH':<18} {'UNIT. REAL':>11} {'MINIMO':>11} {'TABELA':>11}  DESCRICAO"
    ]
    for item in result.items:
        price = f"{item.match.price:.2f}" if item.match.price is not None else "-"
        lines.append(
            f"{item.status.value:<14} {item.match.tag.value:<18} "
            f"{item.enriched.unit_cost:>11.4f} {item.minimum_price:>11.4f} {price:>11}  "
            f"{item.enriched.line.description}"
        )

    conference = result.conference
    lines.append("")
    lines.append(
        f"Soma itens: {conference.items_total:.2f} | vNF: {conference.declared_total:.2f} | "
        f"Diferença: {conference.difference:.2f} | "
        f"{'OK' if conference.balanced else 'DIVERGENTE'}"
    )
    statuses = result.diagnostics.get("por_status", {})
    lines.append(
        "Status: " + ", ".join(f"{status}={count}" for status, count in statuses.items())
    )
    return "\n".join(lines)


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    configure_logging(level=args.log_level)

    missing = [str(path) for path in [*args.xml_files, args.xlsx] if not path.is_file()]
    if missing:
        print(f"Arquivo não encontrado: {', '.join(missing)}", file=sys.stderr)
        return 2

    service = ComparisonService()
    try:
        result = service.compare_files(
            args.xml_files,
            args.xlsx,
            margin_percent=args.margin,
            tax_enrichment=False if args.legacy else None,
        )
    except ComparisonError as exc:
        logger.error("Conferenza non eseguita: %s", exc)
        print(str(exc), file=sys.stderr)
        return 1

    if args.json:
        print(ComparacaoResponse.from_result(result).model_dump_json(indent=2))
    else:
        print(format_summary(result))
    return 0


if __name__ == "__main__":
    sys.exit(main())
