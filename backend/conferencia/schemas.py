from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from conferencia.domain.models import (
    Conference,
    ReconciliationItem,
    ReconciliationResult,
)


class ItemConferenciaSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    codigo: str
    descricao: str
    arquivo_origem: Optional[str] = None
    n_item: Optional[int] = None
    unidade: str
    u_trib: str
    q_trib: float
    unidades: float
    tipo_unidades: str
    observacao_unidades: str
    pack: Optional[int] = None
    ean: str = ""
    ean_trib: str = ""
    ean_tabela: str = ""
    v_prod: float
    desconto: float
    ipi: float
    icms_st: float
    outras_despesas: float
    total_item: float
    unitario_real: float
    preco_por_medida: Optional[float] = None
    unidade_medida: Optional[str] = None
    preco_comercial: float
    preco_tabela: Optional[float] = None
    preco_minimo: float
    status: str
    match: str
    score: Optional[float] = None
    observacoes: str = ""

    @classmethod
    def from_item(cls, item: ReconciliationItem) -> "ItemConferenciaSchema":
        enriched = item.enriched
        line = enriched.line
        return cls(
            codigo=line.code,
            descricao=line.description,
            arquivo_origem=line.source_document,
            n_item=line.item_number,
            unidade=line.commercial_unit or line.taxable_unit,
            u_trib=line.taxable_unit,
            q_trib=line.taxable_quantity,
            unidades=enriched.unit_count,
            tipo_unidades=enriched.units_tag.value,
            observacao_unidades=enriched.units_rationale,
            pack=enriched.pack,
            ean=line.barcode or "",
            ean_trib=line.taxable_barcode or "",
            ean_tabela=item.match.matched_barcode or "",
            v_prod=line.gross_value,
            desconto=enriched.applied_discount,
            ipi=enriched.ipi_charged,
            icms_st=enriched.icms_st_charged,
            outras_despesas=line.other_charges,
            total_item=enriched.total_paid,
            unitario_real=enriched.unit_cost,
            preco_por_medida=enriched.price_per_measure,
            unidade_medida=enriched.measure_unit,
            preco_comercial=enriched.commercial_unit_price,
            preco_tabela=item.match.price,
            preco_minimo=item.minimum_price,
            status=item.status.value,
            match=item.match.tag.value,
            score=item.match.score,
            observacoes=item.match.note,
        )


class ConferenciaSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    arquivo: Optional[str] = None
    chave_acesso: Optional[str] = None
    soma_itens: float
    v_desc_total: float
    v_nf_total: float
    diferenca: float
    conferido: bool

    @classmethod
    def from_conference(cls, conference: Conference) -> "ConferenciaSchema":
        return cls(
            arquivo=conference.source,
            chave_acesso=conference.access_key,
            soma_itens=conference.items_total,
            v_desc_total=conference.declared_discount_total,
            v_nf_total=conference.declared_total,
            diferenca=conference.difference,
            conferido=conference.balanced,
        )


class ConfigSchema(BaseModel):
    margin_percent: float
    multiplier: float


class ComparacaoResponse(BaseModel):
    items: list[ItemConferenciaSchema]
    conferencia: ConferenciaSchema
    documentos: list[ConferenciaSchema]
    config: ConfigSchema
    diagnostico: dict[str, Any]

    @classmethod
    def from_result(cls, result: ReconciliationResult) -> "ComparacaoResponse":
        return cls(
            items=[ItemConferenciaSchema.from_item(item) for item in result.items],
            conferencia=ConferenciaSchema.from_conference(result.conference),
            documentos=[
                ConferenciaSchema.from_conference(document)
                for document in result.documents
            ],
            config=ConfigSchema(
                margin_percent=result.margin_percent,
                multiplier=result.multiplier,
            ),
            diagnostico=dict(result.diagnostics),
        )


class HealthResponse(BaseModel):
    status: str
