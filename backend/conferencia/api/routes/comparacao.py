import logging
from typing import List, Optional

from fastapi import APIRouter, File, Form, HTTPException, Request, UploadFile, status

from conferencia.core import settings
from conferencia.core.security import SlidingWindowRateLimiter, enforce_rate_limit
from conferencia.domain.errors import ComparisonError
from conferencia.schemas import ComparacaoResponse
from conferencia.services import comparison_service, upload_reader

logger = logging.getLogger(__name__)

router = APIRouter()

compare_rate_limiter = SlidingWindowRateLimiter(
    settings.compare_rate_limit_per_minute, 60
)


@router.post("/comparar", response_model=ComparacaoResponse)
def comparar(
    request: Request,
    xml: Optional[List[UploadFile]] = File(None),
    xlsx: Optional[UploadFile] = File(None),
    margin_percent: Optional[str] = Form(None),
) -> ComparacaoResponse:
    """
    Conferenza di uno o più XML NF-e contro la tabella prezzi XLSX.

    Il margine (``margin_percent``) vuoto, non numerico o <= 0 vale il default.
    """
    if not xml or xlsx is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Arquivos XML e Excel são obrigatórios",
        )
    if len(xml) > settings.max_xml_files:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Máximo de {settings.max_xml_files} arquivos XML por conferência",
        )

    client_ip = request.client.host if request.client else "anonymous"
    enforce_rate_limit(compare_rate_limiter, client_ip)

    documents = [upload_reader.read_xml(upload) for upload in xml]
    table = upload_reader.read_table(xlsx)
    logger.info(
        "Conferenza richiesta da %s: %s (tabella %s)",
        client_ip,
        ", ".join(f"{doc.filename}@{doc.sha256[:12]}" for doc in documents),
        f"{table.filename}@{table.sha256[:12]}",
    )

    try:
        result = comparison_service.compare(
            [(document.filename, document.content) for document in documents],
            table.content,
            table_name=table.filename,
            margin_percent=margin_percent,
        )
    except ComparisonError as exc:
        logger.warning("Conferenza rifiutata (%s): %s", client_ip, exc)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    return ComparacaoResponse.from_result(result)
