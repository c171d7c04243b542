from __future__ import annotations

import logging
from dataclasses import dataclass
from hashlib import sha256
from pathlib import Path
from typing import Iterable

from fastapi import HTTPException, UploadFile, status

from conferencia.core import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadedDocument:
    filename: str
    content: bytes
    sha256: str


class UploadReader:
    """
    Legge in memoria i file caricati per una conferenza (nessun salvataggio su disco).
    Verifica estensione, dimensione durante lo streaming e magic bytes.
    """

    EXCEL_MAGIC_BYTES = [
        b"\x50\x4B\x03\x04",  # ZIP-based Office files (XLSX, XLSM)
        b"\x50\x4B\x05\x06",  # Empty ZIP archive
        b"\x50\x4B\x07\x08",  # Spanned ZIP archive
    ]

    XML_MAGIC_BYTES = [
        b"<?xml",
        b"<",
        b"\xef\xbb\xbf<",  # UTF-8 BOM
    ]

    CHUNK_SIZE = 65536

    def __init__(self, max_size_bytes: int | None = None) -> None:
        self.max_size_bytes = max_size_bytes or settings.max_upload_size_bytes

    def read_xml(self, upload: UploadFile) -> UploadedDocument:
        return self._read(upload, settings.allowed_xml_extensions, self.XML_MAGIC_BYTES)

    def read_table(self, upload: UploadFile) -> UploadedDocument:
        return self._read(
            upload, settings.allowed_table_extensions, self.EXCEL_MAGIC_BYTES
        )

    def _read(
        self,
        upload: UploadFile,
        allowed_extensions: Iterable[str],
        magic_bytes: list[bytes],
    ) -> UploadedDocument:
        filename = self._safe_name(upload.filename)
        allowed = sorted(allowed_extensions)
        file_ext = Path(filename).suffix.lower()
        if file_ext not in allowed:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Extensão de arquivo não permitida: {file_ext or '(nenhuma)'}. "
                f"Formatos aceitos: {', '.join(allowed)}",
            )

        digest = sha256()
        chunks: list[bytes] = []
        total_bytes = 0
        while True:
            chunk = upload.file.read(self.CHUNK_SIZE)
            if not chunk:
                break
            total_bytes += len(chunk)
            if total_bytes > self.max_size_bytes:
                raise HTTPException(
                    status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                    detail=(
                        f"Arquivo {filename} muito grande. Máximo permitido: "
                        f"{self.max_size_bytes // (1024 * 1024)}MB"
                    ),
                )
            digest.update(chunk)
            chunks.append(chunk)

        content = b"".join(chunks)
        if not content:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Arquivo {filename} vazio",
            )

        head = content[:16].lstrip(b" \t\r\n")
        if not any(head.startswith(magic) for magic in magic_bytes):
            logger.warning(
                "File %s con magic bytes non riconosciuti: %s",
                filename,
                content[:8].hex(),
            )
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Conteúdo do arquivo {filename} não corresponde à extensão {file_ext}",
            )

        return UploadedDocument(
            filename=filename, content=content, sha256=digest.hexdigest()
        )

    @staticmethod
    def _safe_name(filename: str | None) -> str:
        if not filename:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Nome do arquivo ausente",
            )
        # Solo il nome base, senza percorsi
        name = filename.replace("\\", "/").rsplit("/", 1)[-1]
        return "".join(c for c in name if c.isalnum() or c in "._- ").strip()


upload_reader = UploadReader()
