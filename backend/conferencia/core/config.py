from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configurazione centrale dell'applicazione."""

    app_name: str = "Conferencia NF-e Backend"
    api_v1_prefix: str = "/api"
    debug: bool = False

    # Upload - limite dimensione file (stesso limite del vecchio server Node: 10MB)
    max_upload_size_mb: int = 10
    max_xml_files: int = Field(
        default=10, description="Numero massimo di XML NF-e per singola conferenza"
    )
    allowed_xml_extensions: set[str] = {".xml"}
    allowed_table_extensions: set[str] = {".xlsx", ".xlsm"}

    cors_origins: list[str] | tuple[str, ...] | str | None = Field(
        default_factory=lambda: [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ]
    )
    cors_allow_credentials: bool = False

    compare_rate_limit_per_minute: int = Field(
        default=30, description="Limite chiamate di conferenza/minuto per IP"
    )

    # Parametri motore di riconciliazione
    default_margin_percent: float = Field(
        default=50.0,
        description="Margine minimo sul costo unitario reale (50 => prezzo minimo = 1.5x)",
    )
    fuzzy_min_score: float = Field(
        default=0.80,
        description="Similarità minima (bigrammi) per accettare un match per descrizione",
    )
    icms_st_exempt_codes: list[str] | tuple[str, ...] | str | None = Field(
        default_factory=lambda: ["60"],
        description=(
            "CST/CSOSN per cui l'ICMS-ST è già stato trattenuto a monte e non va "
            "sommato al totale della riga"
        ),
    )
    tax_enrichment: bool = Field(
        default=True,
        description="Somma IPI, ICMS-ST, altre spese e ripartisce lo sconto della nota",
    )

    # Intestazioni tabella prezzi (match esatto dopo trim)
    price_header: str = "Preço"
    barcode_header: str = "Código de barras"
    description_header: str = "Descrição Produto"
    code_header: str = "Código Produto"

    # Logging e diagnostica
    structured_logging: bool = Field(
        default=False,
        description="Emette log JSON per integrazione con ELK",
    )
    log_level: str = Field(default="INFO", description="Livello di log applicativo")
    diagnostics_enabled: bool = Field(
        default=False,
        description="Inoltra gli eventi diagnostici del motore al logger (solo debug)",
    )

    model_config = SettingsConfigDict(
        env_prefix="CONFERENCIA_", env_file=".env", extra="ignore"
    )

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_cors_origins(
        cls,
        value: str | list[str] | tuple[str, ...] | None,
    ) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            if not value.strip():
                return []
            return [item.strip() for item in value.split(",") if item.strip()]
        return list(value)

    @field_validator("icms_st_exempt_codes", mode="before")
    @classmethod
    def _split_exempt_codes(
        cls, value: str | list[str] | tuple[str, ...] | None
    ) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return [str(item).strip() for item in value if str(item).strip()]


settings = Settings()
