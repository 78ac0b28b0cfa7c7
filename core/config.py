"""Process configuration.

Reads settings from environment variables; a `.env` file at the project root
is loaded first if it exists.

Example .env:
    PORT=3000
    SHOPIFY_SECRET=...
    SHOPIFY_SHOP_DOMAIN=my-shop.myshopify.com
    SHOPIFY_ACCESS_TOKEN=shpat_...
    SHOPIFY_LOCATION_ID=123456789
    HGI_BASE_URL=https://cloud2.hgi.com.co:9323/
    HGI_USER=...
    HGI_PASS=...
    HGI_COMPANY=1                # cod_compania
    HGI_EMPRESA=1                # cod_empresa
    HGI_COMPROBANTE=FV           # sales voucher type
    HGI_CUENTA_INGRESO=413505    # revenue account (credit)
    HGI_CUENTA_CLIENTE=130505    # receivable account (debit)
    HGI_TERCERO_DEFAULT=900123456
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Mapping, Optional

from dotenv import load_dotenv


PROJECT_ROOT = Path(__file__).resolve().parents[1]


def _normalize_base_url(url: str) -> str:
    """Ensure a non-empty base URL ends with a single slash."""
    url = (url or "").strip()
    if not url:
        return ""
    return url.rstrip("/") + "/"


def _as_bool(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Runtime settings for the middleware."""
    port: int = 3000

    # Shopify
    shopify_secret: str = ""
    shopify_shop_domain: str = ""
    shopify_access_token: str = ""
    shopify_api_version: str = "2024-10"
    shopify_location_id: Optional[str] = None

    # HGI
    hgi_base_url: str = ""
    hgi_user: str = ""
    hgi_pass: str = ""
    hgi_company: str = ""           # cod_compania
    hgi_empresa: str = ""           # cod_empresa
    hgi_comprobante: str = "FV"
    hgi_cuenta_ingreso: str = "413505"
    hgi_cuenta_cliente: str = "130505"
    hgi_tercero_default: str = ""

    # Behavior
    map_path: Path = Path("map.json")
    http_timeout_seconds: float = 20.0
    poll_interval_seconds: float = 300.0
    log_level: str = "INFO"
    log_json: bool = False

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from the environment.

        Args:
            environ: Mapping to read instead of os.environ (for tests)
        """
        if environ is None:
            env_path = PROJECT_ROOT / ".env"
            if env_path.exists():
                load_dotenv(env_path)
            environ = os.environ

        get = environ.get
        return cls(
            port=int(get("PORT", "3000")),
            shopify_secret=get("SHOPIFY_SECRET", ""),
            shopify_shop_domain=get("SHOPIFY_SHOP_DOMAIN", ""),
            shopify_access_token=get("SHOPIFY_ACCESS_TOKEN", ""),
            shopify_api_version=get("SHOPIFY_API_VERSION", "2024-10"),
            shopify_location_id=get("SHOPIFY_LOCATION_ID") or None,
            hgi_base_url=_normalize_base_url(get("HGI_BASE_URL", "")),
            hgi_user=get("HGI_USER", ""),
            hgi_pass=get("HGI_PASS", ""),
            hgi_company=get("HGI_COMPANY", ""),
            hgi_empresa=get("HGI_EMPRESA", ""),
            hgi_comprobante=get("HGI_COMPROBANTE") or "FV",
            hgi_cuenta_ingreso=get("HGI_CUENTA_INGRESO") or "413505",
            hgi_cuenta_cliente=get("HGI_CUENTA_CLIENTE") or "130505",
            hgi_tercero_default=get("HGI_TERCERO_DEFAULT", ""),
            map_path=Path(get("MAP_PATH") or "map.json"),
            http_timeout_seconds=float(get("HTTP_TIMEOUT_SECONDS", "20")),
            poll_interval_seconds=float(get("POLL_INTERVAL_SECONDS", "300")),
            log_level=get("LOG_LEVEL", "INFO").upper(),
            log_json=_as_bool(get("LOG_JSON")),
        )

    @property
    def company_code(self) -> int:
        """HGI cod_empresa as the integer the accounting API expects."""
        return int(self.hgi_empresa)

    @property
    def log_level_value(self) -> int:
        return getattr(logging, self.log_level, logging.INFO)

    @property
    def shopify_configured(self) -> bool:
        return bool(self.shopify_shop_domain and self.shopify_access_token)

    def missing(self) -> List[str]:
        """Required HGI variables that are empty."""
        required = {
            "HGI_BASE_URL": self.hgi_base_url,
            "HGI_USER": self.hgi_user,
            "HGI_PASS": self.hgi_pass,
            "HGI_COMPANY": self.hgi_company,
            "HGI_EMPRESA": self.hgi_empresa,
        }
        return [name for name, value in required.items() if not value]

    def invalid(self) -> List[str]:
        """Variables that are set but cannot be used as given."""
        problems = []
        if self.hgi_empresa and not self.hgi_empresa.strip().isdigit():
            problems.append("HGI_EMPRESA")
        return problems
