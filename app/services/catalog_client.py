# app/services/catalog_client.py
import requests

from app.domain.errors import ValidationFailed
from app.utils.retry import http_retry
from app.utils.settings import CATALOG_SERVICE_URL
from app.utils.logging import get_logger

logger = get_logger(__name__)


class CatalogClient:
    """Klient katalogu (cena, waga, dostepnosc produktu; waluty)."""

    def __init__(self, base_url: str | None = None, timeout: int = 2):
        self.base_url = (base_url or CATALOG_SERVICE_URL).rstrip("/")
        self.timeout = timeout

    @http_retry()
    def _get(self, path: str) -> requests.Response:
        url = f"{self.base_url}{path}"
        logger.info(f"CatalogClient GET {url}")
        return requests.get(url, timeout=self.timeout)

    def fetch_item(self, item_id: int) -> dict:
        resp = self._get(f"/items/{item_id}")
        if resp.status_code == 404:
            raise ValidationFailed(f"Item {item_id} not found", code="ITEM_NOT_FOUND")
        resp.raise_for_status()
        return resp.json()

    def fetch_currency(self, currency_id: int) -> dict:
        resp = self._get(f"/currencies/{currency_id}")
        if resp.status_code == 404:
            raise ValidationFailed(f"Currency {currency_id} not found", code="CURRENCY_NOT_FOUND")
        resp.raise_for_status()
        return resp.json()
