# fluxcart/services/search_client.py
from typing import List, Tuple

import requests

from fluxcart.utils.retry import http_retry
from fluxcart.utils.settings import MEILI_URL, MEILI_KEY
from fluxcart.utils.logging import get_logger

logger = get_logger(__name__)


class SearchClient:
    """Klient HTTP do Meilisearch, indeks "products"."""

    def __init__(self, base_url: str | None = None, api_key: str | None = None, timeout: int = 2):
        self.base_url = (base_url or MEILI_URL).rstrip("/")
        self.api_key = MEILI_KEY if api_key is None else api_key
        self.timeout = timeout

    @http_retry()
    def search(
        self,
        q: str,
        limit: int,
        offset: int,
        category: str | None = None,
    ) -> Tuple[List[int], int]:
        url = f"{self.base_url}/indexes/products/search"
        logger.info(f"SearchClient POST {url}")

        body = {"q": q, "limit": limit, "offset": offset}
        if category:
            body["filter"] = f'category = "{category}"'
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}

        resp = requests.post(url, json=body, headers=headers, timeout=self.timeout)
        resp.raise_for_status()
        data = resp.json()

        ids = [int(hit["id"]) for hit in data.get("hits", [])]
        total = int(data.get("estimatedTotalHits", len(ids)))
        return ids, total


def get_search_client() -> SearchClient | None:
    if not MEILI_URL:
        return None
    return SearchClient()
