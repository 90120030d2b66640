"""Client for reading catalog and user documents from the hosted document store."""
from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import requests

from ..catalog.sorting import sort_items
from ..models import CatalogItem, Role

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DocumentStoreClient:
    """Handles communication with the document store's REST API.

    Only read access is implemented; writes are owned by the screens that
    create listings, orders and account records.
    """

    documents_url: str
    api_key: str = ""
    collection: str = "products"
    page_size: int = 300
    timeout: int = 10

    def _params(self, **extra: Any) -> dict[str, Any]:
        params: dict[str, Any] = dict(extra)
        if self.api_key:
            params["key"] = self.api_key
        return params

    def fetch_products(self) -> list[CatalogItem] | None:
        """Fetch the full product collection, newest first.

        The collection endpoint is paginated, so pages are followed until no
        ``nextPageToken`` is returned. Documents that fail to decode are
        skipped. Any network error or malformed envelope yields ``None`` so
        callers can keep the previous snapshot instead of showing an empty
        catalog.
        """

        endpoint = f"{self.documents_url.rstrip('/')}/{self.collection}"
        items: list[CatalogItem] = []
        page_token: str | None = None
        while True:
            params = self._params(pageSize=self.page_size)
            if page_token:
                params["pageToken"] = page_token
            try:
                response = requests.get(endpoint, params=params, timeout=self.timeout)
                response.raise_for_status()
                payload = response.json()
            except (requests.RequestException, ValueError) as exc:
                logger.warning("Error loading products: %s", exc)
                return None

            if not isinstance(payload, Mapping):
                logger.warning("Unexpected products payload of type %s", type(payload).__name__)
                return None

            for document in self._extract_documents(payload):
                item = self._decode_product(document)
                if item is not None:
                    items.append(item)

            page_token = payload.get("nextPageToken")
            if not page_token:
                break

        return sort_items(items, "newest")

    def fetch_user_role(self, user_id: str) -> Role:
        """Return the role stored on the user's account record."""

        endpoint = f"{self.documents_url.rstrip('/')}/users/{user_id}"
        try:
            response = requests.get(endpoint, params=self._params(), timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Error loading user role for %s: %s", user_id, exc)
            return "customer"

        fields = decode_fields(payload.get("fields")) if isinstance(payload, Mapping) else {}
        return "admin" if fields.get("role") == "admin" else "customer"

    @staticmethod
    def _extract_documents(payload: Mapping[str, Any]) -> list[Mapping[str, Any]]:
        documents = payload.get("documents")
        if isinstance(documents, Mapping):
            return [documents]
        if not isinstance(documents, list):
            return []
        return [document for document in documents if isinstance(document, Mapping)]

    @staticmethod
    def _decode_product(document: Mapping[str, Any]) -> CatalogItem | None:
        name = document.get("name")
        if not isinstance(name, str) or not name:
            return None
        fields = decode_fields(document.get("fields"))
        if "createdAt" not in fields and document.get("createTime"):
            fields["createdAt"] = document["createTime"]
        return CatalogItem.from_mapping(fields, item_id=name.rsplit("/", 1)[-1])

    def health_check(self) -> dict[str, Any]:
        """Perform a lightweight request to ensure the API is reachable."""

        try:
            response = requests.get(self.documents_url, params=self._params(pageSize=1), timeout=5)
            response.raise_for_status()
            return {"ok": True, "checked_at": datetime.now(UTC)}
        except requests.RequestException as exc:
            return {"ok": False, "error": str(exc), "checked_at": datetime.now(UTC)}


def decode_fields(fields: Any) -> dict[str, Any]:
    """Convert a typed ``fields`` map into plain Python values."""

    if not isinstance(fields, Mapping):
        return {}
    return {str(key): decode_value(value) for key, value in fields.items()}


def decode_value(value: Any) -> Any:
    """Unwrap a single typed value such as ``{"stringValue": "Nike"}``.

    Integers arrive as strings and are converted; unknown shapes decode to
    ``None`` rather than raising.
    """

    if not isinstance(value, Mapping):
        return None
    if "stringValue" in value:
        return value["stringValue"]
    if "integerValue" in value:
        try:
            return int(value["integerValue"])
        except (TypeError, ValueError):
            return None
    if "doubleValue" in value:
        return value["doubleValue"]
    if "booleanValue" in value:
        return value["booleanValue"]
    if "timestampValue" in value:
        return value["timestampValue"]
    if "nullValue" in value:
        return None
    if "arrayValue" in value:
        array = value["arrayValue"]
        entries = array.get("values", []) if isinstance(array, Mapping) else []
        return [decode_value(entry) for entry in entries]
    if "mapValue" in value:
        mapping = value["mapValue"]
        return decode_fields(mapping.get("fields") if isinstance(mapping, Mapping) else None)
    return None
