"""Configuration settings for the storefront discovery engine."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path


@dataclass(slots=True)
class CatalogFeedConfig:
    """Settings related to reading the product catalog from the document store."""

    api_base_url: str = "https://firestore.googleapis.com/v1"
    project_id: str = "luxe-storefront"
    api_key: str = ""
    collection: str = "products"

    interval_seconds: int = 60
    """How frequently to refresh the catalog snapshot."""

    page_size: int = 300
    """Documents requested per page from the collection endpoint."""

    @property
    def documents_url(self) -> str:
        base = self.api_base_url.rstrip("/")
        return f"{base}/projects/{self.project_id}/databases/(default)/documents"


@dataclass(slots=True)
class GuestCartConfig:
    """Settings for the locally persisted guest cart."""

    storage_key: str = "luxeGuestCart"
    expiry_hours: float = 3

    @property
    def expiry(self) -> timedelta:
        return timedelta(hours=self.expiry_hours)


@dataclass(slots=True)
class CheckoutConfig:
    """Pricing rules applied when summarising an order."""

    free_shipping_threshold: float = 150.0
    shipping_cost: float = 12.99
    tax_rate: float = 0.08


@dataclass(slots=True)
class DiscoveryConfig:
    """Settings for the guided product finder."""

    question_count: int = 5


@dataclass(slots=True)
class AppConfig:
    """Top-level configuration for the application."""

    data_directory: Path = field(default_factory=lambda: Path("data"))
    catalog: CatalogFeedConfig = field(default_factory=CatalogFeedConfig)
    guest_cart: GuestCartConfig = field(default_factory=GuestCartConfig)
    checkout: CheckoutConfig = field(default_factory=CheckoutConfig)
    discovery: DiscoveryConfig = field(default_factory=DiscoveryConfig)

    @property
    def storage_directory(self) -> Path:
        return self.data_directory / "storage"

    def ensure_data_directories(self) -> None:
        """Create data directories required by the application."""

        self.data_directory.mkdir(parents=True, exist_ok=True)
        self.storage_directory.mkdir(parents=True, exist_ok=True)


DEFAULT_CONFIG = AppConfig()
