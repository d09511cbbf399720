"""Domain models for sf_catalog — pure dataclasses, no business logic."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Product:
    id: str
    name: str
    price: str  # money string, "25.90"
    created_at: datetime | None = None
    updated_at: datetime | None = None
    # Local-store extras; the REST catalog only carries name and price
    description: str = ""
    category: str = ""
    image_url: str = ""
    available: bool = True
