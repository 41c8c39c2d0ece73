"""API helper utilities."""
from api.helpers.enrichment import display_name, enrich_photos, to_photo_response
from api.helpers.errors import http_error

__all__ = [
    "display_name",
    "enrich_photos",
    "http_error",
    "to_photo_response",
]
