"""Mail delivery backend built on the Zoho client."""

from zoho_mailer.delivery.backend import ZohoDeliveryBackend, extract_body

__all__ = ["ZohoDeliveryBackend", "extract_body"]
