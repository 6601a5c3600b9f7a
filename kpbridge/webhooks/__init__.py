from kpbridge.webhooks.auth import is_authorized
from kpbridge.webhooks.handler import WebhookHandler, WebhookResult, status_for

__all__ = ["WebhookHandler", "WebhookResult", "is_authorized", "status_for"]
