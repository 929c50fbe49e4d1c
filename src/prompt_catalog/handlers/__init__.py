"""HTTP handlers layer.

Handlers convert between service results and HTTP responses.
"""

from .cron_handler import CronHandler
from .prompts_handler import PromptsHandler
from .webhook_handler import WebhookHandler

__all__ = ["CronHandler", "PromptsHandler", "WebhookHandler"]
