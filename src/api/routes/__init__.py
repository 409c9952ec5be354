"""FastAPI route modules.

Exports all route modules for inclusion in the main application.
"""

from src.api.routes import cron, delivery, subscriptions

__all__ = [
    "cron",
    "delivery",
    "subscriptions",
]
