"""
Webhook module - FastAPI route handlers.

Includes:
- whatsapp.py: inbound WhatsApp message handler
"""

from webhook.whatsapp import router as whatsapp_router

__all__ = ["whatsapp_router"]
