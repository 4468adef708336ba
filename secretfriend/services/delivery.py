from __future__ import annotations

import re
from urllib.parse import quote

from flask import current_app, url_for


WHATSAPP_BASE = "https://wa.me/"


def result_url(token: str) -> str:
    base = (current_app.config.get("PUBLIC_BASE_URL") or "").strip().rstrip("/")
    if base:
        return base + url_for("public.result", token=token)
    return url_for("public.result", token=token, _external=True)


def invitation_message(name: str, link: str) -> str:
    return (
        "🎁 *Secret Friend*\n\n"
        f"Hi {name}!\n\n"
        "The draw is done. Open your link to see who you are gifting:\n\n"
        f"{link}\n\n"
        "⚠️ Do not share this link!"
    )


def whatsapp_url(contact: str, message: str, country_code: str = "55") -> str:
    """
    Build a wa.me link with a prefilled message.
    Contacts written with a leading '+' already carry their country code.
    """
    digits = re.sub(r"\D", "", contact or "")
    if not (contact or "").strip().startswith("+"):
        digits = re.sub(r"\D", "", country_code or "") + digits
    return f"{WHATSAPP_BASE}{digits}?text={quote(message, safe='')}"


def invitation_links(name: str, contact: str, token: str) -> dict:
    """Result link plus WhatsApp link for one participant (request context)."""
    link = result_url(token)
    return {
        "result_url": link,
        "whatsapp_url": whatsapp_url(
            contact,
            invitation_message(name, link),
            country_code=current_app.config.get("WHATSAPP_COUNTRY_CODE", "55"),
        ),
    }
