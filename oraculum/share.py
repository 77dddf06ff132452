"""Share payload for the current card.

The browser tries a native share of the image file with this caption and
falls back to the social web-intent URL when native sharing is unavailable.
"""

from __future__ import annotations

from urllib.parse import quote

from .models import Reading

SHARE_TITLE = "Mon Tirage Oraculum"
SHARE_FILE_NAME = "oraculum-card.png"
FACEBOOK_SHARER = "https://www.facebook.com/sharer/sharer.php"

# Characters JavaScript's encodeURIComponent leaves alone.
_URI_COMPONENT_SAFE = "-_.!~*'()"


def encode_uri_component(value: str) -> str:
    return quote(value, safe=_URI_COMPONENT_SAFE)


def share_caption(reading: Reading) -> str:
    return (
        f"🔮 Oraculum Tarot\n\n"
        f"Carte: {reading.name}\n\n"
        f"\"{reading.spiritual_message}\"\n\n"
        f"#Oraculum #Tarot #IA"
    )


def fallback_share_url(page_url: str, caption: str) -> str:
    return f"{FACEBOOK_SHARER}?u={encode_uri_component(page_url)}&quote={encode_uri_component(caption)}"
