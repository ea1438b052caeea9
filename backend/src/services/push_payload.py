"""
Push payload contract shared with the service worker.

The service worker receives the opaque payload produced by PushService and
renders a system notification from it. These helpers pin down that
contract: field defaults, the plain-text fallback, the notification options
and what happens when the user clicks.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple, Union
from urllib.parse import urljoin, urlsplit


DEFAULT_TITLE = "Roadmap"
DEFAULT_BODY = "New notification"
DEFAULT_ICON = "/icon-192.png"
DEFAULT_BADGE = "/badge-72.png"
DEFAULT_URL = "/"

VIBRATE_PATTERN = [100, 50, 100]


@dataclass(frozen=True)
class RenderedNotification:
    """Notification as the worker shows it."""

    title: str = DEFAULT_TITLE
    body: str = DEFAULT_BODY
    icon: str = DEFAULT_ICON
    badge: str = DEFAULT_BADGE
    url: str = DEFAULT_URL


def parse_push_payload(raw: Union[str, bytes, None]) -> RenderedNotification:
    """
    Decode a push payload.

    A JSON object overrides the defaults field by field. Anything that is
    not a JSON object is shown as the body text. An empty payload yields
    all defaults.
    """
    if raw is None:
        return RenderedNotification()
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    if not raw:
        return RenderedNotification()

    try:
        data = json.loads(raw)
    except ValueError:
        return RenderedNotification(body=raw)

    if not isinstance(data, dict):
        return RenderedNotification(body=raw)

    defaults = RenderedNotification()
    values = {}
    for name in ("title", "body", "icon", "badge", "url"):
        value = data.get(name)
        values[name] = str(value) if value is not None else getattr(defaults, name)
    return RenderedNotification(**values)


def notification_options(rendered: RenderedNotification) -> Dict[str, Any]:
    """Options passed to the platform's showNotification call."""
    return {
        "body": rendered.body,
        "icon": rendered.icon,
        "badge": rendered.badge,
        "vibrate": list(VIBRATE_PATTERN),
        "data": {"url": rendered.url},
        "requireInteraction": False,
    }


def _origin(url: str) -> Tuple[str, str]:
    parts = urlsplit(url)
    return parts.scheme, parts.netloc


def resolve_click_action(
    open_client_urls: Sequence[str],
    origin: str,
    target_url: Optional[str] = None,
) -> Tuple[str, Optional[str], str]:
    """
    Decide what a notification click does.

    Args:
        open_client_urls: URLs of the app windows currently open, in
            platform order
        origin: The app origin (e.g. "https://roadmap.example")
        target_url: The payload url, defaults to "/"

    Returns:
        ("focus", client_url, target) to focus that window and navigate it
        to target, or ("open", None, target) to open a new window
    """
    target = urljoin(origin.rstrip("/") + "/", target_url or DEFAULT_URL)
    app_origin = _origin(origin)

    for client_url in open_client_urls:
        if _origin(client_url) == app_origin:
            return "focus", client_url, target
    return "open", None, target
