# notifications/services/sms_gateway.py

"""
SMS GATEWAY CLIENT

Minimal JSON-over-HTTPS client for the configured SMS provider.

Config (settings.NOTIFICATIONS["SMS"]):
- GATEWAY_URL   full URL of the send endpoint
- TOKEN         bearer token
- FROM_NUMBER   sender id / number

Any transport or provider error surfaces as SmsGatewayError.
"""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from django.conf import settings

logger = logging.getLogger(__name__)


class SmsGatewayError(RuntimeError):
    pass


def _sms_cfg() -> dict:
    notifications = getattr(settings, "NOTIFICATIONS", {}) or {}
    cfg = notifications.get("SMS") if isinstance(notifications, dict) else None
    return cfg if isinstance(cfg, dict) else {}


def _safe_preview(text: str, limit: int = 300) -> str:
    text = (text or "").strip()
    if len(text) <= limit:
        return text
    return text[:limit] + " (truncated)"


def send_sms(*, to: str, body: str, timeout: int = 15) -> dict[str, Any]:
    cfg = _sms_cfg()
    url = (cfg.get("GATEWAY_URL") or "").strip()
    token = (cfg.get("TOKEN") or "").strip()

    if not url or not token:
        raise SmsGatewayError("SMS gateway is not configured (NOTIFICATIONS['SMS'])")

    payload = {
        "to": str(to).strip(),
        "from": (cfg.get("FROM_NUMBER") or "").strip(),
        "body": body,
    }

    req = Request(
        url,
        data=json.dumps(payload, ensure_ascii=False).encode("utf-8"),
        headers={
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        },
        method="POST",
    )

    try:
        with urlopen(req, timeout=timeout) as resp:
            raw = resp.read().decode("utf-8", errors="replace")
    except HTTPError as e:
        try:
            raw = e.read().decode("utf-8", errors="replace")
        except OSError:
            raw = ""
        raise SmsGatewayError(f"SMS gateway HTTPError: {e.code} {_safe_preview(raw)}") from e
    except URLError as e:
        raise SmsGatewayError(f"SMS gateway URLError: {e}") from e

    try:
        parsed = json.loads(raw) if raw else {}
    except ValueError as e:
        raise SmsGatewayError(f"SMS gateway returned non-JSON: {_safe_preview(raw)}") from e

    logger.info("SMS accepted by gateway", extra={"to": payload["to"]})
    return parsed if isinstance(parsed, dict) else {"response": parsed}
