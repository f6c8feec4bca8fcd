"""
transport.py — Email Transport Layer
=====================================
This is the ONLY file that knows about SMTP2GO (or any delivery mechanism).
Everything above this layer hands over rendered bodies and attachments.

One JSON POST per submission, no retries. Non-2xx answers are read and
returned as a failed DeliveryResult rather than raised, so the caller can
pass the upstream details through verbatim.
"""

import json
import logging
import urllib.error
import urllib.request
from dataclasses import dataclass

from config import FormConfig
from parsing import Attachment

log = logging.getLogger(__name__)


@dataclass
class DeliveryResult:
    ok: bool
    status: int
    details: object     # Parsed upstream response body


def build_payload(config: FormConfig, text_body: str, html_body: str,
                  attachments: list[Attachment]) -> dict:
    payload = {
        "api_key":   config.smtp2go_api_key,
        "to":        [config.recipient_email],
        "sender":    config.sender_email,
        "subject":   config.subject,
        "text_body": text_body,
        "html_body": html_body,
    }
    if attachments:
        payload["attachments"] = [att.as_payload() for att in attachments]
    return payload


def _upstream_error(details) -> bool:
    if not isinstance(details, dict):
        return False
    data = details.get("data")
    return isinstance(data, dict) and bool(data.get("error"))


def _post_json(url: str, payload: dict, timeout: float) -> tuple[int, bytes]:
    req = urllib.request.Request(
        url,
        data=json.dumps(payload).encode("utf-8"),
        headers={"Content-Type": "application/json", "Accept": "application/json"},
        method="POST",
    )
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            return resp.status, resp.read()
    except urllib.error.HTTPError as e:
        return e.code, e.read()


def deliver(payload: dict, config: FormConfig) -> DeliveryResult:
    """
    Sends one payload. SMTP2GO accepted it only when the status is 2xx and the
    parsed body carries no data.error; anything else comes back with ok=False.
    """
    status, raw = _post_json(config.smtp2go_url, payload, config.http_timeout)
    details = json.loads(raw)

    ok = 200 <= status < 300 and not _upstream_error(details)
    if ok:
        log.info(f"Delivered: to={payload['to']} attachments={len(payload.get('attachments', []))}")
    else:
        log.error(f"SMTP2GO rejected send: status={status} details={details}")
    return DeliveryResult(ok=ok, status=status, details=details)
