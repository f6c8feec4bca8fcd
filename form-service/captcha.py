"""
captcha.py — Turnstile Verification
====================================
This is the ONLY file that knows about Cloudflare Turnstile.

Verification is optional: the pipeline only calls verify() when the form
carried a cf-turnstile-response token. One POST, no retries. Network and
decode errors propagate to the pipeline's error boundary.
"""

import json
import logging
import urllib.parse
import urllib.request
from dataclasses import dataclass, field

from config import FormConfig

log = logging.getLogger(__name__)


@dataclass
class VerificationResult:
    success: bool
    error_codes: list[str] = field(default_factory=list)


def verify(token: str, remote_ip: str | None, config: FormConfig) -> VerificationResult:
    form = {"secret": config.turnstile_secret, "response": token}
    if remote_ip:
        form["remoteip"] = remote_ip

    req = urllib.request.Request(
        config.turnstile_verify_url,
        data=urllib.parse.urlencode(form).encode("utf-8"),
        headers={"Content-Type": "application/x-www-form-urlencoded"},
        method="POST",
    )
    with urllib.request.urlopen(req, timeout=config.http_timeout) as resp:
        result = json.loads(resp.read())

    verification = VerificationResult(
        success=bool(result.get("success")),
        error_codes=list(result.get("error-codes") or []),
    )
    if not verification.success:
        log.warning(f"Turnstile rejected token: ip={remote_ip} codes={verification.error_codes}")
    return verification
