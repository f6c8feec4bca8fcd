"""
pipeline.py — Form Processing Pipeline
=======================================
Executes the processing pipeline for every inbound request.
Each step is a rejection point. Transport is the last step.

Steps:
1. Origin gate (Origin, then Referer, against the allow-list)
2. CORS preflight short-circuit
3. Method gate (POST only)
4. Parse body into a Submission
5. Verify Turnstile token, if one was submitted
6. Render text and HTML bodies
7. Hand off to transport layer and return the result

Steps 4-7 sit behind a single error boundary: any exception becomes a 500
carrying the message and trace. Every path ends in exactly one FormResult.
"""

import logging
import traceback
import uuid
from dataclasses import dataclass, field

import captcha
import origin
import parsing
import templates
import transport
from config import FormConfig

log = logging.getLogger(__name__)

ACCESS_DENIED_MESSAGE = "Access denied. This form is only accessible from authorized domains."


@dataclass
class FormRequest:
    method: str
    origin: str | None
    referer: str | None
    content_type: str | None
    client_ip: str | None
    body: bytes = b""


@dataclass
class FormResult:
    kind: str              # "preflight" | "method_not_allowed" | "access_denied" |
                           # "verification_failed" | "delivery_failed" |
                           # "internal_error" | "sent"
    status_code: int
    body: dict | str | None
    allowed_origin: str | None = None
    headers: dict = field(default_factory=dict)


def _access_denied() -> FormResult:
    return FormResult(
        kind="access_denied",
        status_code=403,
        body={"error": "Forbidden", "message": ACCESS_DENIED_MESSAGE},
    )


def _preflight(allowed_origin: str, config: FormConfig) -> FormResult:
    return FormResult(
        kind="preflight",
        status_code=204,
        body=None,
        allowed_origin=allowed_origin,
        headers={
            "Access-Control-Allow-Methods": "POST, OPTIONS",
            "Access-Control-Allow-Headers": "Content-Type",
            "Access-Control-Max-Age": str(config.preflight_max_age),
        },
    )


def _internal_error(exc: Exception, allowed_origin: str, config: FormConfig) -> FormResult:
    body = {"error": "Internal server error", "message": str(exc)}
    if config.expose_errors:
        body["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return FormResult(kind="internal_error", status_code=500, body=body,
                      allowed_origin=allowed_origin)


def _handle_submission(req: FormRequest, allowed_origin: str, config: FormConfig,
                       request_id: str) -> FormResult:
    # ── Step 4: Parse ─────────────────────────────────────────────────────────
    submission = parsing.parse_submission(req.content_type, req.body)

    # ── Step 5: Turnstile (optional) ──────────────────────────────────────────
    token = submission.turnstile_token
    if token:
        verification = captcha.verify(token, req.client_ip, config)
        if not verification.success:
            log.warning(f"[{request_id}] Turnstile verification failed")
            return FormResult(
                kind="verification_failed",
                status_code=400,
                body={"error": "Turnstile verification failed"},
                allowed_origin=allowed_origin,
            )

    # ── Step 6: Render ────────────────────────────────────────────────────────
    text_body, html_body = templates.render(submission, config)

    # ── Step 7: Transport ─────────────────────────────────────────────────────
    payload = transport.build_payload(config, text_body, html_body, submission.attachments)
    delivery = transport.deliver(payload, config)
    if not delivery.ok:
        log.error(f"[{request_id}] Delivery failed with status {delivery.status}")
        return FormResult(
            kind="delivery_failed",
            status_code=500,
            body={"error": "Failed to send email", "details": delivery.details},
            allowed_origin=allowed_origin,
        )

    log.info(f"[{request_id}] Sent — fields={len(submission.rendered_fields())} "
             f"attachments={len(submission.attachments)}")
    return FormResult(
        kind="sent",
        status_code=200,
        body={
            "success": True,
            "message": "Email sent successfully",
            "attachments_count": len(submission.attachments),
        },
        allowed_origin=allowed_origin,
    )


def process(req: FormRequest, config: FormConfig) -> FormResult:
    request_id = uuid.uuid4().hex[:8]
    log.info(f"[{request_id}] {req.method} origin={req.origin!r} content_type={req.content_type!r}")

    # ── Step 1: Origin gate ───────────────────────────────────────────────────
    resolution = origin.resolve_origin(req.origin, req.referer, config.allowed_domains)
    if resolution is None:
        return _access_denied()
    allowed_origin = resolution.origin

    # ── Step 2: Preflight ─────────────────────────────────────────────────────
    if req.method == "OPTIONS":
        return _preflight(allowed_origin, config)

    # ── Step 3: Method gate ───────────────────────────────────────────────────
    if req.method != "POST":
        log.warning(f"[{request_id}] Method {req.method} not allowed")
        return FormResult(kind="method_not_allowed", status_code=405, body="Method Not Allowed")

    # ── Steps 4-7: behind the error boundary ──────────────────────────────────
    try:
        return _handle_submission(req, allowed_origin, config, request_id)
    except Exception as e:
        log.exception(f"[{request_id}] Unhandled error: {e}")
        return _internal_error(e, allowed_origin, config)
