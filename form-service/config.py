"""
config.py — Service Configuration
==================================
Everything the handler needs from the outside world, read once at startup.
Nothing here is mutated at request time; create_app() takes a FormConfig and
every layer below receives it explicitly.

Configuration (environment variables):
  ALLOWED_DOMAINS      — Comma-separated allow-list. Each entry also covers its
                         subdomains, except localhost / loopback entries.
  TURNSTILE_SECRET     — Cloudflare Turnstile secret key
  TURNSTILE_VERIFY_URL — Siteverify endpoint (override for testing)
  SMTP2GO_API_KEY      — SMTP2GO API key
  SMTP2GO_URL          — SMTP2GO send endpoint (override for testing)
  SENDER_EMAIL         — From address (must be verified in SMTP2GO)
  RECIPIENT_EMAIL      — Where submissions are delivered
  EMAIL_SUBJECT        — Subject line (default: "📩 New Form Submission")
  FORM_TITLE           — Heading used in both bodies
  FORM_FOOTER          — Footer line of the HTML body
  CLIENT_IP_HEADER     — Trusted proxy header carrying the caller IP
  HTTP_TIMEOUT         — Seconds before an outbound call is abandoned
                         (default 10). Always bounded, never infinite: a slow
                         Turnstile or SMTP2GO answer ends in a 500.
  PREFLIGHT_MAX_AGE    — Access-Control-Max-Age for preflight responses
  EXPOSE_ERRORS        — Include stack traces in 500 responses (default: true)
"""

import os
from dataclasses import dataclass

TURNSTILE_VERIFY_URL = "https://challenges.cloudflare.com/turnstile/v0/siteverify"
SMTP2GO_URL = "https://api.smtp2go.com/v3/email/send"


def _split_domains(raw: str) -> tuple[str, ...]:
    return tuple(d.strip().lower() for d in raw.split(",") if d.strip())


def _flag(raw: str) -> bool:
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class FormConfig:
    allowed_domains: tuple[str, ...] = ()
    turnstile_secret: str = ""
    turnstile_verify_url: str = TURNSTILE_VERIFY_URL
    smtp2go_api_key: str = ""
    smtp2go_url: str = SMTP2GO_URL
    sender_email: str = ""
    recipient_email: str = ""
    subject: str = "📩 New Form Submission"
    title: str = "New Form Submission"
    footer_text: str = "Sent from Contact Form"
    client_ip_header: str = "CF-Connecting-IP"
    http_timeout: float = 10.0
    preflight_max_age: int = 86400
    expose_errors: bool = True

    @classmethod
    def from_env(cls, environ=None) -> "FormConfig":
        env = os.environ if environ is None else environ
        return cls(
            allowed_domains=_split_domains(env.get('ALLOWED_DOMAINS', '')),
            turnstile_secret=env.get('TURNSTILE_SECRET', ''),
            turnstile_verify_url=env.get('TURNSTILE_VERIFY_URL', TURNSTILE_VERIFY_URL),
            smtp2go_api_key=env.get('SMTP2GO_API_KEY', ''),
            smtp2go_url=env.get('SMTP2GO_URL', SMTP2GO_URL),
            sender_email=env.get('SENDER_EMAIL', ''),
            recipient_email=env.get('RECIPIENT_EMAIL', ''),
            subject=env.get('EMAIL_SUBJECT', cls.subject),
            title=env.get('FORM_TITLE', cls.title),
            footer_text=env.get('FORM_FOOTER', cls.footer_text),
            client_ip_header=env.get('CLIENT_IP_HEADER', cls.client_ip_header),
            http_timeout=float(env.get('HTTP_TIMEOUT', '10')),
            preflight_max_age=int(env.get('PREFLIGHT_MAX_AGE', '86400')),
            expose_errors=_flag(env.get('EXPOSE_ERRORS', 'true')),
        )

    def summary(self) -> dict:
        """Redacted view for the health endpoint. Secrets report set/unset only."""
        return {
            "allowed_domains":  list(self.allowed_domains),
            "turnstile_secret": bool(self.turnstile_secret),
            "smtp2go_api_key":  bool(self.smtp2go_api_key),
            "sender":           self.sender_email or "(not set)",
            "recipient":        self.recipient_email or "(not set)",
            "client_ip_header": self.client_ip_header,
            "expose_errors":    self.expose_errors,
        }
