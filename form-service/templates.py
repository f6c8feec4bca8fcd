"""
templates.py — Submission Renderer
===================================
Renders a Submission into (body_text, body_html).

Both bodies list the fields in submission order, skipping the reserved
Turnstile token, followed by the attachment filenames when there are any.
Everything interpolated into the HTML body is escaped; the plain text body
is sent as submitted.
"""

from html import escape

from config import FormConfig
from parsing import Attachment, Submission

# ── Shared styles ─────────────────────────────────────────────────────────────

_CELL = "padding: 10px; border-bottom: 1px solid #eee;"
_LABEL = f"{_CELL} font-weight: bold; color: #555;"


# ── Plain text ────────────────────────────────────────────────────────────────

def render_text(fields: list[tuple[str, str]], attachments: list[Attachment], title: str) -> str:
    lines = [f"{title}\n\n"]
    lines += [f"{key}: {value}\n" for key, value in fields]
    if attachments:
        lines.append(f"\n📎 Attachments: {len(attachments)} file(s)\n")
        lines += [f"  - {att.filename}\n" for att in attachments]
    return "".join(lines)


# ── HTML ──────────────────────────────────────────────────────────────────────

def _field_row(key: str, value: str) -> str:
    return f"""
            <tr>
              <td style="{_LABEL}">{escape(key)}:</td>
              <td style="{_CELL}">{escape(value)}</td>
            </tr>"""


def _attachment_rows(attachments: list[Attachment]) -> str:
    rows = [f"""
            <tr>
              <td colspan="2" style="{_LABEL}">
                📎 Attachments: {len(attachments)} file(s)
              </td>
            </tr>"""]
    for att in attachments:
        rows.append(f"""
            <tr>
              <td colspan="2" style="{_CELL} padding-left: 30px; color: #777;">
                {escape(att.filename)}
              </td>
            </tr>""")
    return "".join(rows)


def _html_wrap(title: str, rows: str, footer: str) -> str:
    return f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
          <h2 style="color: #333; border-bottom: 2px solid #1e3a8a; padding-bottom: 10px;">{escape(title)}</h2>
          <table style="width: 100%; border-collapse: collapse;">{rows}
          </table>
          <p style="margin-top: 20px; color: #999; font-size: 12px;">{escape(footer)}</p>
        </div>
    """


def render_html(fields: list[tuple[str, str]], attachments: list[Attachment],
                title: str, footer: str) -> str:
    rows = "".join(_field_row(key, value) for key, value in fields)
    if attachments:
        rows += _attachment_rows(attachments)
    return _html_wrap(title, rows, footer)


def render(submission: Submission, config: FormConfig) -> tuple[str, str]:
    """Returns (body_text, body_html)."""
    fields = submission.rendered_fields()
    return (
        render_text(fields, submission.attachments, config.title),
        render_html(fields, submission.attachments, config.title, config.footer_text),
    )
