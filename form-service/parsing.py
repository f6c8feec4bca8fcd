"""
parsing.py — Input Normalizer
==============================
Turns a raw request body into a Submission, whatever encoding the form used.

select_strategy() is a pure function of the Content-Type header:
  multipart/form-data  → MULTIPART  (fields + base64 file attachments)
  application/json     → JSON       (flat object)
  anything else        → URLENCODED (key=value&...)

Malformed bodies raise. The pipeline's error boundary turns that into a 500.
"""

import base64
import enum
import io
import json
import logging
from dataclasses import dataclass, field
from urllib.parse import parse_qsl

from werkzeug.formparser import FormDataParser
from werkzeug.http import parse_options_header

log = logging.getLogger(__name__)

# Reserved: carried in the submission, never rendered into the email
TURNSTILE_FIELD = "cf-turnstile-response"

DEFAULT_MIMETYPE = "application/octet-stream"


class ParseStrategy(enum.Enum):
    MULTIPART = "multipart"
    JSON = "json"
    URLENCODED = "urlencoded"


@dataclass(frozen=True)
class Attachment:
    filename: str
    mimetype: str
    fileblob: str   # base64 of the uploaded bytes

    def as_payload(self) -> dict:
        return {"filename": self.filename, "mimetype": self.mimetype, "fileblob": self.fileblob}


@dataclass
class Submission:
    fields: dict[str, str] = field(default_factory=dict)
    attachments: list[Attachment] = field(default_factory=list)

    @property
    def turnstile_token(self) -> str | None:
        return self.fields.get(TURNSTILE_FIELD) or None

    def rendered_fields(self) -> list[tuple[str, str]]:
        """Fields in submission order, minus the reserved token."""
        return [(k, v) for k, v in self.fields.items() if k != TURNSTILE_FIELD]


def select_strategy(content_type: str | None) -> ParseStrategy:
    content_type = content_type or ""
    if "multipart/form-data" in content_type:
        return ParseStrategy.MULTIPART
    if "application/json" in content_type:
        return ParseStrategy.JSON
    return ParseStrategy.URLENCODED


def _field_text(value) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def _parse_multipart(content_type: str, body: bytes) -> Submission:
    mimetype, options = parse_options_header(content_type)
    parser = FormDataParser(silent=False)
    _, form, files = parser.parse(io.BytesIO(body), mimetype, len(body), options)

    submission = Submission()
    for key, value in form.items(multi=True):
        submission.fields[key] = value

    for _, storage in files.items(multi=True):
        content = storage.read()
        # Browsers send an empty, nameless part for an untouched file input
        if not storage.filename and not content:
            continue
        submission.attachments.append(Attachment(
            filename=storage.filename or "",
            mimetype=storage.mimetype or DEFAULT_MIMETYPE,
            fileblob=base64.b64encode(content).decode("ascii"),
        ))
    return submission


def _parse_json(body: bytes) -> Submission:
    data = json.loads(body.decode("utf-8") if body else "")
    if not isinstance(data, dict):
        raise ValueError(f"JSON body must be an object, got {type(data).__name__}")
    return Submission(fields={str(k): _field_text(v) for k, v in data.items()})


def _parse_urlencoded(body: bytes) -> Submission:
    text = body.decode("utf-8", errors="replace")
    return Submission(fields=dict(parse_qsl(text, keep_blank_values=True)))


def parse_submission(content_type: str | None, body: bytes) -> Submission:
    strategy = select_strategy(content_type)
    if strategy is ParseStrategy.MULTIPART:
        submission = _parse_multipart(content_type, body)
    elif strategy is ParseStrategy.JSON:
        submission = _parse_json(body)
    else:
        submission = _parse_urlencoded(body)

    log.info(f"Parsed {strategy.value} body: fields={list(submission.fields)} "
             f"attachments={len(submission.attachments)}")
    return submission
