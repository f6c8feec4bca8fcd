"""
Form Service
============
Language  : Python
Framework : Flask + Gunicorn

Architecture: isolated layers behind a single form endpoint.
  origin.py     — Origin/Referer allow-list gate
  parsing.py    — multipart / JSON / urlencoded → Submission
  captcha.py    — Cloudflare Turnstile verification
  templates.py  — Plain text + HTML email bodies
  transport.py  — SMTP2GO delivery
  pipeline.py   — Sequential processing pipeline

Run: gunicorn main:app   (or python main.py for the dev server)
"""

import os
import logging
from flask import Flask, Response, current_app, jsonify, request
from werkzeug.exceptions import MethodNotAllowed

import pipeline
from config import FormConfig

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [form-service] %(levelname)s %(message)s'
)
log = logging.getLogger(__name__)

# OPTIONS is listed explicitly so Flask does not answer preflights itself.
# Methods outside this list are caught by method_not_routed() below.
FORM_METHODS = ['GET', 'POST', 'PUT', 'PATCH', 'DELETE', 'OPTIONS']


def _to_response(result: pipeline.FormResult) -> Response:
    if result.body is None:
        resp = Response(status=result.status_code)
    elif isinstance(result.body, str):
        resp = Response(result.body, status=result.status_code, mimetype='text/plain')
    else:
        resp = jsonify(result.body)
        resp.status_code = result.status_code

    if result.allowed_origin:
        resp.headers['Access-Control-Allow-Origin'] = result.allowed_origin
        resp.headers['Vary'] = 'Origin'
    for name, value in result.headers.items():
        resp.headers[name] = value
    return resp


def handle_form():
    config: FormConfig = current_app.config['FORM_CONFIG']
    req = pipeline.FormRequest(
        method=request.method,
        origin=request.headers.get('Origin'),
        referer=request.headers.get('Referer'),
        content_type=request.headers.get('Content-Type'),
        client_ip=request.headers.get(config.client_ip_header),
        body=request.get_data() if request.method == 'POST' else b'',
    )
    return _to_response(pipeline.process(req, config))


def method_not_routed(e: MethodNotAllowed):
    # The router rejects unlisted methods (TRACE, PROPFIND, ...) before any
    # view runs; on the form endpoint they still go through the origin gate.
    if request.path == '/':
        return handle_form()
    return e


def health():
    config: FormConfig = current_app.config['FORM_CONFIG']
    return jsonify({
        "status": "healthy",
        "service": "form-service",
        "language": "Python",
        "captcha": "turnstile (verified when token present)",
        "transport": "smtp2go",
        "config": config.summary(),
    })


def create_app(config: FormConfig | None = None) -> Flask:
    app = Flask(__name__)
    app.config['FORM_CONFIG'] = config or FormConfig.from_env()
    app.add_url_rule('/health', 'health', health, methods=['GET'])
    app.add_url_rule('/', 'handle_form', handle_form, methods=FORM_METHODS)
    app.register_error_handler(MethodNotAllowed, method_not_routed)
    return app


app = create_app()


if __name__ == '__main__':
    port = int(os.environ.get('PORT', 3010))
    config = app.config['FORM_CONFIG']
    log.info(f"Form Service (Python) starting on :{port}")
    log.info(f"  Allowed domains: {', '.join(config.allowed_domains) or '(none — all requests rejected)'}")
    log.info(f"  Turnstile secret: {'set' if config.turnstile_secret else 'NOT SET'}")
    log.info(f"  Recipient: {config.recipient_email or 'NOT SET'}")
    app.run(host='0.0.0.0', port=port)
