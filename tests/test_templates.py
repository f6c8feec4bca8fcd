from config import FormConfig
from parsing import TURNSTILE_FIELD, Attachment, Submission
from templates import render, render_text

CONFIG = FormConfig()


def _submission(attachments=()):
    return Submission(
        fields={"name": "A", TURNSTILE_FIELD: "secret-token", "email": "b@c.com"},
        attachments=list(attachments),
    )


def test_text_body_lists_fields_in_order_without_token():
    text, _ = render(_submission(), CONFIG)
    assert text == "New Form Submission\n\nname: A\nemail: b@c.com\n"
    assert "cf-turnstile-response" not in text
    assert "secret-token" not in text


def test_text_body_lists_attachments():
    atts = [Attachment("a.pdf", "application/pdf", "QQ=="), Attachment("b.png", "image/png", "Qg==")]
    text = render_text([("name", "A")], atts, "Title")
    assert text.endswith("name: A\n\n📎 Attachments: 2 file(s)\n  - a.pdf\n  - b.png\n")


def test_html_body_has_one_row_per_field():
    _, html = render(_submission(), CONFIG)
    assert html.count("<tr>") == 2
    assert "name:</td>" in html
    assert ">b@c.com</td>" in html
    assert "secret-token" not in html
    assert "<h2" in html and "New Form Submission</h2>" in html
    assert "Sent from Contact Form" in html


def test_html_body_attachment_rows():
    atts = [Attachment("report.csv", "text/csv", "eA==")]
    _, html = render(_submission(atts), CONFIG)
    assert "📎 Attachments: 1 file(s)" in html
    assert "report.csv" in html
    # two field rows, one count row, one row per attachment
    assert html.count("<tr>") == 4


def test_html_body_without_attachments_has_no_attachment_rows():
    _, html = render(_submission(), CONFIG)
    assert "Attachments" not in html


def test_html_escapes_submitted_values():
    sub = Submission(fields={"<b>key</b>": '<script>alert("x")</script>'},
                     attachments=[Attachment("<img src=x>.txt", "text/plain", "")])
    text, html = render(sub, CONFIG)
    assert "<script>" not in html
    assert "&lt;script&gt;alert(&quot;x&quot;)&lt;/script&gt;" in html
    assert "&lt;b&gt;key&lt;/b&gt;:" in html
    assert "&lt;img src=x&gt;.txt" in html
    # Plain text goes out as submitted
    assert '<b>key</b>: <script>alert("x")</script>' in text


def test_custom_title_and_footer():
    cfg = FormConfig(title="Quote Request", footer_text="Sent from acme.test")
    text, html = render(_submission(), cfg)
    assert text.startswith("Quote Request\n\n")
    assert "Quote Request</h2>" in html
    assert "Sent from acme.test" in html
