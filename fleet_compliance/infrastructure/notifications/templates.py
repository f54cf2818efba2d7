"""
HTML email template for compliance notifications.
"""

import html
from datetime import datetime

_EMAIL_TEMPLATE = """\
<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>{subject}</title>
  <style>
    body {{ font-family: Arial, sans-serif; line-height: 1.6; color: #333; }}
    .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
    .header {{ background: #dc3545; color: white; padding: 20px; text-align: center; }}
    .content {{ background: #f9f9f9; padding: 20px; }}
    .footer {{ background: #eee; padding: 10px; text-align: center; font-size: 12px; }}
    .urgent {{ color: #dc3545; font-weight: bold; }}
  </style>
</head>
<body>
  <div class="container">
    <div class="header"><h1>{subject}</h1></div>
    <div class="content">
      <p>{greeting}</p>
      <p class="urgent">{message}</p>
      <p>Please log into your company account to upload renewed documents and keep your fleet compliant.</p>
      <p>If documents have already been renewed, make sure they are uploaded promptly.</p>
    </div>
    <div class="footer"><p>&copy; {year} {sender}. All rights reserved.</p></div>
  </div>
</body>
</html>
"""


def render_email_html(subject: str, body: str, sender: str) -> str:
    """Wrap a plain-text body (greeting line, blank line, message) in the HTML layout."""
    greeting, _, message = body.partition("\n\n")
    if not message:
        greeting, message = "", greeting
    return _EMAIL_TEMPLATE.format(
        subject=html.escape(subject),
        greeting=html.escape(greeting),
        message=html.escape(message).replace("\n", "<br>"),
        year=datetime.utcnow().year,
        sender=html.escape(sender),
    )
