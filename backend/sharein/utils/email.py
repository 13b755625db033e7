import html
import logging
from urllib.error import URLError

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from sharein.core.config import Settings

logger = logging.getLogger("sharein")


class MailError(Exception):
    def __init__(self, message: str, retryable: bool = False):
        super().__init__(message)
        self.retryable = retryable


class Mailer:
    """Sends transactional mail through the SendGrid API."""

    def __init__(self, settings: Settings):
        self.from_email = settings.EMAIL_FROM
        self.from_name = settings.EMAIL_FROM_NAME
        self.client = SendGridAPIClient(settings.SENDGRID_API_KEY)
        self.client.client.timeout = settings.MAIL_TIMEOUT_SECONDS

    def send(self, to_email: str, subject: str, html_body: str, text_body: str) -> None:
        message = Mail(
            from_email=(self.from_email, self.from_name),
            to_emails=to_email,
            subject=subject,
            html_content=html_body,
            plain_text_content=text_body,
        )
        try:
            response = self.client.send(message)
        except TimeoutError as e:
            raise MailError(f"SendGrid timed out: {e}", retryable=True) from e
        except URLError as e:
            # Transport failures arrive wrapped; a timeout shows up as the reason.
            timed_out = isinstance(e.reason, TimeoutError)
            raise MailError(f"SendGrid unreachable: {e.reason}", retryable=timed_out) from e
        except Exception as e:
            # python_http_client raises its own HTTPError subclasses for 4xx/5xx.
            status = getattr(e, "status_code", None)
            raise MailError(f"SendGrid API error: {status or e}", retryable=status in (429, 503)) from e

        if response.status_code != 202:
            raise MailError(f"SendGrid API error: {response.status_code}, {response.body}")
        logger.info("Mail '%s' accepted for %s", subject, to_email)


def render_share_email(sharer_name: str | None, sharer_email: str, file_name: str, file_type: str, share_url: str) -> tuple[str, str, str]:
    """Build the subject, HTML body and text body of a file-shared notice."""
    display = sharer_name or sharer_email
    subject = f"{display} shared a file with you"

    e = html.escape
    html_body = f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>File Shared With You</title>
  <style>
    body {{ font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px; }}
    .container {{ background-color: #f9f9f9; border-radius: 8px; padding: 25px; }}
    h1 {{ color: #2c3e50; font-size: 24px; margin: 0; text-align: center; }}
    .file-info {{ background-color: #ffffff; border-radius: 6px; padding: 15px; margin: 20px 0; border-left: 4px solid #3498db; }}
    .file-name {{ font-weight: bold; margin-bottom: 5px; }}
    .user-info {{ color: #666; font-style: italic; margin-bottom: 20px; }}
    .button {{ display: inline-block; background-color: #3498db; color: white; text-decoration: none; padding: 12px 24px; border-radius: 4px; font-weight: bold; }}
    .footer {{ margin-top: 30px; font-size: 12px; color: #999; text-align: center; }}
  </style>
</head>
<body>
  <div class="container">
    <h1>File Shared With You</h1>
    <p>Hello,</p>
    <p><strong>{e(display)}</strong> has shared a file with you on ShareIn.</p>
    <div class="file-info">
      <div class="file-name">{e(file_name)}</div>
      <div class="file-type">Type: {e(file_type)}</div>
    </div>
    <div class="user-info">Shared by: {e(sharer_name or '')} ({e(sharer_email)})</div>
    <p>You can access this file by clicking the button below:</p>
    <div style="text-align: center; margin: 30px 0;">
      <a href="{e(share_url)}" class="button">Open File</a>
    </div>
    <p>If the button doesn't work, you can copy and paste this link into your browser:</p>
    <p style="word-break: break-all;"><a href="{e(share_url)}">{e(share_url)}</a></p>
    <div class="footer">
      <p>This is an automated email from ShareIn. Please do not reply to this email.</p>
    </div>
  </div>
</body>
</html>"""

    text_body = f"""Hello,

{display} has shared a file with you on ShareIn.

File: {file_name}
Type: {file_type}
Shared by: {sharer_name or ''} ({sharer_email})

You can access this file by visiting: {share_url}

This is an automated email from ShareIn. Please do not reply to this email."""
    return subject, html_body, text_body
