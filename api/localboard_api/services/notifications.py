"""Mail bodies sent to listing submitters and the support inbox."""

from __future__ import annotations

from dataclasses import dataclass
from html import escape
from typing import Any

SITE_NAME = "The Local Board"

_PAGE = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>{title} - {site}</title>
  <style>
    body {{ font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px; }}
    .container {{ background-color: #f9f9f9; padding: 30px; border-radius: 8px; }}
    .details {{ background-color: white; padding: 20px; border-radius: 6px; margin: 20px 0; }}
    .notice {{ background-color: #fff3cd; padding: 15px; border-radius: 6px; margin: 20px 0; }}
  </style>
</head>
<body>
  <div class="container">
    <h1>{title}</h1>
    {body}
    <p>Best regards,<br>{site} Team</p>
  </div>
</body>
</html>
"""


@dataclass(frozen=True, slots=True)
class RenderedMail:
    subject: str
    html: str


def kind_label(kind: str) -> str:
    return "event" if kind == "events" else "service"


def _details(kind: str, listing: dict[str, Any]) -> str:
    rows = [f"<h3>{escape(str(listing.get('title', '')))}</h3>"]
    if kind == "events":
        rows.append(f"<p><strong>Date:</strong> {escape(str(listing.get('date', '')))}</p>")
        rows.append(f"<p><strong>Location:</strong> {escape(listing.get('location') or 'Not specified')}</p>")
    else:
        rows.append(f"<p><strong>Offered by:</strong> {escape(str(listing.get('owner', '')))}</p>")
    if listing.get("neighborhood"):
        place = f"{listing['neighborhood']}, {listing.get('city', '')}".rstrip(", ")
        rows.append(f"<p><strong>Neighborhood:</strong> {escape(place)}</p>")
    return '<div class="details">' + "".join(rows) + "</div>"


def _page(title: str, body: str) -> str:
    return _PAGE.format(title=escape(title), site=SITE_NAME, body=body)


def render_submission_received(kind: str, listing: dict[str, Any]) -> RenderedMail:
    label = kind_label(kind)
    body = (
        f"<p>Thanks for submitting your {label} to {SITE_NAME}. It will appear publicly once it has been reviewed.</p>"
        f"{_details(kind, listing)}"
        '<div class="notice">'
        f"<p><strong>Keep this removal code:</strong> <code>{escape(str(listing.get('internal_id', '')))}</code></p>"
        f"<p>To take the {label} down later, send this code (or the email address you submitted with) "
        "as the removal credential. We cannot recover it for you.</p>"
        "</div>"
    )
    return RenderedMail(
        subject=f'We received your {label} "{listing.get("title", "")}"',
        html=_page(f"{label.capitalize()} submitted", body),
    )


def render_approved(kind: str, listing: dict[str, Any]) -> RenderedMail:
    label = kind_label(kind)
    body = (
        f"<p>Great news! Your {label} has been approved and is now live on {SITE_NAME}.</p>"
        f"{_details(kind, listing)}"
        "<p>Thank you for contributing to your local community!</p>"
    )
    return RenderedMail(
        subject=f'Your {label} "{listing.get("title", "")}" has been approved!',
        html=_page(f"{label.capitalize()} approved", body),
    )


def render_rejected(kind: str, listing: dict[str, Any], reasons: list[str]) -> RenderedMail:
    """``reasons`` holds one line per failing dimension, e.g. ``"Content: ..."``."""
    label = kind_label(kind)
    items = "".join(f"<li>{escape(reason)}</li>" for reason in reasons) or "<li>Did not meet our guidelines</li>"
    body = (
        f"<p>Thank you for your submission. Unfortunately your {label} could not be published yet.</p>"
        f"{_details(kind, listing)}"
        f"<p><strong>What needs attention:</strong></p><ul>{items}</ul>"
        f"<p>You are welcome to adjust the {label} and submit it again. "
        "Reply to this email if you think this was a mistake.</p>"
    )
    return RenderedMail(
        subject=f'Your {label} "{listing.get("title", "")}" needs review',
        html=_page(f"{label.capitalize()} needs review", body),
    )


def _support_summary(subject: str, message: str, listing_url: str | None) -> str:
    rows = [f"<p><strong>Subject:</strong> {escape(subject)}</p>"]
    if listing_url:
        url = escape(listing_url, quote=True)
        rows.append(f'<p><strong>Related listing:</strong> <a href="{url}">{url}</a></p>')
    rows.append(f"<p><strong>Message:</strong></p><p>{escape(message).replace(chr(10), '<br>')}</p>")
    return "".join(rows)


def render_support_request(
    *,
    name: str,
    email: str,
    subject: str,
    message: str,
    listing_url: str | None = None,
) -> RenderedMail:
    body = (
        '<div class="details">'
        f"<p><strong>Name:</strong> {escape(name)}</p>"
        f"<p><strong>Email:</strong> {escape(email)}</p>"
        f"{_support_summary(subject, message, listing_url)}"
        "</div>"
        f"<p>Sent from the {SITE_NAME} support form.</p>"
    )
    return RenderedMail(subject=f"Support Request: {subject}", html=_page("Support request", body))


def render_support_acknowledgement(
    *,
    name: str,
    subject: str,
    message: str,
    listing_url: str | None = None,
) -> RenderedMail:
    body = (
        f"<p>Hi {escape(name)},</p>"
        f"<p>Thank you for contacting {SITE_NAME} support. We have received your message and will get back "
        "to you as soon as possible, typically within 24-48 hours.</p>"
        f'<div class="details"><h3>Your message</h3>{_support_summary(subject, message, listing_url)}</div>'
        "<p>If you have any urgent concerns, please reach out again.</p>"
    )
    return RenderedMail(
        subject="We've received your support request",
        html=_page("Thank you for contacting us!", body),
    )
