"""
Notification templates and the SMTP-backed sender.

Routes and the Title Hive build `Notification` objects; `send_notification` renders the
plain-text body for its template type and hands it to the mail transport.
"""
from __future__ import annotations

import logging
import os
from typing import Callable, Dict

from app.email_utils import send_text_email
from core.models import Book, Expert, Notification

log = logging.getLogger(__name__)

PLATFORM_NAME = "BookDocker GO2"
FOOTER = f"\n\n--\nThis is an automated message from the {PLATFORM_NAME} platform."


def _platform_url() -> str:
    return (os.getenv("PUBLIC_BASE_URL") or "http://localhost:8000").rstrip("/")


def feedback_inbox() -> str:
    inbox = os.getenv("FEEDBACK_EMAIL") or os.getenv("ADMIN_EMAIL")
    if not inbox:
        raise RuntimeError("Feedback inbox not configured. Set FEEDBACK_EMAIL.")
    return inbox


# -------- builders --------


def inquiry_notification(expert: Expert, book: Book, sender_email: str, message: str) -> Notification:
    return Notification(
        to=expert.email,
        subject=f'Book Inquiry from {PLATFORM_NAME}: "{book.title}"',
        template_type="inquiry",
        template_data={
            "expert_name": expert.name,
            "book_title": book.title,
            "book_author": book.author,
            "book_year": book.year,
            "sender_email": sender_email,
            "message": message,
        },
    )


def contact_notification(expert: Expert, sender_email: str, message: str, links: str | None = None) -> Notification:
    return Notification(
        to=expert.email,
        subject=f"A Message from a {PLATFORM_NAME} User",
        template_type="contact",
        template_data={
            "expert_name": expert.name,
            "sender_email": sender_email,
            "message": message,
            "links": links or "",
        },
    )


def feedback_notification(sender_name: str | None, sender_email: str | None, message: str) -> Notification:
    return Notification(
        to=feedback_inbox(),
        subject=f"New Feedback for {PLATFORM_NAME}",
        template_type="feedback",
        template_data={
            "sender_name": sender_name or "",
            "sender_email": sender_email or "",
            "message": message,
        },
    )


def invite_notification(inviter_name: str, friend_email: str, message: str | None = None) -> Notification:
    return Notification(
        to=friend_email,
        subject=f"{inviter_name} has invited you to {PLATFORM_NAME}!",
        template_type="invite",
        template_data={"inviter_name": inviter_name, "message": message or ""},
    )


# -------- renderers --------


def _render_title_hive_alert(d: Dict) -> str:
    return (
        f"Hello {d['searcher_name']},\n\n"
        f"Good news! A book matching your search query has just been listed by {d['seller_name']}.\n\n"
        f"--- Book Details ---\n"
        f"Title: {d['book_title']}\n"
        f"Author: {d['book_author']}\n\n"
        f"You can view the expert's profile here: {d['profile_url']}"
    )


def _render_inquiry(d: Dict) -> str:
    return (
        f"Hello {d['expert_name']},\n\n"
        f"A user is interested in one of your books. You can reply directly to them at: {d['sender_email']}\n\n"
        f"Book: {d['book_title']}\n"
        f"Author: {d['book_author']}\n"
        f"Year: {d['book_year']}\n\n"
        f"Message from the user:\n{d['message']}"
    )


def _render_contact(d: Dict) -> str:
    body = (
        f"Hello {d['expert_name']},\n\n"
        f"You have received a new message from a user on the platform. "
        f"You can reply directly to them at: {d['sender_email']}\n\n"
        f"Message:\n{d['message']}"
    )
    if d.get("links"):
        body += f"\n\nShared Links: {d['links']}"
    return body


def _render_feedback(d: Dict) -> str:
    return (
        "Hello Administrator,\n\n"
        f"You have received new feedback for the {PLATFORM_NAME} platform.\n\n"
        f"From: {d.get('sender_name') or 'Not provided'}\n"
        f"Email: {d.get('sender_email') or 'Not provided'}\n\n"
        f"Message:\n{d['message']}"
    )


def _render_invite(d: Dict) -> str:
    body = (
        "Hello,\n\n"
        f"Great news! {d['inviter_name']} has invited you to join {PLATFORM_NAME}, "
        "a community for book lovers and expert collectors.\n"
    )
    if d.get("message"):
        body += f"\nThey added a personal message for you:\n{d['message']}\n"
    body += f"\nExplore {PLATFORM_NAME}: {_platform_url()}"
    return body


_RENDERERS: Dict[str, Callable[[Dict], str]] = {
    "title_hive_alert": _render_title_hive_alert,
    "inquiry": _render_inquiry,
    "contact": _render_contact,
    "feedback": _render_feedback,
    "invite": _render_invite,
}


def render_notification(notification: Notification) -> str:
    return _RENDERERS[notification.template_type](notification.template_data) + FOOTER


def _reply_to(notification: Notification) -> str | None:
    if notification.template_type in ("inquiry", "contact", "feedback"):
        return notification.template_data.get("sender_email") or None
    return None


def send_notification(notification: Notification) -> None:
    """Render and send. Transport errors propagate to the caller."""
    body = render_notification(notification)
    send_text_email(notification.to, notification.subject, body, reply_to=_reply_to(notification))
    log.info(
        "Notification sent",
        extra={"to": notification.to, "template_type": notification.template_type},
    )


__all__ = [
    "feedback_inbox",
    "inquiry_notification",
    "contact_notification",
    "feedback_notification",
    "invite_notification",
    "render_notification",
    "send_notification",
]
