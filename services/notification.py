"""
Result email sent after a response is stored.

Runs as a side effect of "response created". The matching range is chosen
with the same first-match rule as the on-screen result, so the email and
the screen always agree.
"""

import html
import logging
from typing import Any, Awaitable, Optional, Protocol

from adapters.email_adapter import EmailMessage, ResendEmailAdapter
from engine.ranges import first_matching_range
from models.enums import EMAIL_DEFAULTS
from models.schemas import Response, ScoreRange, Survey
from utils.cache import forget, mark_seen

logger = logging.getLogger(__name__)

NOTIFICATION_CACHE = "notifications"


class EmailSentRecorder(Protocol):
    def mark_email_sent(self, response_id: str) -> Awaitable[Any]: ...


def format_score(score: float) -> str:
    """Render a score without a trailing .0 for whole numbers."""
    if isinstance(score, float) and score.is_integer():
        return str(int(score))
    return str(score)


def _score_block(response: Response) -> str:
    return (
        '<div style="text-align:center;margin:24px 0;">'
        '<p style="color:#6b7280;font-size:13px;text-transform:uppercase;'
        'letter-spacing:.05em;margin:0 0 4px">Your Score</p>'
        '<p style="color:#f97316;font-size:48px;font-weight:900;margin:0;line-height:1">'
        f"{format_score(response.total_score)}</p>"
        "</div>"
    )


def _range_block(score_range: ScoreRange) -> str:
    parts = []
    if score_range.image_url:
        parts.append(
            f'<img src="{html.escape(score_range.image_url)}" alt="Result" '
            'style="width:100%;max-height:200px;object-fit:cover;border-radius:8px;margin-bottom:16px"/>'
        )
    if score_range.message:
        parts.append(f'<p style="text-align:center;color:#374151">{html.escape(score_range.message)}</p>')
    return "".join(parts)


def build_result_email(survey: Survey, response: Response, to: str) -> EmailMessage:
    """
    Build the result email for one response.

    Args:
        survey: Survey the response belongs to
        response: Stored response
        to: Recipient address

    Returns:
        EmailMessage ready for the adapter
    """
    email_config = survey.email_config
    title = html.escape(survey.title)

    sections = [email_config.body_html or EMAIL_DEFAULTS["body_html"].format(title=title)]
    if survey.result_config.show_score:
        sections.append(_score_block(response))

    matched = first_matching_range(response.total_score, survey.result_config.ranges)
    if matched is not None:
        sections.append(_range_block(matched))

    if email_config.image_url:
        sections.append(
            '<div style="text-align:center;margin-top:24px">'
            f'<img src="{html.escape(email_config.image_url)}" alt="Coupon" style="max-width:100%;border-radius:8px"/>'
            "</div>"
        )

    body = "\n".join(sections)
    document = (
        "<!DOCTYPE html>\n"
        '<html>\n<head><meta charset="utf-8"/></head>\n'
        '<body style="font-family:sans-serif;max-width:480px;margin:0 auto;padding:24px;background:#f9fafb;">\n'
        '<div style="background:white;border-radius:12px;padding:32px;box-shadow:0 1px 3px rgba(0,0,0,.1)">\n'
        f'<div style="text-align:center;margin-bottom:24px"><h2 style="color:#111827;margin:12px 0 4px">{title}</h2></div>\n'
        f"{body}\n"
        "</div>\n</body>\n</html>"
    )

    subject = email_config.subject or EMAIL_DEFAULTS["subject"].format(title=survey.title)
    return EmailMessage(to=[to], subject=subject, html=document)


class ResultNotifier:
    """
    Sends the result email for newly created responses.

    The trigger may fire more than once for the same response; a response id
    handled inside the cache TTL is ignored.

    Args:
        adapter: Email adapter (defaults to Resend)
        recorder: Optional store told when an email went out
    """

    def __init__(
        self,
        adapter: Optional[ResendEmailAdapter] = None,
        recorder: Optional[EmailSentRecorder] = None,
    ):
        self.adapter = adapter or ResendEmailAdapter()
        self.recorder = recorder

    async def handle_response_created(self, survey: Survey, response: Response) -> Response:
        """
        Email the respondent their result when the survey asks for it.

        Returns:
            The response, with email_sent=True when an email was accepted
        """
        if not survey.email_config.enabled:
            return response

        to = response.identification.get("email")
        if not to:
            logger.debug(f"Response {response.id}: no email address, skipping result email")
            return response

        if not self.adapter.is_configured:
            logger.error("RESEND_API_KEY not set, result email skipped")
            return response

        if response.id is not None and not mark_seen(NOTIFICATION_CACHE, response.id):
            logger.info(f"Response {response.id}: result email already handled")
            return response

        try:
            delivery = await self.adapter.send(build_result_email(survey, response, to))
        except Exception:
            if response.id is not None:
                forget(NOTIFICATION_CACHE, response.id)
            raise
        if not delivery.is_sent:
            logger.error(f"Failed to send result email for response {response.id}: {delivery.error}")
            if response.id is not None:
                forget(NOTIFICATION_CACHE, response.id)
            return response

        if self.recorder is not None and response.id is not None:
            await self.recorder.mark_email_sent(response.id)
        logger.info(f"Result email sent to {to} for survey {survey.id}")
        return response.model_copy(update={"email_sent": True})
