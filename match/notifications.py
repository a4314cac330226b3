# match/notifications.py
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from django.conf import settings
from django.core.mail import send_mass_mail

logger = logging.getLogger(__name__)

FRIEND_PLACEHOLDER = "[Friend's Name]"
OTHER_FRIEND_PLACEHOLDER = "[Other Friend's Name]"


@dataclass(frozen=True)
class FriendSummary:
    name: str
    bio: str = ''
    interests: List[str] = field(default_factory=list)
    occupation: str = ''
    education: str = ''
    matcher_name: str = ''
    email: str = ''

    @classmethod
    def from_card(cls, card) -> 'FriendSummary':
        return cls(
            name=card.friend_name,
            bio=card.bio or '',
            interests=list(card.interests or []),
            occupation=card.occupation or '',
            education=card.get_education_level_display() if card.education_level else '',
            matcher_name=card.matcher_name,
            email=card.friend_email or '',
        )


@dataclass(frozen=True)
class IntroductionEmail:
    subject: str
    email_body: str


def _join(items: List[str]) -> str:
    items = list(items)
    if len(items) <= 1:
        return ''.join(items)
    return f"{', '.join(items[:-1])} and {items[-1]}"


def render_introduction_email(friend_a: FriendSummary, friend_b: FriendSummary) -> IntroductionEmail:
    """Build the shared introduction; the same body goes to both friends."""
    matchers = [friend_a.matcher_name or 'your matchmaker']
    if friend_b.matcher_name and friend_b.matcher_name != friend_a.matcher_name:
        matchers.append(friend_b.matcher_name)
    signed = ' & '.join(matchers)

    tags_a = {tag.strip().lower(): tag.strip() for tag in friend_a.interests if tag.strip()}
    tags_b = {tag.strip().lower() for tag in friend_b.interests if tag.strip()}
    shared = [tags_a[key] for key in sorted(tags_a) if key in tags_b]

    if shared:
        common = f"You both love {_join(shared[:3])}, so we suspect the conversation will come easily."
    elif friend_a.occupation and friend_b.occupation:
        common = (
            f"One of you works as {friend_a.occupation} and the other as {friend_b.occupation}, "
            f"which should make for some fun stories."
        )
    else:
        common = "We think your personalities would complement each other really well."

    body = (
        f"Hi {FRIEND_PLACEHOLDER},\n\n"
        f"{_join(matchers)} have been talking, and we think you might really get along "
        f"with {OTHER_FRIEND_PLACEHOLDER}.\n\n"
        f"{common}\n\n"
        f"No pressure at all. Just reply to your matchmaker and let them know if you'd like "
        f"to be connected with {OTHER_FRIEND_PLACEHOLDER}.\n\n"
        f"Warmly,\n{signed}\n"
    )
    return IntroductionEmail(
        subject=f"Someone we think you should meet, {FRIEND_PLACEHOLDER}",
        email_body=body,
    )


def personalize(email: IntroductionEmail, recipient: FriendSummary, other: FriendSummary) -> IntroductionEmail:
    def fill(text):
        return text.replace(FRIEND_PLACEHOLDER, recipient.name).replace(OTHER_FRIEND_PLACEHOLDER, other.name)

    return IntroductionEmail(subject=fill(email.subject), email_body=fill(email.email_body))


class EmailIntroductionDispatcher:
    """Sends one personalised introduction to each friend that has an address."""

    def __init__(self, from_email: Optional[str] = None):
        self.from_email = from_email or settings.INTRODUCTION_FROM_EMAIL

    def send(self, match_id, friend_a: FriendSummary, friend_b: FriendSummary) -> int:
        template = render_introduction_email(friend_a, friend_b)
        messages = []
        for recipient, other in ((friend_a, friend_b), (friend_b, friend_a)):
            if not recipient.email:
                logger.warning(f"Introduction for match {match_id}: no email for {recipient.name}, skipped")
                continue
            email = personalize(template, recipient, other)
            messages.append((email.subject, email.email_body, self.from_email, [recipient.email]))

        if not messages:
            return 0
        sent = send_mass_mail(tuple(messages), fail_silently=False)
        logger.info(f"Introduction for match {match_id}: {sent} email(s) sent")
        return sent
