"""
Notification grouping engine.

Turns raw notification events into de-duplicated display groups:

- every follow event lands in one global "follow" group
- every other event is grouped by (type, card), so likes on two different
  cards never merge and a like never merges with a comment
- each group lists its distinct actors, most recent first
- a group reads as unread until every member event is read

Also provides the display helpers built on top of a group (text and link).
All functions here are pure: they operate on a snapshot and do no I/O.
"""

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional


FOLLOW_GROUP_KEY = "follow"
NO_CARD = "no-card"

SUPPORTED_LOCALES = ("en", "ru")
DEFAULT_LOCALE = "en"


class EventType(enum.Enum):
    """
    Known notification event types.

    Tags outside this set parse to UNKNOWN; the original tag string is kept
    on the event so it survives grouping unchanged.
    """

    LIKE = "like"
    COMMENT = "comment"
    COMMENT_LIKE = "comment_like"
    FOLLOW = "follow"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, tag: Optional[str]) -> "EventType":
        for member in cls:
            if member is not cls.UNKNOWN and member.value == tag:
                return member
        return cls.UNKNOWN


@dataclass(frozen=True)
class Actor:
    """User who triggered an event."""

    id: str
    username: str
    avatar: Optional[str] = None


@dataclass(frozen=True)
class NotificationEvent:
    """A raw event row, enriched with actor profile and card title."""

    id: str
    type: str
    created_at: datetime
    is_read: bool
    actor: Optional[Actor] = None
    card_id: Optional[str] = None
    card_title: Optional[str] = None

    @property
    def kind(self) -> EventType:
        return EventType.parse(self.type)


@dataclass
class NotificationGroup:
    """
    Display group derived from one or more events.

    Attributes:
        key: Grouping key ("follow" or "{type}::{card_id|no-card}")
        type: Event type tag shared by all members
        actors: Distinct actors, most recent first
        event_ids: Ids of every member event
        card_id / card_title: Target card, if any
        latest_at: Newest member created_at
        is_read: True only if every member event is read
    """

    key: str
    type: str
    actors: List[Actor] = field(default_factory=list)
    event_ids: List[str] = field(default_factory=list)
    card_id: Optional[str] = None
    card_title: Optional[str] = None
    latest_at: Optional[datetime] = None
    is_read: bool = True

    @property
    def kind(self) -> EventType:
        return EventType.parse(self.type)

    @property
    def count(self) -> int:
        return len(self.event_ids)


def group_key(event: NotificationEvent) -> str:
    """Grouping key: all follows share one group, the rest group by type and card."""
    if event.kind is EventType.FOLLOW:
        return FOLLOW_GROUP_KEY
    return f"{event.type}::{event.card_id or NO_CARD}"


def group_notifications(events: Iterable[NotificationEvent]) -> List[NotificationGroup]:
    """
    Group raw events into display groups.

    Events are walked newest first (ties keep input order), so the first
    event seen for a key seeds the group with the latest timestamp and the
    actor list comes out most-recent-distinct-first.

    Args:
        events: Raw events in any order

    Returns:
        Groups ordered by latest_at, newest first
    """
    # sorted() is stable, so equal timestamps keep their input order
    ordered = sorted(events, key=lambda e: e.created_at, reverse=True)

    groups: Dict[str, NotificationGroup] = {}
    for event in ordered:
        key = group_key(event)
        group = groups.get(key)

        if group is None:
            groups[key] = NotificationGroup(
                key=key,
                type=event.type,
                actors=[event.actor] if event.actor else [],
                event_ids=[event.id],
                card_id=event.card_id,
                card_title=event.card_title,
                latest_at=event.created_at,
                is_read=event.is_read,
            )
            continue

        group.event_ids.append(event.id)
        if event.actor and all(a.id != event.actor.id for a in group.actors):
            group.actors.append(event.actor)
        if not event.is_read:
            group.is_read = False

    return sorted(groups.values(), key=lambda g: g.latest_at, reverse=True)


# ============================================================================
# Display helpers
# ============================================================================


def resolve_locale(value: Optional[str]) -> str:
    """
    Pick a supported locale from a language tag.

    Exact match first ("ru"), then the primary subtag ("ru-RU" -> "ru"),
    otherwise the default.
    """
    if not value:
        return DEFAULT_LOCALE
    tag = value.strip().lower().replace("_", "-")
    if tag in SUPPORTED_LOCALES:
        return tag
    prefix = tag.split("-")[0]
    return prefix if prefix in SUPPORTED_LOCALES else DEFAULT_LOCALE


def plural_ru(n: int, one: str, few: str, many: str) -> str:
    """Russian plural form for n (1 человек, 2 человека, 5 человек, 11 человек)."""
    mod10 = n % 10
    mod100 = n % 100
    if 11 <= mod100 <= 14:
        return many
    if mod10 == 1:
        return one
    if 2 <= mod10 <= 4:
        return few
    return many


def _text_en(kind: EventType, first: Optional[str], rest: int, card_title: Optional[str]) -> str:
    name = first or "Someone"
    others = f" and {rest} {'other' if rest == 1 else 'others'}" if rest > 0 else ""
    card = f"“{card_title}”" if card_title else "your card"

    if kind is EventType.LIKE:
        return f"{name}{others} liked {card}"
    if kind is EventType.COMMENT:
        return f"{name}{others} commented on {card}"
    if kind is EventType.COMMENT_LIKE:
        return f"{name}{others} liked your comment on {card}"
    if kind is EventType.FOLLOW:
        return f"{name}{others} started following you"
    return f"{name} sent you a notification"


def _text_ru(kind: EventType, first: Optional[str], rest: int, card_title: Optional[str]) -> str:
    name = first or "Кто-то"
    others = f" и ещё {rest} {plural_ru(rest, 'человек', 'человека', 'человек')}" if rest > 0 else ""
    card = f"«{card_title}»" if card_title else "вашу карточку"
    many = rest > 0

    if kind is EventType.LIKE:
        return f"{name}{others} лайкнул{'и' if many else ''} {card}"
    if kind is EventType.COMMENT:
        return f"{name}{others} оставил{'и' if many else ''} комментарий к {card}"
    if kind is EventType.COMMENT_LIKE:
        return f"{name}{others} лайкнул{'и' if many else ''} ваш комментарий в {card}"
    if kind is EventType.FOLLOW:
        return f"{name}{others} подписал{'ись' if many else 'ся/ась'} на вас"
    return f"{name} отправил уведомление"


_TEXT_BUILDERS = {
    "en": _text_en,
    "ru": _text_ru,
}


def build_group_text(group: NotificationGroup, locale: str = DEFAULT_LOCALE) -> str:
    """
    Human-readable line for a group.

    The first actor is named, the remaining distinct actors are counted
    ("and 2 others"). Depends only on the group's type, actor count and
    card title.
    """
    builder = _TEXT_BUILDERS[resolve_locale(locale)]
    first = group.actors[0].username if group.actors else None
    rest = max(len(group.actors) - 1, 0)
    return builder(group.kind, first, rest, group.card_title)


def group_href(group: NotificationGroup) -> str:
    """In-app link a group points to."""
    if group.kind is EventType.FOLLOW and group.actors:
        return f"/profile/{group.actors[0].id}"
    if group.card_id:
        suffix = "#comments" if group.kind is EventType.COMMENT else ""
        return f"/card/{group.card_id}{suffix}"
    return "#"
