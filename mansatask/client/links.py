"""Payment link status as shown to merchants, computed from API payloads."""

from datetime import datetime, timezone

from mansatask.models.payment_link import LinkDisplayStatus


def _parse(value):
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def is_expired(link: dict, now=None) -> bool:
    expires_at = _parse(link.get("expiresAt"))
    if expires_at is None:
        return False
    return expires_at < (now or datetime.now(timezone.utc))


def is_exhausted(link: dict) -> bool:
    max_uses = link.get("maxUses")
    if max_uses is None:
        return False
    return (link.get("currentUses") or 0) >= max_uses


def is_valid(link: dict, now=None) -> bool:
    return (
        not link.get("deletedAt")
        and bool(link.get("isActive"))
        and not is_expired(link, now)
        and not is_exhausted(link)
    )


def display_status(link: dict, now=None) -> str:
    if is_exhausted(link):
        return LinkDisplayStatus.EXHAUSTED
    if is_expired(link, now):
        return LinkDisplayStatus.EXPIRED
    if not link.get("isActive"):
        return LinkDisplayStatus.INACTIVE
    return LinkDisplayStatus.ACTIVE
