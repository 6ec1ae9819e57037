"""
Logical view keys announced to the ViewNotifier after each mutation.

Keys are locale-independent; expanding them into concrete pages or cache
entries is the notifier's job.
"""

PUBLIC_EVENTS = "public:events"
ADMIN_EVENTS = "admin:events"
ADMIN_SUBSCRIBERS = "admin:subscribers"


def public_event(event_id: str) -> str:
    return f"public:events:{event_id}"


def admin_roster(event_id: str) -> str:
    return f"admin:events:{event_id}:subscribers"


def admin_jobs(event_id: str) -> str:
    return f"admin:events:{event_id}:jobs"


def after_registration(event_id: str) -> list[str]:
    return [
        PUBLIC_EVENTS,
        public_event(event_id),
        ADMIN_EVENTS,
        admin_roster(event_id),
        ADMIN_SUBSCRIBERS,
    ]


def after_subscriber_change(event_ids: set[str] | list[str]) -> list[str]:
    """Acceptance toggles and administrative edits."""
    keys = [ADMIN_EVENTS]
    keys.extend(admin_roster(event_id) for event_id in sorted(event_ids))
    keys.append(ADMIN_SUBSCRIBERS)
    return keys


def after_subscriber_removal(event_id: str) -> list[str]:
    return after_registration(event_id)


def after_requirement_change(event_id: str, roster_affected: bool = False) -> list[str]:
    """Requirement add/update/remove; roster_affected when subscriber references were nulled."""
    keys = [ADMIN_EVENTS, admin_jobs(event_id), public_event(event_id)]
    if roster_affected:
        keys.extend([admin_roster(event_id), ADMIN_SUBSCRIBERS])
    return keys


def after_event_change(event_id: str) -> list[str]:
    """Publication, application-window and completion toggles."""
    return [PUBLIC_EVENTS, public_event(event_id), ADMIN_EVENTS]
