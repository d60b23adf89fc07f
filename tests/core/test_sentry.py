"""Sentry setup and event scrubbing."""

from clientele.core import sentry
from clientele.core.config import settings
from clientele.core.sentry import SCRUBBED, init_sentry, scrub_event


def test_init_sentry_skips_without_dsn(monkeypatch) -> None:
    monkeypatch.setattr(settings, "sentry_dsn", None)
    assert init_sentry() is False


def test_init_sentry_registers_scrubber(monkeypatch) -> None:
    calls: list[dict] = []
    monkeypatch.setattr(settings, "sentry_dsn", "https://key@sentry.example.com/1")
    monkeypatch.setattr(sentry.sentry_sdk, "init", lambda **kwargs: calls.append(kwargs))

    assert init_sentry() is True
    assert calls[0]["before_send"] is scrub_event
    assert calls[0]["send_default_pii"] is False


def test_scrub_event_masks_client_fields() -> None:
    event = {
        "extra": {"client": {"id": 7, "name": "A. Collector", "total_spend": "120000"}},
        "request": {"data": {"notes": "prefers steel", "reminder_type": "follow_up"}},
        "message": "boom",
    }

    scrubbed = scrub_event(event, {})

    assert scrubbed["extra"]["client"] == {"id": 7, "name": SCRUBBED, "total_spend": SCRUBBED}
    assert scrubbed["request"]["data"] == {"notes": SCRUBBED, "reminder_type": "follow_up"}
    assert scrubbed["message"] == "boom"


def test_scrub_event_walks_lists() -> None:
    event = {"contexts": {"batch": [{"email": "a@example.com"}, {"tier": "Gold"}]}}

    assert scrub_event(event, {})["contexts"]["batch"] == [{"email": SCRUBBED}, {"tier": "Gold"}]
