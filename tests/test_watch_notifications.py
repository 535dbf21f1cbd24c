from dataclasses import replace
from datetime import datetime, timezone

import feedsync.utils.datetime as datetime_utils
from feedsync.domain.entities import NotificationState
from feedsync.utils import resolve_timezone
from scripts.watch_notifications import render
from support import make_notification


def test_render_uses_timezone_from_cli_settings(monkeypatch, capsys):
    notification = replace(
        make_notification("n1"),
        created_at=datetime(2024, 4, 20, 22, 0, tzinfo=timezone.utc),
    )
    state = NotificationState(notifications=(notification,), unread_count=1, loading=False)

    def unexpected_lookup():
        raise AssertionError("settings should not be consulted")

    monkeypatch.setattr(datetime_utils, "get_app_timezone", unexpected_lookup)

    render(state, resolve_timezone("UTC+05:00"))

    output = capsys.readouterr().out
    assert "-- 1 unread --" in output
    assert "* Ana liked your review of Smoky Joe's (2024-04-21)" in output
