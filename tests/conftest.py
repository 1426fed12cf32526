"""Shared fixtures for the ficalter test suite."""

from collections.abc import AsyncIterator, Generator
from typing import Any

import pytest

from ficalter.core.http_client import close_all_clients


@pytest.fixture(autouse=True)
async def cleanup_shared_http_clients() -> AsyncIterator[None]:
    """Close shared httpx clients after every test to prevent resource leaks."""
    yield
    await close_all_clients()


@pytest.fixture(autouse=True)
def clean_test_environment(monkeypatch: Any) -> Generator[None, Any, None]:
    """Remove FICALTER_* variables so host configuration cannot leak into tests."""
    import os

    for key in list(os.environ):
        if key.startswith("FICALTER_"):
            monkeypatch.delenv(key, raising=False)
    yield


def _crlf(*lines: str) -> bytes:
    return "".join(f"{line}\r\n" for line in lines).encode("utf-8")


@pytest.fixture
def sample_ics_minimal() -> bytes:
    """Return the smallest interesting calendar: one property and one event."""
    return _crlf(
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "BEGIN:VEVENT",
        "SUMMARY:Standup",
        "END:VEVENT",
        "END:VCALENDAR",
    )


@pytest.fixture
def sample_ics_mixed() -> bytes:
    """Return a calendar with a timezone, three events and a todo.

    - VTIMEZONE with nested STANDARD block (no SUMMARY)
    - VEVENT "Team Standup" with a VALARM child
    - VEVENT "Doctor Visit"
    - VEVENT "Weekly standup review" with a long folded DESCRIPTION
    - VTODO "Buy milk"
    """
    return (
        _crlf(
            "BEGIN:VCALENDAR",
            "VERSION:2.0",
            "PRODID:-//ficalter test//EN",
            "BEGIN:VTIMEZONE",
            "TZID:Europe/Brussels",
            "BEGIN:STANDARD",
            "DTSTART:19701025T030000",
            "TZOFFSETFROM:+0200",
            "TZOFFSETTO:+0100",
            "END:STANDARD",
            "END:VTIMEZONE",
            "BEGIN:VEVENT",
            "UID:1@test",
            "SUMMARY:Team Standup",
            "DTSTART;TZID=Europe/Brussels:20240115T093000",
            "BEGIN:VALARM",
            "ACTION:DISPLAY",
            "SUMMARY:Reminder",
            "END:VALARM",
            "END:VEVENT",
            "BEGIN:VEVENT",
            "UID:2@test",
            "SUMMARY:Doctor Visit",
            "END:VEVENT",
            "BEGIN:VEVENT",
            "UID:3@test",
            "SUMMARY:Weekly standup review",
        )
        + b"DESCRIPTION:Review of the standup notes with the whole team and a look a\r\n"
        + b" head at the next sprint\r\n"
        + _crlf(
            "END:VEVENT",
            "BEGIN:VTODO",
            "SUMMARY:Buy milk",
            "END:VTODO",
            "END:VCALENDAR",
        )
    )
