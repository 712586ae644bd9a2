"""
Tests for the view-share gate state machine and its async driver.

Run with: pytest tests/test_view_share.py -v
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import asyncio
from datetime import datetime, timedelta, timezone

from core.view_share import (
    MAX_CODE_ATTEMPTS,
    MSG_INCORRECT_CODE,
    AwaitingCode,
    CodeSubmitted,
    Granted,
    Idle,
    InvalidShare,
    Loading,
    Locked,
    LookupResolved,
    NavigationTarget,
    NoToken,
    NotFound,
    Opened,
    ViewShareGate,
    build_navigation_target,
    build_share_link,
    codes_match,
    generate_share_token,
    generate_view_code,
    is_expired,
    is_terminal,
    resume_gate,
    transition,
)
from models import ViewShare


def _file_share(**overrides):
    data = dict(
        token="tok123",
        type="file",
        file_id="f1",
        project_id="p1",
        folder_id="d1",
        folder_file_id="ff1",
        code="VIEW-4821",
    )
    data.update(overrides)
    return ViewShare(**data)


def _note_share(**overrides):
    data = dict(token="note1", type="note", file_id="f1", project_id="p1", note_id="n1", code="VIEW-1000")
    data.update(overrides)
    return ViewShare(**data)


class FakeLookup:
    """Resolves tokens from a dict and counts calls per token."""

    def __init__(self, shares):
        self.shares = shares
        self.calls = {}

    async def resolve(self, token):
        self.calls[token] = self.calls.get(token, 0) + 1
        return self.shares.get(token)


class RecordingNavigator:
    def __init__(self):
        self.calls = []

    def __call__(self, path, replace=True):
        self.calls.append((path, replace))


class TestTransition:
    """Tests for the pure transition function."""

    def test_open_without_token(self):
        assert transition(Idle(), Opened(None)) == NoToken()
        assert transition(Idle(), Opened("")) == NoToken()

    def test_open_with_token(self):
        assert transition(Idle(), Opened("tok123")) == Loading("tok123")

    def test_lookup_miss_is_not_found(self):
        assert transition(Loading("tok123"), LookupResolved("tok123", None)) == NotFound("tok123")

    def test_lookup_hit_awaits_code(self):
        share = _file_share()
        state = transition(Loading("tok123"), LookupResolved("tok123", share))
        assert state == AwaitingCode(share, attempts=0)

    def test_stale_lookup_is_ignored(self):
        state = Loading("new")
        assert transition(state, LookupResolved("old", _file_share())) is state

    def test_correct_code_is_case_and_space_insensitive(self):
        share = _file_share()
        state = transition(AwaitingCode(share), CodeSubmitted("  view-4821 "))
        assert isinstance(state, Granted)
        assert state.target == NavigationTarget("/file/f1/project/p1?folder=d1&view=ff1", replace=True)

    def test_wrong_codes_lock_on_third(self):
        share = _file_share()
        state = AwaitingCode(share)
        state = transition(state, CodeSubmitted("VIEW-0000"))
        assert state == AwaitingCode(share, attempts=1, message=MSG_INCORRECT_CODE)
        state = transition(state, CodeSubmitted("VIEW-0001"))
        assert isinstance(state, AwaitingCode) and state.attempts == 2
        state = transition(state, CodeSubmitted("VIEW-0002"))
        assert isinstance(state, Locked)

    def test_locked_ignores_correct_code(self):
        locked = Locked(_file_share())
        assert transition(locked, CodeSubmitted("VIEW-4821")) is locked

    def test_blank_code_does_not_consume_attempt(self):
        state = AwaitingCode(_file_share(), attempts=2)
        assert transition(state, CodeSubmitted("   ")) is state

    def test_partial_code_is_wrong(self):
        state = transition(AwaitingCode(_file_share()), CodeSubmitted("VIEW-482"))
        assert isinstance(state, AwaitingCode) and state.attempts == 1

    def test_correct_code_after_two_misses_grants(self):
        state = AwaitingCode(_file_share(), attempts=2, message=MSG_INCORRECT_CODE)
        assert isinstance(transition(state, CodeSubmitted("VIEW-4821")), Granted)

    def test_shape_mismatch_is_invalid_share(self):
        share = _file_share(folder_file_id=None)
        state = transition(AwaitingCode(share), CodeSubmitted("VIEW-4821"))
        assert isinstance(state, InvalidShare)
        assert is_terminal(state)

    def test_terminal_states_absorb_events(self):
        share = _file_share()
        target = NavigationTarget("/x")
        for state in (NoToken(), NotFound("t"), Locked(share), Granted(share, target), InvalidShare(share)):
            assert transition(state, Opened("other")) is state
            assert transition(state, CodeSubmitted("VIEW-4821")) is state

    def test_code_before_lookup_is_ignored(self):
        state = Loading("tok123")
        assert transition(state, CodeSubmitted("VIEW-4821")) is state

    def test_lookup_resumes_recorded_attempts(self):
        share = _file_share(code_attempts=2)
        state = transition(Loading("tok123"), LookupResolved("tok123", share))
        assert state == AwaitingCode(share, attempts=2, message=MSG_INCORRECT_CODE)
        assert isinstance(transition(state, CodeSubmitted("VIEW-0000")), Locked)

    def test_lookup_of_locked_share_stays_locked(self):
        share = _file_share(locked=True)
        state = transition(Loading("tok123"), LookupResolved("tok123", share))
        assert isinstance(state, Locked)
        assert transition(state, CodeSubmitted("VIEW-4821")) is state

    def test_resume_gate_caps_at_max_attempts(self):
        assert isinstance(resume_gate(_file_share(code_attempts=MAX_CODE_ATTEMPTS)), Locked)
        assert resume_gate(_file_share()) == AwaitingCode(_file_share(), attempts=0)

    def test_blank_file_ids_are_invalid_share(self):
        share = _file_share(folder_id="")
        assert build_navigation_target(share) is None
        assert isinstance(transition(AwaitingCode(share), CodeSubmitted("VIEW-4821")), InvalidShare)


class TestNavigationTarget:
    """Tests for deep links built from a share."""

    def test_note_share(self):
        target = build_navigation_target(_note_share())
        assert target.path == "/file/f1/project/p1?note=n1"
        assert target.replace is True

    def test_ids_are_url_encoded(self):
        target = build_navigation_target(_file_share(folder_id="a b", folder_file_id="x&y"))
        assert target.path.endswith("?folder=a%20b&view=x%26y")

    def test_note_share_without_note_id(self):
        assert build_navigation_target(_note_share(note_id=None)) is None

    def test_note_type_ignores_file_ids(self):
        """A note share with only folder ids is still invalid."""
        share = _note_share(note_id=None, folder_id="d1", folder_file_id="ff1")
        assert build_navigation_target(share) is None


class TestHelpers:
    """Tests for share creation helpers."""

    def test_codes_match(self):
        assert codes_match("view-4821", "VIEW-4821")
        assert not codes_match("VIEW-48210", "VIEW-4821")

    def test_generate_share_token(self):
        token = generate_share_token()
        assert len(token) == 32
        assert token.isalnum() and token == token.lower()
        assert generate_share_token() != token

    def test_generate_view_code(self):
        code = generate_view_code()
        assert code.startswith("VIEW-")
        assert 1000 <= int(code[5:]) <= 9999

    def test_build_share_link(self):
        assert build_share_link("https://app.example.com/", "abc") == "https://app.example.com/view?token=abc"

    def test_is_expired(self):
        now = datetime(2026, 10, 16, 12, 0, tzinfo=timezone.utc)
        assert not is_expired(_file_share(), now)
        assert is_expired(_file_share(expires_at=now - timedelta(minutes=1)), now)
        assert not is_expired(_file_share(expires_at=now + timedelta(hours=1)), now)

    def test_naive_expiry_is_utc(self):
        share = _file_share(expires_at=datetime(2020, 1, 1))
        assert share.expires_at.tzinfo == timezone.utc
        assert is_expired(share)


class TestViewShareGate:
    """Tests for the async driver."""

    def test_full_grant_navigates_once_with_replace(self):
        lookup = FakeLookup({"tok123": _file_share()})
        nav = RecordingNavigator()
        gate = ViewShareGate(lookup, nav)

        async def run():
            await gate.open("tok123")
            assert isinstance(gate.state, AwaitingCode)
            await gate.submit_code("VIEW-4821")
            await gate.submit_code("VIEW-4821")

        asyncio.run(run())
        assert isinstance(gate.state, Granted)
        assert nav.calls == [("/file/f1/project/p1?folder=d1&view=ff1", True)]

    def test_one_lookup_per_token(self):
        lookup = FakeLookup({"tok123": _file_share()})
        gate = ViewShareGate(lookup, RecordingNavigator())

        async def run():
            await gate.open("tok123")
            await gate.submit_code("WRONG")
            await gate.open("tok123")

        asyncio.run(run())
        assert lookup.calls == {"tok123": 1}
        assert gate.state.attempts == 1

    def test_unknown_token(self):
        lookup = FakeLookup({})
        gate = ViewShareGate(lookup, RecordingNavigator())
        asyncio.run(gate.open("missing"))
        assert gate.state == NotFound("missing")

    def test_no_token_skips_lookup(self):
        lookup = FakeLookup({})
        gate = ViewShareGate(lookup, RecordingNavigator())
        asyncio.run(gate.open(None))
        assert gate.state == NoToken()
        assert lookup.calls == {}

    def test_lockout_never_navigates(self):
        nav = RecordingNavigator()
        gate = ViewShareGate(FakeLookup({"tok123": _file_share()}), nav)

        async def run():
            await gate.open("tok123")
            for _ in range(MAX_CODE_ATTEMPTS):
                await gate.submit_code("VIEW-0000")
            await gate.submit_code("VIEW-4821")

        asyncio.run(run())
        assert isinstance(gate.state, Locked)
        assert nav.calls == []

    def test_result_after_close_is_discarded(self):
        class SlowLookup:
            def __init__(self, gate_ref):
                self.gate_ref = gate_ref

            async def resolve(self, token):
                self.gate_ref[0].close()
                return _file_share()

        ref = []
        gate = ViewShareGate(SlowLookup(ref), RecordingNavigator())
        ref.append(gate)
        asyncio.run(gate.open("tok123"))
        assert gate.state == Loading("tok123")

    def test_stale_token_result_is_discarded(self):
        """A lookup for an old token that finishes late must not win."""
        first_started = None
        release_first = None

        class GatedLookup:
            async def resolve(self, token):
                if token == "old":
                    first_started.set()
                    await release_first.wait()
                    return _file_share(token="old")
                return None

        async def run():
            nonlocal first_started, release_first
            first_started = asyncio.Event()
            release_first = asyncio.Event()
            gate = ViewShareGate(GatedLookup(), RecordingNavigator())
            old = asyncio.create_task(gate.open("old"))
            await first_started.wait()
            await gate.open("new")
            release_first.set()
            await old
            return gate.state

        assert asyncio.run(run()) == NotFound("new")

    def test_async_navigate_is_awaited(self):
        seen = []

        async def navigate(path, replace=True):
            seen.append(path)

        gate = ViewShareGate(FakeLookup({"note1": _note_share()}), navigate)

        async def run():
            await gate.open("note1")
            await gate.submit_code("view-1000")

        asyncio.run(run())
        assert seen == ["/file/f1/project/p1?note=n1"]

    def test_wrong_codes_are_recorded(self):
        recorded = []
        gate = ViewShareGate(
            FakeLookup({"tok123": _file_share()}),
            RecordingNavigator(),
            record=lambda token, attempts, locked: recorded.append((token, attempts, locked)),
        )

        async def run():
            await gate.open("tok123")
            await gate.submit_code("  ")
            for _ in range(MAX_CODE_ATTEMPTS):
                await gate.submit_code("VIEW-0000")
            await gate.submit_code("VIEW-0000")

        asyncio.run(run())
        assert recorded == [("tok123", 1, False), ("tok123", 2, False), ("tok123", 3, True)]

    def test_grant_after_wrong_code_resets_record(self):
        recorded = []

        async def record(token, attempts, locked):
            recorded.append((attempts, locked))

        gate = ViewShareGate(FakeLookup({"tok123": _file_share()}), RecordingNavigator(), record=record)

        async def run():
            await gate.open("tok123")
            await gate.submit_code("VIEW-0000")
            await gate.submit_code("VIEW-4821")

        asyncio.run(run())
        assert isinstance(gate.state, Granted)
        assert recorded == [(1, False), (0, False)]
