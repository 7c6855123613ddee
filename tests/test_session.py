import dataclasses
import random
from typing import List, Optional

import pytest

from config import TimingConfig
from game.session import AnswerStateMachine, Snapshot
from notes.model import Note
from notes.sequencer import NoteSequencer
from timeline.scheduler import Scheduler


class ScriptedSequencer:
    """Hands out pre-built notes and records the repetition seeds it is given."""

    def __init__(self, notes: List[Note]) -> None:
        self.notes = list(notes)
        self.seeds: List[Optional[Note]] = []

    def next(self, previous: Optional[Note] = None) -> Note:
        self.seeds.append(previous)
        return self.notes.pop(0)

    def prime(self, count: int = 3) -> List[Note]:
        out, prev = [], None
        for _ in range(count):
            prev = self.next(prev)
            out.append(prev)
        return out


FIRST = Note.at(0, "treble", 0)   # B
SECOND = Note.at(1, "bass", 1)    # E
THIRD = Note.at(2, "treble", -4)  # E
FOURTH = Note.at(3, "bass", -3)   # A
FIFTH = Note.at(4, "treble", 2)   # D


@pytest.fixture
def scheduler() -> Scheduler:
    return Scheduler()


@pytest.fixture
def played() -> List[str]:
    return []


@pytest.fixture
def seq() -> ScriptedSequencer:
    return ScriptedSequencer([FIRST, SECOND, THIRD, FOURTH, FIFTH])


@pytest.fixture
def session(seq, scheduler, played) -> AnswerStateMachine:
    s = AnswerStateMachine(seq, scheduler, player=played.append)
    s.start()
    return s


def test_submit_before_start_is_noop(seq, scheduler, played) -> None:
    s = AnswerStateMachine(seq, scheduler, player=played.append)
    assert s.submit("B") == "ignored"
    assert played == []
    assert s.snapshot() == Snapshot()
    assert scheduler.pending() == []


def test_start_fills_queue(session, seq) -> None:
    snap = session.snapshot()
    assert snap.queue == (FIRST, SECOND, THIRD)
    assert snap.current == FIRST
    assert snap.feedback == "idle"
    assert not snap.is_shifting
    assert snap.last_spawned_id == THIRD.id
    assert seq.seeds == [None, FIRST, SECOND]


def test_correct_answer_advances_after_delay(session, scheduler, played, seq) -> None:
    assert session.submit("B") == "correct"
    snap = session.snapshot()
    assert snap.feedback == "correct"
    assert snap.is_shifting
    assert snap.last_pressed == "B"
    assert snap.queue == (FIRST, SECOND, THIRD)
    assert played == ["B"]

    scheduler.advance(419)
    assert session.is_shifting
    assert session.queue[0] == FIRST

    scheduler.advance(1)
    snap = session.snapshot()
    assert snap.queue == (SECOND, THIRD, FOURTH)
    assert snap.feedback == "idle"
    assert not snap.is_shifting
    assert snap.last_spawned_id == FOURTH.id
    # the pre-advance tail seeds the repeat check
    assert seq.seeds[-1] == THIRD


def test_locked_while_shifting(session, scheduler, played) -> None:
    session.submit("B")
    before = session.snapshot()
    assert session.submit("E") == "ignored"
    assert session.submit("B") == "ignored"
    assert session.snapshot() == before
    assert played == ["B"]
    scheduler.advance(420)
    assert session.submit("E") == "correct"
    assert played == ["B", "E"]


def test_wrong_answer_shows_hint(session, scheduler, played) -> None:
    assert session.submit("C") == "wrong"
    snap = session.snapshot()
    assert snap.feedback == "wrong"
    assert snap.hint == "B"
    assert snap.last_pressed == "C"
    assert not snap.is_shifting
    assert played == ["C"]

    scheduler.advance(200)
    assert session.feedback == "idle"
    assert session.hint == "B"

    scheduler.advance(300)
    assert session.hint is None
    assert session.snapshot().queue == (FIRST, SECOND, THIRD)


def test_repeated_wrong_answers_rearm_timers(session, scheduler) -> None:
    session.submit("C")
    scheduler.advance(150)
    session.submit("D")
    scheduler.advance(100)
    assert session.feedback == "wrong"
    scheduler.advance(100)
    assert session.feedback == "idle"
    assert session.hint == "B"
    scheduler.advance(300)
    assert session.hint is None
    # one timer per kind, never stacked
    assert scheduler.pending() == []


def test_correct_after_wrong_keeps_correct_feedback(session, scheduler) -> None:
    session.submit("C")
    scheduler.advance(100)
    session.submit("B")
    assert session.hint is None
    scheduler.advance(150)
    assert session.feedback == "correct"
    assert session.hint is None
    scheduler.advance(270)
    assert session.feedback == "idle"
    assert session.queue[0] == SECOND


def test_tone_failure_does_not_break_answering(seq, scheduler) -> None:
    def boom(_letter: str) -> None:
        raise RuntimeError("no audio")

    s = AnswerStateMachine(seq, scheduler, player=boom)
    s.start()
    assert s.submit("B") == "correct"


def test_invalid_letter(session) -> None:
    with pytest.raises(ValueError):
        session.submit("H")


def test_close_cancels_pending_timers(session, scheduler, played) -> None:
    session.submit("B")
    session.close()
    scheduler.advance(1000)
    assert session.queue[0] == FIRST
    assert scheduler.pending() == []
    assert session.submit("B") == "ignored"
    assert played == ["B"]
    session.close()


def test_context_manager_closes(seq, scheduler) -> None:
    with AnswerStateMachine(seq, scheduler) as s:
        s.start()
        s.submit("C")
    assert s.closed
    assert scheduler.pending() == []


def test_listeners_see_each_change(session, scheduler) -> None:
    seen: List[Snapshot] = []
    unsubscribe = session.subscribe(seen.append)
    session.submit("C")
    scheduler.advance(200)
    scheduler.advance(300)
    assert [s.feedback for s in seen] == ["wrong", "idle", "idle"]
    assert [s.hint for s in seen] == ["B", "B", None]
    unsubscribe()
    session.submit("C")
    assert len(seen) == 3


def test_snapshot_is_read_only(session) -> None:
    snap = session.snapshot()
    with pytest.raises(dataclasses.FrozenInstanceError):
        snap.feedback = "wrong"  # type: ignore[misc]
    assert isinstance(snap.queue, tuple)


def test_custom_timing(seq, scheduler) -> None:
    s = AnswerStateMachine(seq, scheduler, timing=TimingConfig(advance_ms=50))
    s.start()
    s.submit("B")
    scheduler.advance(50)
    assert s.queue[0] == SECOND


def test_long_run_keeps_three_notes() -> None:
    scheduler = Scheduler()
    s = AnswerStateMachine(NoteSequencer(rng=random.Random(9)), scheduler)
    s.start()
    seen_ids = {n.id for n in s.queue}
    for _ in range(200):
        s.submit(s.current.letter)
        scheduler.advance(420)
        assert len(s.queue) == 3
        assert not s.is_shifting
        assert s.last_spawned_id == s.queue[-1].id
        assert s.last_spawned_id not in seen_ids
        seen_ids.add(s.last_spawned_id)


def test_failing_listener_does_not_stall_due_timers(session, scheduler) -> None:
    def boom(_snap: Snapshot) -> None:
        raise RuntimeError("renderer gone")

    seen: List[Snapshot] = []
    session.subscribe(boom)
    session.subscribe(seen.append)
    session.submit("C")
    # feedback (200) and hint (500) both come due in one frame
    assert scheduler.advance(600) == 2
    assert session.feedback == "idle"
    assert session.hint is None
    assert [s.hint for s in seen] == ["B", "B", None]
