# game/session.py
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional
from config import TimingConfig
from notes.model import LETTERS, Feedback, Note
from notes.sequencer import NoteSequencer
from timeline.scheduler import Scheduler, Timer

log = logging.getLogger(__name__)

QUEUE_LEN = 3

@dataclass(frozen=True)
class Snapshot:
    """Read-only view handed to the renderer."""
    queue: tuple[Note, ...] = ()
    feedback: Feedback = "idle"
    is_shifting: bool = False
    last_spawned_id: Optional[int] = None
    last_pressed: Optional[str] = None
    hint: Optional[str] = None

    @property
    def current(self) -> Optional[Note]:
        return self.queue[0] if self.queue else None

class AnswerStateMachine:
    """
    答題狀態機：
    - submit(letter) 每次都記錄按鍵並發聲
    - 答對：鎖住輸入 advance_ms 後佇列前進一格
    - 答錯：顯示提示，feedback / hint 各自計時（重按會重新計時）
    """
    def __init__(self, sequencer: NoteSequencer, scheduler: Scheduler,
                 player: Optional[Callable[[str], None]] = None,
                 timing: Optional[TimingConfig] = None):
        self.sequencer = sequencer
        self.scheduler = scheduler
        self.player = player
        self.timing = timing or TimingConfig()

        self.queue: List[Note] = []
        self.feedback = "idle"
        self.is_shifting = False
        self.last_pressed: Optional[str] = None
        self.hint: Optional[str] = None
        self.last_spawned_id: Optional[int] = None

        self._timers: Dict[str, Timer] = {}   # kind -> timer（feedback / hint）
        self._listeners: List[Callable[[Snapshot], None]] = []
        self.closed = False

    # ---------- lifecycle ----------
    def start(self):
        if self.queue:
            return
        self.queue = self.sequencer.prime(QUEUE_LEN)
        self.last_spawned_id = self.queue[-1].id
        log.info("session started: %s", [n.letter for n in self.queue])
        self._emit()

    def close(self):
        if self.closed:
            return
        for t in self._timers.values():
            t.cancel()
        self._timers.clear()
        self.closed = True
        self._listeners.clear()
        log.info("session closed")

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    # ---------- observers ----------
    @property
    def current(self) -> Optional[Note]:
        return self.queue[0] if self.queue else None

    def snapshot(self) -> Snapshot:
        return Snapshot(
            queue=tuple(self.queue),
            feedback=self.feedback,
            is_shifting=self.is_shifting,
            last_spawned_id=self.last_spawned_id,
            last_pressed=self.last_pressed,
            hint=self.hint,
        )

    def subscribe(self, listener: Callable[[Snapshot], None]) -> Callable[[], None]:
        self._listeners.append(listener)
        def _unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return _unsubscribe

    def _emit(self):
        snap = self.snapshot()
        for fn in list(self._listeners):
            try:
                fn(snap)
            except Exception:
                logging.exception("listener 失敗（忽略）：%r", fn)

    # ---------- timers ----------
    def _arm(self, kind: str, delay_ms: int, action: Callable[[], None]):
        prev = self._timers.get(kind)
        if prev is not None:
            prev.cancel()

        def _fire():
            if self._timers.get(kind) is timer:
                del self._timers[kind]
            action()
            self._emit()

        timer = self.scheduler.schedule(delay_ms, _fire, label=kind)
        self._timers[kind] = timer

    def _disarm(self, kind: str):
        t = self._timers.pop(kind, None)
        if t is not None:
            t.cancel()

    # ---------- answering ----------
    def submit(self, letter: str) -> str:
        if letter not in LETTERS:
            raise ValueError(f"Not a natural note letter: {letter!r}")
        if self.closed or self.is_shifting:
            return "ignored"
        current = self.current
        if current is None:
            return "ignored"

        self.last_pressed = letter
        self._play(letter)

        if letter == current.letter:
            self.feedback = "correct"
            self.hint = None
            self._disarm("hint")
            self.is_shifting = True
            self._arm("feedback", self.timing.advance_ms, self._advance)
            verdict = "correct"
        else:
            self.feedback = "wrong"
            self.hint = current.letter
            self._arm("hint", self.timing.hint_ms, self._clear_hint)
            self._arm("feedback", self.timing.feedback_ms, self._reset_feedback)
            verdict = "wrong"
        log.debug("submit %s vs %s -> %s", letter, current.letter, verdict)
        self._emit()
        return verdict

    def _play(self, letter: str):
        if self.player is None:
            return
        try:
            self.player(letter)
        except Exception:
            logging.exception("音效播放失敗（忽略）")

    def _advance(self):
        if self.queue:
            # 以前進前的最後一個音當作避免重複的依據
            seed = self.queue[-1]
            nxt = self.sequencer.next(seed)
            rest = self.queue[1:]
            while len(rest) < QUEUE_LEN - 1:
                rest.append(nxt)
            self.queue = rest[: QUEUE_LEN - 1] + [nxt]
            self.last_spawned_id = nxt.id
        self.feedback = "idle"
        self.is_shifting = False

    def _clear_hint(self):
        self.hint = None

    def _reset_feedback(self):
        self.feedback = "idle"
