# app.py
import pygame
from typing import Dict, Optional
from config import AppConfig
from audio.synth import ToneSynth
from game.session import AnswerStateMachine
from input.dispatcher import InputDispatcher
from notes.sequencer import NoteSequencer
from render.renderer import Renderer
from timeline.scheduler import Scheduler
from utils import crashlog

class App:
    def __init__(self, cfg: AppConfig, keymap: Optional[Dict[int, str]] = None):
        self.cfg = cfg
        # mixer 要在 pygame.init() 前設定成單聲道 16-bit
        pygame.mixer.pre_init(cfg.audio.sample_rate, -16, 1)
        self.renderer = Renderer(cfg.render, cfg.staff)
        self.synth = ToneSynth(cfg.audio)
        self.scheduler = Scheduler()
        self.sequencer = NoteSequencer(cfg.sequencer)
        self.session = AnswerStateMachine(self.sequencer, self.scheduler,
                                          player=self.synth.play, timing=cfg.timing)
        self.dispatcher = InputDispatcher(self.session.submit, keymap,
                                          buttons=lambda: self.renderer.button_rects)
        crashlog.set_context(self.crash_context)

    def crash_context(self) -> Dict[str, object]:
        """Session state written at the top of crash / error reports."""
        snap = self.session.snapshot()
        return {
            "seed": self.cfg.sequencer.seed,
            "time_ms": round(self.scheduler.time, 1),
            "queue": " ".join(f"{n.letter}({n.clef},{n.staff_step})#{n.id}" for n in snap.queue) or "-",
            "feedback": snap.feedback,
            "is_shifting": snap.is_shifting,
            "last_pressed": snap.last_pressed,
            "pending_timers": [t.label for t in self.scheduler.pending()],
        }

    def _handle(self, e: pygame.event.Event) -> bool:
        """Returns False when the app should quit."""
        if e.type == pygame.QUIT:
            return False
        if e.type == pygame.KEYDOWN and e.key == pygame.K_ESCAPE:
            return False
        if e.type in (pygame.WINDOWFOCUSLOST, pygame.WINDOWMINIMIZED):
            self.synth.suspend()
            return True
        self.dispatcher.handle_event(e)
        return True

    def close(self):
        # 先停計時器，再釋放音訊
        self.session.close()
        self.scheduler.cancel_all()
        self.synth.close()
        pygame.quit()

    # ---------- Main loop ----------
    def run(self):
        self.session.start()
        running = True
        try:
            while running:
                dt = self.renderer.tick(self.cfg.render.fps)
                self.scheduler.advance(dt)
                for e in pygame.event.get():
                    if not self._handle(e):
                        running = False
                        break
                self.renderer.draw(self.session.snapshot())
        finally:
            self.close()
