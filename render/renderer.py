# render/renderer.py
import pygame, logging
from typing import Dict, Optional
from config import RenderConfig, StaffConfig
from game.session import Snapshot
from notes.model import LETTERS
from notes.staff import StaffMapper

HEADER_H = 72
BTN_H = 64
BTN_GAP = 12
BTN_MARGIN = 40
SPAWN_MS = 180.0

BG = (2, 6, 23)
PANEL = (15, 23, 42)
PANEL_EDGE = (40, 48, 66)
STAFF_LINE = (84, 88, 100)
LEDGER = (196, 200, 208)
TEXT = (241, 245, 249)
TEXT_DIM = (148, 163, 184)

FILL_BY_FEEDBACK = {
    "correct": (34, 197, 94),
    "wrong": (239, 68, 68),
    "idle": (96, 165, 250),
}
PREVIEW_FILL = (110, 126, 150)
PREVIEW_STROKE = (70, 80, 98)
CURRENT_STROKE = (15, 23, 42)

# 各槽位的音符頭大小 (rx, ry)
HEAD_SIZES = [(14, 10.5), (12, 9), (10, 7)]

# 按鍵配色：(框, 底, 字)
PALETTE = {
    "correct": ((52, 211, 153), (16, 60, 48), (236, 253, 245)),
    "wrong": ((251, 113, 133), (70, 22, 32), (255, 241, 242)),
    "hint": ((251, 191, 36), (66, 50, 14), (255, 251, 235)),
    "plain": ((60, 66, 82), (22, 30, 48), TEXT),
}

class Renderer:
    def __init__(self, cfg: RenderConfig, staff_cfg: Optional[StaffConfig] = None):
        pygame.init()
        self.cfg = cfg
        self.mapper = StaffMapper(staff_cfg)
        self.screen = pygame.display.set_mode((cfg.window_w, cfg.window_h))
        pygame.display.set_caption(cfg.caption)
        logging.debug("Renderer ready: %dx%d", cfg.window_w, cfg.window_h)
        self.font = pygame.font.SysFont("consolas", 18)
        self.font_small = pygame.font.SysFont("consolas", 14)
        self.font_big = pygame.font.SysFont("consolas", 28, bold=True)
        self.font_key = pygame.font.SysFont("consolas", 24, bold=True)
        self.clock = pygame.time.Clock()
        self.button_rects: Dict[str, pygame.Rect] = {}

        self._spawn_id: Optional[int] = None
        self._spawn_at = 0
        self._layout_buttons()

    def _layout_buttons(self):
        w = self.cfg.window_w
        top = self.cfg.staff_top + self.cfg.staff_h + 48
        bw = (w - BTN_MARGIN * 2 - BTN_GAP * (len(LETTERS) - 1)) / len(LETTERS)
        self.button_rects = {}
        x = float(BTN_MARGIN)
        for letter in LETTERS:
            self.button_rects[letter] = pygame.Rect(int(x), top, int(bw), BTN_H)
            x += bw + BTN_GAP

    def tick(self, fps=60) -> float:
        """Milliseconds since the previous frame."""
        return float(self.clock.tick(fps))

    def begin_frame(self):
        self.screen.fill(BG)

    def end_frame(self):
        pygame.display.flip()

    def draw_header(self):
        w = self.cfg.window_w
        pygame.draw.rect(self.screen, PANEL, (0, 0, w, HEADER_H))
        pygame.draw.line(self.screen, PANEL_EDGE, (0, HEADER_H), (w, HEADER_H), 1)
        sub = self.font_small.render("GRAND STAFF LOOP", True, TEXT_DIM)
        title = self.font_big.render("Instant Note Trainer", True, TEXT)
        self.screen.blit(sub, (24, 10))
        self.screen.blit(title, (24, 10 + sub.get_height() + 4))
        tip = self.font_small.render("Random clef, naturals only  ·  press A–G or click", True, TEXT_DIM)
        self.screen.blit(tip, (w - tip.get_width() - 24, (HEADER_H - tip.get_height()) // 2))

    def draw_loading(self):
        surf = self.font.render("LOADING THE FIRST NOTE...", True, TEXT_DIM)
        self.screen.blit(surf, ((self.cfg.window_w - surf.get_width()) // 2,
                                (self.cfg.window_h - surf.get_height()) // 2))

    # ------- staff -------
    def _y(self, clef: str, step: int) -> float:
        return self.cfg.staff_top + self.mapper.pixel_y(clef, step)

    def _spawn_scale(self, note_id: int, spawned_id: Optional[int]) -> float:
        if spawned_id is None or note_id != spawned_id:
            return 1.0
        now = pygame.time.get_ticks()
        if self._spawn_id != spawned_id:
            self._spawn_id = spawned_id
            self._spawn_at = now
        return min(1.0, 0.4 + 0.6 * (now - self._spawn_at) / SPAWN_MS)

    def draw_staff(self, snap: Snapshot):
        sc = self.mapper.cfg
        top = self.cfg.staff_top
        pygame.draw.rect(self.screen, PANEL, (16, top - 8, self.cfg.window_w - 32, self.cfg.staff_h), border_radius=18)
        for clef in ("treble", "bass"):
            for y in self.mapper.line_ys(clef):
                pygame.draw.line(self.screen, STAFF_LINE, (sc.staff_x0, top + y), (sc.staff_x1, top + y), 2)
        treble = self.font.render("Treble", True, TEXT)
        bass = self.font.render("Bass", True, TEXT)
        self.screen.blit(treble, (106 - treble.get_width() // 2, top + self.mapper.anchor_y("treble") - 10))
        self.screen.blit(bass, (110 - bass.get_width() // 2, top + self.mapper.anchor_y("bass") - 10))

        current = snap.current
        if current is None:
            return
        for y in self.mapper.ledger_lines_for(current.clef, current.staff_step):
            pygame.draw.line(self.screen, LEDGER, (sc.note_x - 28, top + y), (sc.note_x + 28, top + y), 3)

        # 由後往前畫，目前的音符在最上層
        for idx in range(min(3, len(snap.queue)) - 1, -1, -1):
            n = snap.queue[idx]
            x = sc.note_x + (sc.slot_offsets[idx] if idx < len(sc.slot_offsets) else 0)
            y = self._y(n.clef, n.staff_step)
            k = self._spawn_scale(n.id, snap.last_spawned_id)
            rx, ry = HEAD_SIZES[idx][0] * k, HEAD_SIZES[idx][1] * k
            is_current = idx == 0
            fill = FILL_BY_FEEDBACK.get(snap.feedback, FILL_BY_FEEDBACK["idle"]) if is_current else PREVIEW_FILL
            stroke = CURRENT_STROKE if is_current else PREVIEW_STROKE

            stem_len = (34 if is_current else 28) * k
            if self.mapper.stem_down(n.staff_step):
                sx, sy2 = x - rx + 2, y + stem_len
            else:
                sx, sy2 = x + rx - 2, y - stem_len
            pygame.draw.line(self.screen, stroke if is_current else PREVIEW_STROKE, (sx, y), (sx, sy2), 3)
            head = pygame.Rect(0, 0, int(rx * 2), int(ry * 2))
            head.center = (int(x), int(y))
            pygame.draw.ellipse(self.screen, fill, head)
            pygame.draw.ellipse(self.screen, stroke, head, 2)

    # ------- answer buttons -------
    def draw_keyboard(self, snap: Snapshot):
        top = min(r.top for r in self.button_rects.values())
        label = self.font_small.render("CLICK TO ANSWER", True, TEXT_DIM)
        self.screen.blit(label, (BTN_MARGIN, top - label.get_height() - 12))

        badge_text = "Idle" if snap.feedback == "idle" else snap.feedback
        x_right = self.cfg.window_w - BTN_MARGIN
        if snap.hint:
            x_right = self._badge(f"Hint: {snap.hint}", PALETTE["hint"], x_right, top - 34) - 8
        badge = PALETTE["correct"] if snap.feedback == "correct" else PALETTE["wrong"] if snap.feedback == "wrong" else PALETTE["plain"]
        self._badge(badge_text, badge, x_right, top - 34)

        for letter, rect in self.button_rects.items():
            is_last = snap.last_pressed == letter
            if is_last and snap.feedback == "correct":
                edge, fill, fg = PALETTE["correct"]
            elif is_last and snap.feedback == "wrong":
                edge, fill, fg = PALETTE["wrong"]
            elif snap.hint == letter:
                edge, fill, fg = PALETTE["hint"]
            else:
                edge, fill, fg = PALETTE["plain"]
            pygame.draw.rect(self.screen, fill, rect, border_radius=14)
            pygame.draw.rect(self.screen, edge, rect, 2, border_radius=14)
            t = self.font_key.render(letter, True, fg)
            self.screen.blit(t, (rect.x + (rect.w - t.get_width()) // 2, rect.y + (rect.h - t.get_height()) // 2))

    def _badge(self, text: str, palette, right: int, y: int) -> int:
        edge, fill, fg = palette
        t = self.font_small.render(text, True, fg)
        box = pygame.Rect(0, y, t.get_width() + 24, t.get_height() + 10)
        box.right = right
        pygame.draw.rect(self.screen, fill, box, border_radius=12)
        pygame.draw.rect(self.screen, edge, box, 1, border_radius=12)
        self.screen.blit(t, (box.x + 12, box.y + 5))
        return box.left

    def draw(self, snap: Snapshot):
        self.begin_frame()
        self.draw_header()
        if snap.current is None:
            self.draw_loading()
        else:
            self.draw_staff(snap)
            self.draw_keyboard(snap)
        self.end_frame()
