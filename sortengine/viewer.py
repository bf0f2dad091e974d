import argparse
import logging
import math
import queue
import sys

import numpy as np
import pygame

from .algorithms import ALGORITHMS, AlgorithmId
from .config import (
    DEFAULT_ARRAY_SIZE, DEFAULT_STEP_DELAY_MS, MAX_ARRAY_SIZE, MIN_ARRAY_SIZE, EngineConfig,
)
from .controller import SortRunController
from .emitter import RunObserver
from .errors import SortEngineError
from .events import (
    INSTRUMENTED, ClearHighlights, Compare, Describe, MarkPivot, MarkSorted, Overwrite,
    RunState, Swap,
)

logger = logging.getLogger(__name__)

# ============================================================
# ===================== USER SETTINGS ========================
# ============================================================

WINDOW_WIDTH  = 1100
WINDOW_HEIGHT = 680
FPS           = 120
BAR_SPACING   = 1
HEADER_H      = 70

BACKGROUND_COLOR = (5, 5, 10)
UI_TEXT          = (215, 215, 228)
UI_SUBTEXT       = (105, 105, 130)
UI_ERROR         = (255, 90, 90)

# Legend, highest priority first
SORTED_COLOR    = (60, 200, 100)
SWAP_COLOR      = (255, 60, 60)
COMPARE_COLOR   = (235, 200, 40)
PIVOT_COLOR     = (170, 90, 230)
UNSORTED_COLOR  = (60, 120, 240)

DELAY_STEP_MS = 10

ENABLE_SOUND   = True
FREQ_LOW       = 120.0
FREQ_HIGH      = 960.0
SAMPLE_RATE    = 44100
SOUND_SUSTAIN  = 0.05
SOUND_ATTACK   = 0.005
SOUND_RELEASE  = 0.025
HARMONIC_BLEND = 0.08
TONE_VOLUME    = 0.35
FREQ_SNAP      = 12


# ============================================================
# ======================== VIEW STATE ========================
# ============================================================

class ViewState:
    """
    Bar values and highlights, updated one StepEvent at a time.

    Values are mirrored from Swap/Overwrite events rather than read from the
    engine, so the picture never runs ahead of the events drawn so far.
    """

    def __init__(self, values=()):
        self.values = list(values)
        self.clear()

    def sync(self, values):
        self.values = list(values)
        self.clear()

    def clear(self):
        self.comparing   = ()
        self.swapping    = ()
        self.pivot       = -1
        self.sorted      = set()
        self.description = ""

    def apply(self, event):
        if isinstance(event, Compare):
            self.comparing = event.indices; self.swapping = ()
        elif isinstance(event, Swap):
            i, j = event.indices
            self.values[i], self.values[j] = self.values[j], self.values[i]
            self.swapping = event.indices
        elif isinstance(event, Overwrite):
            self.values[event.index] = event.value
            self.swapping = (event.index,)
        elif isinstance(event, MarkSorted):
            self.sorted.add(event.index)
        elif isinstance(event, MarkPivot):
            self.pivot = event.index
        elif isinstance(event, Describe):
            self.description = event.text
        elif isinstance(event, ClearHighlights):
            self.comparing = (); self.swapping = (); self.pivot = -1

    def bar_color(self, i):
        if i in self.sorted:    return SORTED_COLOR
        if i in self.swapping:  return SWAP_COLOR
        if i in self.comparing: return COMPARE_COLOR
        if i == self.pivot:     return PIVOT_COLOR
        return UNSORTED_COLOR


class QueueObserver(RunObserver):
    """Buffers notifications from the worker thread, in order, for the frame loop."""

    def __init__(self):
        self.queue = queue.Queue()

    def on_step(self, event):         self.queue.put(("step", event))
    def on_stats_update(self, stats): self.queue.put(("stats", stats))
    def on_state_change(self, state): self.queue.put(("state", state))
    def on_error(self, error):        self.queue.put(("error", error))

    def drain(self):
        while True:
            try:
                yield self.queue.get_nowait()
            except queue.Empty:
                return


# ============================================================
# ========================== TONES ===========================
# ============================================================
#
# Each instrumented step plays a short sine blip whose pitch follows the
# value being touched. The waveform is a sine plus a small 2nd harmonic,
# shaped by a raised-cosine (Hann) attack and release so onsets don't click:
#   attack:  env[t] = 0.5 * (1 - cos(pi * t / A))
#   release: env[t] = 0.5 * (1 + cos(pi * (t - start) / R))

def value_to_freq(value, max_value):
    ratio = value / max_value if max_value else 0.0
    freq  = FREQ_LOW + max(0.0, min(1.0, ratio)) * (FREQ_HIGH - FREQ_LOW)
    return round(freq / FREQ_SNAP) * FREQ_SNAP


def build_tone(freq: float, sample_rate: int = SAMPLE_RATE) -> np.ndarray:
    """Return an int16 stereo buffer of shape (samples, 2) for one blip."""
    n       = int(SOUND_SUSTAIN * sample_rate)
    attack  = max(1, int(SOUND_ATTACK * sample_rate))
    release = max(1, int(SOUND_RELEASE * sample_rate))
    t       = np.arange(n, dtype=np.float64)

    phase = t * (freq / sample_rate)
    wave  = np.sin(2.0 * math.pi * phase) + HARMONIC_BLEND * np.sin(4.0 * math.pi * phase)

    env = np.ones(n, dtype=np.float64)
    a_mask = t < attack
    env[a_mask] = 0.5 * (1.0 - np.cos(math.pi * t[a_mask] / attack))
    rel_start = n - release
    r_mask = t >= rel_start
    env[r_mask] = 0.5 * (1.0 + np.cos(math.pi * (t[r_mask] - rel_start) / release))

    mono = wave * env / (1.0 + HARMONIC_BLEND)
    pcm  = (np.clip(mono, -1.0, 1.0) * 32767 * TONE_VOLUME).astype(np.int16)
    return np.column_stack((pcm, pcm))


class TonePlayer:
    def __init__(self):
        self._cache = {}

    def play(self, value, max_value):
        freq = value_to_freq(value, max_value)
        snd = self._cache.get(freq)
        if snd is None:
            snd = pygame.mixer.Sound(buffer=np.ascontiguousarray(build_tone(freq)).tobytes())
            self._cache[freq] = snd
        snd.play()


# ============================================================
# ========================== DRAW ============================
# ============================================================

def build_fonts():
    def tf(names, sz):
        for n in names:
            try: return pygame.font.SysFont(n, sz)
            except Exception: pass
        return pygame.font.SysFont(None, sz)
    mono = ["Consolas", "Courier New", "Lucida Console"]
    return dict(mid=tf(mono, 17), small=tf(mono, 13))


def draw(screen, fonts, view, desc, stats, state, delay_ms, message="", message_ok=True):
    screen.fill(BACKGROUND_COLOR)
    values = view.values
    n = len(values)
    if n:
        top = max(max(values), 1)
        bw  = WINDOW_WIDTH / n
        for i, v in enumerate(values):
            h = max(0, v) / top * (WINDOW_HEIGHT - HEADER_H - 10)
            pygame.draw.rect(screen, view.bar_color(i),
                             (i * bw, WINDOW_HEIGHT - h, max(1, bw - BAR_SPACING), h))

    head  = (f"{desc.display_name}  time {desc.time_complexity}  space {desc.space_complexity}"
             f"   |   {state.label}")
    line2 = (f"comparisons {stats.comparisons}   swaps {stats.swaps}   "
             f"time {stats.elapsed_ms}ms   delay {delay_ms}ms   n={n}")
    screen.blit(fonts['mid'].render(head, True, UI_TEXT), (12, 8))
    screen.blit(fonts['small'].render(line2, True, UI_SUBTEXT), (12, 30))
    text = message or view.description
    if text:
        col = UI_SUBTEXT if message_ok or not message else UI_ERROR
        screen.blit(fonts['small'].render(text, True, col), (12, 48))
    pygame.display.flip()


# ============================================================
# ========================= MAIN =============================
# ============================================================

KEY_ORDER = list(AlgorithmId)


def parse_args(argv=None):
    p = argparse.ArgumentParser(prog="sortengine", description="Step-by-step sorting visualizer")
    p.add_argument("--algorithm", choices=[a.value for a in AlgorithmId], default="bubble")
    p.add_argument("--size", type=int, default=DEFAULT_ARRAY_SIZE,
                   help=f"array size, {MIN_ARRAY_SIZE}-{MAX_ARRAY_SIZE}")
    p.add_argument("--delay", type=int, default=DEFAULT_STEP_DELAY_MS, help="step delay in ms")
    p.add_argument("--seed", type=int, default=None)
    p.add_argument("--no-sound", action="store_true")
    p.add_argument("-v", "--verbose", action="store_true")
    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    try:
        cfg = EngineConfig(args.size, args.delay).validate()
    except SortEngineError as e:
        print(f"sortengine: {e}", file=sys.stderr)
        return 2

    observer   = QueueObserver()
    controller = SortRunController(cfg, observer, seed=args.seed)
    selected   = AlgorithmId(args.algorithm)
    view       = ViewState(controller.array_snapshot())
    stats      = controller.stats
    state      = controller.state
    message, message_ok = "", True

    sound = ENABLE_SOUND and not args.no_sound
    if sound:
        pygame.mixer.pre_init(SAMPLE_RATE, -16, 2, 512)
    pygame.init()
    if sound and not pygame.mixer.get_init():
        logger.warning("audio unavailable, running without sound")
        sound = False
    tones  = TonePlayer() if sound else None
    screen = pygame.display.set_mode((WINDOW_WIDTH, WINDOW_HEIGHT))
    pygame.display.set_caption("SuperSorter")
    fonts  = build_fonts(); clock = pygame.time.Clock()

    def control(fn, *a):
        nonlocal message, message_ok
        try:
            fn(*a); message = ""
        except SortEngineError as e:
            message, message_ok = str(e), False
            logger.info("%s", e)

    while True:
        clock.tick(FPS)
        for ev in pygame.event.get():
            if ev.type == pygame.QUIT or (ev.type == pygame.KEYDOWN and ev.key == pygame.K_ESCAPE):
                pygame.quit(); return 0
            if ev.type != pygame.KEYDOWN:
                continue
            if ev.key == pygame.K_SPACE:
                if controller.state.in_flight:
                    controller.pause_toggle()
                else:
                    view.sync(controller.array_snapshot()); control(controller.start, selected)
            elif ev.key == pygame.K_r:
                control(controller.reset)
            elif ev.key == pygame.K_n:
                control(controller.regenerate)
            elif ev.key == pygame.K_UP:
                control(controller.configure, None, controller.config.step_delay_ms + DELAY_STEP_MS)
            elif ev.key == pygame.K_DOWN:
                control(controller.configure, None,
                        max(0, controller.config.step_delay_ms - DELAY_STEP_MS))
            elif pygame.K_1 <= ev.key <= pygame.K_9:
                if controller.state.in_flight:
                    message, message_ok = "cannot switch algorithms during a run", False
                else:
                    selected = KEY_ORDER[ev.key - pygame.K_1]
                    message, message_ok = f"selected {ALGORITHMS[selected].display_name}", True

        for kind, payload in observer.drain():
            if kind == "step":
                view.apply(payload)
                if tones and isinstance(payload, INSTRUMENTED):
                    idx = payload.index if isinstance(payload, Overwrite) else payload.indices[0]
                    tones.play(view.values[idx], max(view.values))
            elif kind == "stats":
                stats = payload
            elif kind == "state":
                state = payload
                if payload is RunState.IDLE:
                    view.sync(controller.array_snapshot())
            elif kind == "error":
                message, message_ok = f"run failed: {payload}", False

        draw(screen, fonts, view, ALGORITHMS[selected], stats, state,
             controller.config.step_delay_ms, message, message_ok)


if __name__ == "__main__":
    sys.exit(main())
