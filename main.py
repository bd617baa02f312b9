from __future__ import annotations

import argparse
import logging
import math
import sys
import time
from pathlib import Path
from typing import Tuple

try:
    import pygame  # type: ignore
except Exception:
    pygame = None

from config import (
    FPS,
    MAX_GEAR,
    MAX_RPM,
    REDLINE,
    SAVE_DIR,
    SCREEN_H,
    SCREEN_W,
    TICK_SECONDS,
    TOKEN_PACKAGES,
)
from tycoon import EngineSim, GameSession
from tycoon.feedback import PygameFeedback, RecordingFeedback
from tycoon.formatting import format_hp, format_rate
from tycoon.persistence import SaveStore
from tycoon.simulation import apply_offline_earnings, now_ms

logger = logging.getLogger("turbo_tycoon")

PART_KEYS = "1234567890"
TOKEN_KEYS = dict(zip("xcv", TOKEN_PACKAGES))
# pygame 2 names; older builds lack some of them.
SUSPEND_EVENT_NAMES = ("APP_WILLENTERBACKGROUND", "WINDOWMINIMIZED")


def autobuy_cheapest(sim: EngineSim) -> bool:
    affordable = [key for key in sim.parts if sim.part_cost(key) <= sim.state.total_hp]
    if not affordable:
        return False
    return sim.buy_part(min(affordable, key=sim.part_cost))


def run_headless(ticks: int, rev_every: int, load_save: bool, autobuy: bool, store: SaveStore) -> None:
    feedback = RecordingFeedback()
    now = now_ms()
    state = store.load() if load_save else None
    report = apply_offline_earnings(state, now=now) if state is not None else None
    sim = EngineSim(state, feedback)
    sim.check_daily_reset()
    if report is not None:
        print(f"offline +{format_hp(report.earned)} HP ({report.describe()})")

    step_ms = int(TICK_SECONDS * 1000)
    ticks_per_second = int(round(1 / TICK_SECONDS))
    for i in range(ticks):
        now += step_ms
        if rev_every > 0 and i % rev_every == 0:
            sim.rev(now)
        sim.tick(now=now)
        if i % ticks_per_second == 0:
            sim.check_achievements()
            if autobuy:
                autobuy_cheapest(sim)

    store.save(sim.state)
    s = sim.state
    print(
        f"headless_done ticks={ticks} rpm={s.current_rpm} gear={s.current_gear} "
        f"hp[total={format_hp(s.total_hp)},lifetime={format_hp(s.lifetime_hp_earned)},rate={format_rate(sim.hp_per_second)}]"
        f" progression[tier={s.current_tier},parts={sum(s.parts.values())},achievements={len(s.achievements)}]"
        f" cues[shift={feedback.cues.count('perfect_shift')},safety={feedback.cues.count('upshift')},"
        f"down={feedback.cues.count('downshift')}]"
    )


class GameUI:
    def __init__(self, session: GameSession):
        if pygame is None:
            raise RuntimeError("pygame is required for graphical mode. Relaunch with --headless.")
        pygame.init()
        if not pygame.display.get_init():
            raise RuntimeError("Display subsystem is unavailable. Relaunch with --headless.")
        try:
            self.screen = pygame.display.set_mode((SCREEN_W, SCREEN_H))
        except pygame.error as exc:
            raise RuntimeError(f"Could not open a window ({exc}). Relaunch with --headless.") from exc
        pygame.display.set_caption("Turbo Tycoon")
        self.session = session
        self.clock = pygame.time.Clock()
        self.big = pygame.font.SysFont("arial", 44, bold=True)
        self.font = pygame.font.SysFont("arial", 22)
        self.small = pygame.font.SysFont("arial", 16)
        self.running = True
        self.message = ""
        self.message_until = 0.0
        if session.offline_report is not None:
            report = session.offline_report
            self._flash(f"Welcome back! +{format_hp(report.earned)} HP earned in {report.describe()}", 6.0)

        self.palette = {
            "bg": (12, 15, 24),
            "panel": (20, 25, 38),
            "panel_border": (46, 56, 80),
            "text": (230, 236, 248),
            "muted": (161, 177, 205),
            "gauge": (74, 126, 230),
            "redline": (232, 72, 61),
            "needle": (255, 214, 126),
            "perfect": (106, 212, 148),
            "locked": (90, 96, 112),
        }

    def _flash(self, text: str, seconds: float = 2.5) -> None:
        self.message = text
        self.message_until = time.monotonic() + seconds

    def _reject_message(self) -> None:
        rejection = self.session.read(lambda sim: sim.last_rejection)
        if rejection is not None:
            self._flash(rejection.message)

    def handle_input(self) -> None:
        suspend = {getattr(pygame, name) for name in SUSPEND_EVENT_NAMES if hasattr(pygame, name)}
        for ev in pygame.event.get():
            if ev.type == pygame.QUIT:
                self.running = False
            elif ev.type in suspend:
                # A backgrounded app may be killed without ever seeing QUIT.
                self.session.save()
            elif ev.type == pygame.MOUSEBUTTONDOWN and ev.button == 1:
                self.session.rev()
            elif ev.type == pygame.KEYDOWN:
                self._handle_key(ev)

    def _handle_key(self, ev) -> None:
        if ev.key == pygame.K_SPACE:
            self.session.rev()
            return
        part_keys = list(self.session.read(lambda sim: list(sim.parts)))
        if ev.unicode and ev.unicode in PART_KEYS:
            index = PART_KEYS.index(ev.unicode)
            if index < len(part_keys) and not self.session.buy_part(part_keys[index]):
                self._reject_message()
        elif ev.key == pygame.K_t:
            if not self.session.buy_manual_upgrade("throttle"):
                self._reject_message()
        elif ev.key == pygame.K_e:
            if not self.session.buy_manual_upgrade("ecu"):
                self._reject_message()
        elif ev.key == pygame.K_p:
            if self.session.prestige():
                self._flash("Prestige unlocked: income doubled!")
            else:
                self._reject_message()
        elif ev.unicode and ev.unicode.lower() in TOKEN_KEYS:
            if not self.session.convert_hp_to_tokens(TOKEN_KEYS[ev.unicode.lower()]):
                self._reject_message()
        elif ev.key == pygame.K_ESCAPE:
            self.running = False

    def _gauge_point(self, center: Tuple[int, int], radius: float, rpm: float) -> Tuple[int, int]:
        # 0 RPM at 225 degrees, MAX_RPM at -45 degrees
        angle = math.radians(225 - 270 * (rpm / MAX_RPM))
        return int(center[0] + radius * math.cos(angle)), int(center[1] - radius * math.sin(angle))

    def draw_gauge(self, sim: EngineSim) -> None:
        center, radius = (250, 300), 190
        for rpm in range(0, MAX_RPM + 1, 250):
            color = self.palette["redline"] if rpm >= REDLINE else self.palette["gauge"]
            inner = radius - (22 if rpm % 1000 == 0 else 10)
            pygame.draw.line(
                self.screen, color,
                self._gauge_point(center, inner, rpm), self._gauge_point(center, radius, rpm),
                3 if rpm % 1000 == 0 else 1,
            )
            if rpm % 1000 == 0:
                label = self.small.render(str(rpm // 1000), True, self.palette["muted"])
                self.screen.blit(label, label.get_rect(center=self._gauge_point(center, radius - 40, rpm)))
        pygame.draw.line(
            self.screen, self.palette["needle"], center,
            self._gauge_point(center, radius - 15, sim.state.current_rpm), 4,
        )
        pygame.draw.circle(self.screen, self.palette["needle"], center, 9)

        gear_color = self.palette["perfect"] if sim.perfect_shift_active() else self.palette["text"]
        gear = self.big.render(f"{sim.state.current_gear}", True, gear_color)
        self.screen.blit(gear, gear.get_rect(center=(center[0], center[1] + 70)))
        rpm_text = self.small.render(f"{sim.state.current_rpm} RPM", True, self.palette["muted"])
        self.screen.blit(rpm_text, rpm_text.get_rect(center=(center[0], center[1] + 110)))
        if sim.perfect_shift_active():
            flash = self.font.render("PERFECT SHIFT!", True, self.palette["perfect"])
            self.screen.blit(flash, flash.get_rect(center=(center[0], center[1] - 80)))
        elif sim.state.redzone_start_time is not None and sim.state.current_gear < MAX_GEAR:
            warn = self.font.render("SHIFT!", True, self.palette["redline"])
            self.screen.blit(warn, warn.get_rect(center=(center[0], center[1] - 80)))

    def draw_shop(self, sim: EngineSim) -> None:
        x, y = 520, 20
        s = sim.state
        self.screen.blit(self.big.render(f"{format_hp(s.total_hp)} HP", True, self.palette["text"]), (x, y))
        self.screen.blit(self.small.render(format_rate(sim.hp_per_second), True, self.palette["perfect"]), (x, y + 52))
        tier_line = f"{sim.tier.display_name} | Tier {s.current_tier} | Tokens {s.tokens}"
        self.screen.blit(self.small.render(tier_line, True, self.palette["muted"]), (x, y + 74))

        y += 110
        for index, (key, part) in enumerate(sim.parts.items()):
            price = sim.part_cost(key)
            color = self.palette["text"] if price <= s.total_hp else self.palette["locked"]
            line = f"[{PART_KEYS[index]}] {part.display_name} L{s.parts.get(key, 0)} - {format_hp(price)} HP"
            self.screen.blit(self.small.render(line, True, color), (x, y + index * 24))

        y += len(sim.parts) * 24 + 12
        for label, kind, level in (("T", "throttle", s.throttle_level), ("E", "ecu", s.ecu_level)):
            price = sim.manual_upgrade_cost(kind)
            color = self.palette["text"] if price <= s.total_hp else self.palette["locked"]
            line = f"[{label}] {kind.capitalize()} L{level} - {format_hp(price)} HP"
            self.screen.blit(self.small.render(line, True, color), (x, y))
            y += 24

        upcoming = sim.next_tier()
        if upcoming is not None:
            line = f"[P] Prestige to {upcoming.display_name}: {sim.prestige_progress():.0f}%"
            color = self.palette["perfect"] if sim.can_prestige() else self.palette["muted"]
            self.screen.blit(self.small.render(line, True, color), (x, y + 6))

        y += 34
        exchanged = s.tokens_earned_today > 0
        for label, key in TOKEN_KEYS.items():
            package = TOKEN_PACKAGES[key]
            affordable = not exchanged and package["hp_cost"] <= s.total_hp
            line = f"[{label.upper()}] {package['token_amount']} tokens - {format_hp(package['hp_cost'])} HP"
            color = self.palette["text"] if affordable else self.palette["locked"]
            self.screen.blit(self.small.render(line, True, color), (x, y))
            y += 22

    def draw(self) -> None:
        self.screen.fill(self.palette["bg"])
        self.session.read(self.draw_gauge)
        self.session.read(self.draw_shop)

        panel = pygame.Rect(0, SCREEN_H - 60, SCREEN_W, 60)
        pygame.draw.rect(self.screen, self.palette["panel"], panel)
        pygame.draw.line(self.screen, self.palette["panel_border"], panel.topleft, panel.topright, 2)
        toast = self.session.poll_toast()
        if toast is not None:
            text = f"Achievement: {toast.title} - {toast.description}"
            if toast.reward_tokens:
                text += f" (+{toast.reward_tokens} tokens)"
            self.screen.blit(self.font.render(text, True, self.palette["needle"]), (12, SCREEN_H - 46))
        elif time.monotonic() < self.message_until:
            self.screen.blit(self.font.render(self.message, True, self.palette["text"]), (12, SCREEN_H - 46))
        else:
            hint = "SPACE/click rev | 1-0 parts | T throttle | E ecu | P prestige | X/C/V tokens | ESC quit"
            self.screen.blit(self.small.render(hint, True, self.palette["muted"]), (12, SCREEN_H - 40))

        pygame.display.flip()

    def run(self) -> None:
        self.session.start()
        try:
            while self.running:
                self.clock.tick(FPS)
                self.handle_input()
                self.draw()
        finally:
            self.session.stop()
            pygame.quit()


def serve(store: SaveStore, host: str, port: int) -> None:
    import uvicorn

    from tycoon.remote import GameServer, create_app

    uvicorn.run(create_app(GameServer(store)), host=host, port=port)


def main() -> None:
    parser = argparse.ArgumentParser(description="Turbo Tycoon engine clicker")
    parser.add_argument("--headless", action="store_true", help="run simulation without graphics")
    parser.add_argument("--ticks", type=int, default=600, help="headless ticks to run")
    parser.add_argument("--rev-every", type=int, default=1, help="headless: rev once every N ticks (0 = never)")
    parser.add_argument("--autobuy", action="store_true", help="headless: buy the cheapest affordable part each second")
    parser.add_argument("--load", action="store_true", help="headless: continue from the save")
    parser.add_argument("--save-dir", type=Path, default=SAVE_DIR, help="directory holding the save file")
    parser.add_argument("--reset", action="store_true", help="delete the save before starting")
    parser.add_argument("--serve", action="store_true", help="run the authoritative HTTP API")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--log-level", default="WARNING", help="logging level (DEBUG, INFO, ...)")
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    store = SaveStore(args.save_dir)
    if args.reset:
        store.clear()

    if args.serve:
        serve(store, args.host, args.port)
        return

    if args.headless:
        run_headless(args.ticks, args.rev_every, args.load, args.autobuy, store)
        return

    try:
        feedback = PygameFeedback()
        ui = GameUI(GameSession.open(store, feedback))
    except RuntimeError as exc:
        print(f"Startup error: {exc}", file=sys.stderr)
        raise SystemExit(1)
    ui.run()


if __name__ == "__main__":
    main()
