"""Window, input, drawing and audio front end for the playable demo."""

from __future__ import annotations

import argparse
import os
import re
import sys
import time
from array import array
from typing import Mapping, Optional, Sequence

import pygame

from tpsengine.demo_sim import (
    DEFAULT_SEED,
    INITIAL_HEALTH,
    MAX_DELTA_SECONDS,
    MIN_DELTA_SECONDS,
    WINDOW_HEIGHT,
    WINDOW_WIDTH,
    DemoWorld,
    SoundSynth,
    Vec2,
    checker_pattern,
    clamp,
)

_TITLE = "TPS Playable Demo"
_BACKGROUND = (9, 11, 14)
_GRID_COLOR = (18, 22, 28)
_GRID_SPACING = 40
_HEALTH_BACK = (40, 25, 25)
_HEALTH_FRONT = (220, 70, 70)
_HEALTH_RECT = (20, 20, 300, 20)
_SAMPLE_RATE = 48000
_LEADING_INT = re.compile(r"\s*[+-]?\d+")


def window_title(health: int, score: int, enemies: int, game_over: bool) -> str:
    title = (
        f"{_TITLE} | WASD Move | Mouse/SPACE Shoot | ESC Quit | HP {health}"
        f" | Score {score} | Enemies {enemies}"
    )
    if game_over:
        title += " | GAME OVER - Press R to Restart"
    return title


def _seed_from_env(environ: Mapping[str, str]) -> int:
    text = environ.get("TPS_RANDOM_SEED", "")
    if not text:
        return DEFAULT_SEED
    match = _LEADING_INT.match(text)
    value = int(match.group()) if match else 0
    return value & 0xFFFFFFFF


def _non_negative(text: str) -> int:
    value = int(text)
    if value < 0:
        raise argparse.ArgumentTypeError("must not be negative")
    return value


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="tps-demo", description="Top-down arena shooter demo.")
    parser.add_argument("--seed", type=int, default=None, help="random seed (default: TPS_RANDOM_SEED or 1337)")
    parser.add_argument("--max-frames", type=_non_negative, default=0, help="quit after this many frames (0: run until closed)")
    return parser.parse_args(argv)


def _make_texture(width: int, height: int, a, b, checker_size: int) -> pygame.Surface:
    surface = pygame.Surface((width, height), pygame.SRCALPHA)
    for y, row in enumerate(checker_pattern(width, height, a, b, checker_size)):
        for x, color in enumerate(row):
            surface.set_at((x, y), color)
    return surface


def _load_sounds() -> dict[str, pygame.mixer.Sound]:
    """Pre-render each effect with the synthesizer; empty when audio is unavailable."""
    try:
        pygame.mixer.init(frequency=_SAMPLE_RATE, size=-16, channels=1)
    except pygame.error:
        return {}
    settings = pygame.mixer.get_init()
    if not settings or settings[1] != -16:
        return {}
    rate, _, channels = settings

    sounds = {}
    for name in ("shot", "hit", "hurt"):
        synth = SoundSynth(rate)
        if name == "shot":
            synth.shot()
        elif name == "hit":
            synth.hit()
        else:
            synth.hurt()
        samples: list[float] = []
        while synth.active_voices:
            samples.extend(synth.render(1024))
        pcm = array("h")
        for sample in samples:
            pcm.extend([int(sample * 32767)] * channels)
        sounds[name] = pygame.mixer.Sound(buffer=pcm.tobytes())
    return sounds


def _draw_grid(screen: pygame.Surface) -> None:
    for x in range(0, WINDOW_WIDTH, _GRID_SPACING):
        pygame.draw.line(screen, _GRID_COLOR, (x, 0), (x, WINDOW_HEIGHT))
    for y in range(0, WINDOW_HEIGHT, _GRID_SPACING):
        pygame.draw.line(screen, _GRID_COLOR, (0, y), (WINDOW_WIDTH, y))


def _draw_health_bar(screen: pygame.Surface, health: int) -> None:
    clamped = max(0, min(health, INITIAL_HEALTH))
    left, top, width, height = _HEALTH_RECT
    pygame.draw.rect(screen, _HEALTH_BACK, _HEALTH_RECT)
    pygame.draw.rect(screen, _HEALTH_FRONT, (left, top, width * clamped // INITIAL_HEALTH, height))


def _blit_centered(screen: pygame.Surface, texture: pygame.Surface, position: Vec2) -> None:
    half_w = texture.get_width() / 2
    half_h = texture.get_height() / 2
    screen.blit(texture, (int(position.x - half_w), int(position.y - half_h)))


def _run(args: argparse.Namespace) -> int:
    try:
        screen = pygame.display.set_mode((WINDOW_WIDTH, WINDOW_HEIGHT))
    except pygame.error as exc:
        print(f"Window creation failed: {exc}", file=sys.stderr)
        return 1
    pygame.display.set_caption(_TITLE)

    player_texture = _make_texture(48, 48, (64, 180, 255, 255), (10, 72, 140, 255), 6)
    enemy_texture = _make_texture(36, 36, (255, 114, 90, 255), (140, 34, 24, 255), 6)
    bullet_texture = _make_texture(14, 14, (255, 240, 126, 255), (180, 120, 22, 255), 2)
    sounds = _load_sounds()

    seed = args.seed if args.seed is not None else _seed_from_env(os.environ)
    world = DemoWorld(seed=seed & 0xFFFFFFFF)
    clock = pygame.time.Clock()
    last = time.perf_counter()
    frames = 0
    running = True

    while running:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    running = False
                elif event.key == pygame.K_r and world.game_over:
                    world.reset()

        now = time.perf_counter()
        delta = clamp(now - last, MIN_DELTA_SECONDS, MAX_DELTA_SECONDS)
        last = now

        keys = pygame.key.get_pressed()
        move = Vec2(
            float(keys[pygame.K_d]) - float(keys[pygame.K_a]),
            float(keys[pygame.K_s]) - float(keys[pygame.K_w]),
        )
        mouse_x, mouse_y = pygame.mouse.get_pos()
        shoot = bool(keys[pygame.K_SPACE]) or pygame.mouse.get_pressed()[0]
        for name in world.step(delta, move, shoot, Vec2(float(mouse_x), float(mouse_y))):
            sound = sounds.get(name)
            if sound is not None:
                sound.play()

        screen.fill(_BACKGROUND)
        _draw_grid(screen)
        for bullet in world.bullets:
            _blit_centered(screen, bullet_texture, bullet.position)
        for enemy in world.enemies:
            _blit_centered(screen, enemy_texture, enemy.position)
        _blit_centered(screen, player_texture, world.player_pos)
        _draw_health_bar(screen, world.health)
        pygame.display.flip()

        pygame.display.set_caption(
            window_title(world.health, world.score, len(world.enemies), world.game_over)
        )
        clock.tick(60)

        frames += 1
        if args.max_frames and frames >= args.max_frames:
            running = False
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Open the demo window and play until it is closed; return an exit status."""
    args = _parse_args(argv)
    pygame.init()
    try:
        return _run(args)
    finally:
        if pygame.mixer.get_init():
            pygame.mixer.quit()
        pygame.quit()


if __name__ == "__main__":
    sys.exit(main())