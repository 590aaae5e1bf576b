"""Simulation of the top-down playable demo: player, bullets, enemies and sound."""

from __future__ import annotations

import math
import random
from dataclasses import dataclass, field
from typing import Optional, Sequence, TypeVar, Union

WINDOW_WIDTH = 1280
WINDOW_HEIGHT = 720
PLAYER_SPEED = 280.0
PLAYER_RADIUS = 18.0
BULLET_SPEED = 560.0
BULLET_LIFE_SECONDS = 1.4
BULLET_RADIUS = 7.0
SHOT_COOLDOWN_SECONDS = 0.15
ENEMY_BASE_SPEED = 62.0
ENEMY_SPEED_JITTER = 38.0
ENEMY_RADIUS = 14.0
SPAWN_INTERVAL_SECONDS = 0.72
MAX_ENEMIES = 52
INITIAL_HEALTH = 100
TOUCH_DAMAGE = 8
TOUCH_COOLDOWN_SECONDS = 0.5
MIN_DELTA_SECONDS = 0.001
MAX_DELTA_SECONDS = 0.05
SPAWN_MARGIN = 40.0
OFFSCREEN_MARGIN = 80.0
DEFAULT_SEED = 1337

_TWO_PI = 6.28318530718
_OUTPUT_LIMIT = 0.95
_SILENCE_AMPLITUDE = 0.0002

_T = TypeVar("_T")


@dataclass(frozen=True)
class Vec2:
    """An immutable two-component vector."""

    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: Vec2) -> Vec2:
        return Vec2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Vec2) -> Vec2:
        return Vec2(self.x - other.x, self.y - other.y)

    def __mul__(self, scale: float) -> Vec2:
        return Vec2(self.x * scale, self.y * scale)

    __rmul__ = __mul__

    @property
    def length_squared(self) -> float:
        return self.x * self.x + self.y * self.y

    def normalized(self) -> Vec2:
        """Unit vector in the same direction, or zero if the vector is tiny."""
        len_sq = self.length_squared
        if len_sq <= 0.000001:
            return Vec2()
        inv_len = 1.0 / math.sqrt(len_sq)
        return Vec2(self.x * inv_len, self.y * inv_len)


Vec2Like = Union[Vec2, Sequence[float]]


def _as_vec2(value: Vec2Like) -> Vec2:
    if isinstance(value, Vec2):
        return value
    x, y = value
    return Vec2(float(x), float(y))


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(value, high))


def checker_pattern(
    width: int, height: int, a: _T, b: _T, checker_size: int
) -> list[list[_T]]:
    """Rows of a checkerboard; the top-left cell uses ``b`` and alternates with ``a``."""
    if width <= 0 or height <= 0 or checker_size <= 0:
        raise ValueError("width, height and checker_size must be positive")
    return [
        [a if (x // checker_size + y // checker_size) % 2 else b for x in range(width)]
        for y in range(height)
    ]


@dataclass
class _Voice:
    active: bool = False
    frequency: float = 0.0
    phase: float = 0.0
    amplitude: float = 0.0
    decay: float = 0.0
    remaining_samples: int = 0


class SoundSynth:
    """A small mono sine-voice synthesizer with exponential decay."""

    VOICE_COUNT = 24

    def __init__(self, sample_rate: int = 48000) -> None:
        self.sample_rate = sample_rate if sample_rate > 0 else 48000
        self._voices = [_Voice() for _ in range(self.VOICE_COUNT)]

    @property
    def active_voices(self) -> int:
        return sum(voice.active for voice in self._voices)

    def add_voice(
        self, frequency: float, duration: float, amplitude: float, decay: float
    ) -> bool:
        """Start a voice in a free slot; return False when every slot is busy."""
        for voice in self._voices:
            if voice.active:
                continue
            voice.active = True
            voice.frequency = frequency
            voice.phase = 0.0
            voice.amplitude = amplitude
            voice.decay = decay
            voice.remaining_samples = int(duration * self.sample_rate)
            return True
        return False

    def shot(self) -> None:
        self.add_voice(720.0, 0.18, 0.32, 0.9976)

    def hit(self) -> None:
        self.add_voice(160.0, 0.22, 0.42, 0.9972)
        self.add_voice(230.0, 0.16, 0.30, 0.9972)

    def hurt(self) -> None:
        self.add_voice(105.0, 0.26, 0.46, 0.9970)

    def reset(self) -> None:
        self._voices = [_Voice() for _ in range(self.VOICE_COUNT)]

    def render(self, count: int) -> list[float]:
        """Mix the next ``count`` samples, clamped to +/-0.95."""
        out: list[float] = []
        for _ in range(count):
            mixed = 0.0
            for voice in self._voices:
                if not voice.active:
                    continue
                if voice.remaining_samples <= 0 or voice.amplitude < _SILENCE_AMPLITUDE:
                    voice.active = False
                    continue
                mixed += math.sin(voice.phase) * voice.amplitude
                voice.phase += (_TWO_PI * voice.frequency) / self.sample_rate
                if voice.phase > _TWO_PI:
                    voice.phase -= _TWO_PI
                voice.amplitude *= voice.decay
                voice.remaining_samples -= 1
            out.append(clamp(mixed, -_OUTPUT_LIMIT, _OUTPUT_LIMIT))
        return out


@dataclass
class Bullet:
    position: Vec2 = field(default_factory=Vec2)
    velocity: Vec2 = field(default_factory=Vec2)
    remaining_life: float = 0.0
    alive: bool = True


@dataclass
class Enemy:
    position: Vec2 = field(default_factory=Vec2)
    speed: float = ENEMY_BASE_SPEED
    touch_cooldown: float = 0.0
    alive: bool = True


def _spawn_center() -> Vec2:
    return Vec2(WINDOW_WIDTH * 0.5, WINDOW_HEIGHT * 0.5)


class DemoWorld:
    """State and rules of the demo arena.

    :meth:`step` returns the names of the sounds the frame produced
    (``"shot"``, ``"hit"``, ``"hurt"``) and plays them on ``synth`` if one is set.
    """

    def __init__(self, seed: int = DEFAULT_SEED, synth: Optional[SoundSynth] = None) -> None:
        self._rng = random.Random(seed)
        self.synth = synth
        self.reset()

    def reset(self) -> None:
        """Restart the round; the random stream carries on."""
        self.player_pos = _spawn_center()
        self.bullets: list[Bullet] = []
        self.enemies: list[Enemy] = []
        self.shot_cooldown = 0.0
        self.spawn_timer = 0.0
        self.health = INITIAL_HEALTH
        self.score = 0
        self.game_over = False

    def _emit(self, events: list[str], name: str) -> None:
        events.append(name)
        if self.synth is None:
            return
        if name == "shot":
            self.synth.shot()
        elif name == "hit":
            self.synth.hit()
        elif name == "hurt":
            self.synth.hurt()

    def _spawn_enemy(self) -> Enemy:
        rng = self._rng
        speed = ENEMY_BASE_SPEED + rng.uniform(0.0, ENEMY_SPEED_JITTER)
        side = rng.random()
        if side < 0.25:
            position = Vec2(rng.uniform(0.0, WINDOW_WIDTH), -SPAWN_MARGIN)
        elif side < 0.5:
            position = Vec2(rng.uniform(0.0, WINDOW_WIDTH), WINDOW_HEIGHT + SPAWN_MARGIN)
        elif side < 0.75:
            position = Vec2(-SPAWN_MARGIN, rng.uniform(0.0, WINDOW_HEIGHT))
        else:
            position = Vec2(WINDOW_WIDTH + SPAWN_MARGIN, rng.uniform(0.0, WINDOW_HEIGHT))
        return Enemy(position=position, speed=speed)

    def step(
        self,
        delta_time: float,
        move: Vec2Like = Vec2(),
        shoot: bool = False,
        aim_target: Optional[Vec2Like] = None,
    ) -> list[str]:
        """Advance the world; ``delta_time`` is clamped to [0.001, 0.05] seconds."""
        events: list[str] = []
        if self.game_over:
            return events

        dt = clamp(delta_time, MIN_DELTA_SECONDS, MAX_DELTA_SECONDS)

        direction = _as_vec2(move).normalized()
        moved = self.player_pos + direction * (PLAYER_SPEED * dt)
        self.player_pos = Vec2(
            clamp(moved.x, PLAYER_RADIUS, WINDOW_WIDTH - PLAYER_RADIUS),
            clamp(moved.y, PLAYER_RADIUS, WINDOW_HEIGHT - PLAYER_RADIUS),
        )

        self.shot_cooldown = max(0.0, self.shot_cooldown - dt)
        self.spawn_timer += dt

        if self.spawn_timer >= SPAWN_INTERVAL_SECONDS and len(self.enemies) < MAX_ENEMIES:
            self.spawn_timer = 0.0
            self.enemies.append(self._spawn_enemy())

        if shoot and aim_target is not None and self.shot_cooldown <= 0.0:
            aim = (_as_vec2(aim_target) - self.player_pos).normalized()
            if aim.length_squared > 0.0:
                self.bullets.append(
                    Bullet(self.player_pos, aim * BULLET_SPEED, BULLET_LIFE_SECONDS)
                )
                self.shot_cooldown = SHOT_COOLDOWN_SECONDS
                self._emit(events, "shot")

        for bullet in self.bullets:
            if not bullet.alive:
                continue
            bullet.position = bullet.position + bullet.velocity * dt
            bullet.remaining_life -= dt
            pos = bullet.position
            if (
                bullet.remaining_life <= 0.0
                or not -OFFSCREEN_MARGIN <= pos.x <= WINDOW_WIDTH + OFFSCREEN_MARGIN
                or not -OFFSCREEN_MARGIN <= pos.y <= WINDOW_HEIGHT + OFFSCREEN_MARGIN
            ):
                bullet.alive = False

        for enemy in self.enemies:
            if not enemy.alive:
                continue
            enemy.touch_cooldown = max(0.0, enemy.touch_cooldown - dt)
            heading = (self.player_pos - enemy.position).normalized()
            enemy.position = enemy.position + heading * (enemy.speed * dt)

        hit_distance_sq = (ENEMY_RADIUS + BULLET_RADIUS) ** 2
        for bullet in self.bullets:
            if not bullet.alive:
                continue
            for enemy in self.enemies:
                if not enemy.alive:
                    continue
                if (enemy.position - bullet.position).length_squared > hit_distance_sq:
                    continue
                bullet.alive = False
                enemy.alive = False
                self.score += 1
                self._emit(events, "hit")
                break

        touch_distance_sq = (ENEMY_RADIUS + PLAYER_RADIUS - 2.0) ** 2
        for enemy in self.enemies:
            if not enemy.alive or enemy.touch_cooldown > 0.0:
                continue
            if (enemy.position - self.player_pos).length_squared > touch_distance_sq:
                continue
            self.health = max(0, self.health - TOUCH_DAMAGE)
            enemy.touch_cooldown = TOUCH_COOLDOWN_SECONDS
            self._emit(events, "hurt")
            if self.health == 0:
                self.game_over = True
                break

        self.bullets = [bullet for bullet in self.bullets if bullet.alive]
        self.enemies = [enemy for enemy in self.enemies if enemy.alive]
        return events