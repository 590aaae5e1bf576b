import math

import pytest

from tpsengine import demo_sim
from tpsengine.demo_sim import (
    Bullet,
    DemoWorld,
    Enemy,
    SoundSynth,
    Vec2,
    checker_pattern,
    clamp,
)

CENTER = Vec2(demo_sim.WINDOW_WIDTH * 0.5, demo_sim.WINDOW_HEIGHT * 0.5)


def test_clamp_limits():
    assert clamp(5.0, 0.0, 1.0) == 1.0
    assert clamp(-5.0, 0.0, 1.0) == 0.0
    assert clamp(0.5, 0.0, 1.0) == 0.5


def test_vec2_normalized_is_unit_length():
    v = Vec2(3.0, -4.0).normalized()
    assert math.isclose(v.length_squared, 1.0, rel_tol=1e-9)


def test_vec2_tiny_normalizes_to_zero():
    assert Vec2(0.0001, 0.0).normalized() == Vec2()


def test_checker_pattern_layout():
    pattern = checker_pattern(8, 6, "a", "b", 2)
    assert len(pattern) == 6
    assert all(len(row) == 8 for row in pattern)
    assert pattern[0][0] == "b"
    assert pattern[0][2] == "a"
    assert pattern[2][0] == "a"
    assert pattern[2][2] == "b"


@pytest.mark.parametrize("args", [(0, 4, 1), (4, 0, 1), (4, 4, 0)])
def test_checker_pattern_rejects_bad_sizes(args):
    width, height, size = args
    with pytest.raises(ValueError):
        checker_pattern(width, height, 1, 2, size)


def test_synth_silent_without_voices():
    synth = SoundSynth()
    assert synth.render(64) == [0.0] * 64


def test_synth_shot_output_is_bounded_and_fades():
    synth = SoundSynth()
    synth.shot()
    assert synth.active_voices == 1
    samples = synth.render(10000)
    assert samples[0] == 0.0
    assert max(abs(s) for s in samples) <= 0.95
    assert any(s != 0.0 for s in samples)
    assert synth.active_voices == 0


def test_synth_hit_uses_two_voices():
    synth = SoundSynth()
    synth.hit()
    assert synth.active_voices == 2


def test_synth_voice_slots_are_limited():
    synth = SoundSynth()
    results = [synth.add_voice(440.0, 1.0, 0.1, 0.999) for _ in range(30)]
    assert results.count(True) == SoundSynth.VOICE_COUNT
    assert synth.active_voices == SoundSynth.VOICE_COUNT


def test_world_initial_state():
    world = DemoWorld()
    assert world.player_pos == CENTER
    assert world.health == demo_sim.INITIAL_HEALTH
    assert world.score == 0
    assert world.bullets == [] and world.enemies == []


def test_player_moves_right():
    world = DemoWorld()
    world.step(0.02, move=(1.0, 0.0))
    assert world.player_pos.x > CENTER.x
    assert world.player_pos.y == CENTER.y


def test_player_clamped_to_arena():
    world = DemoWorld()
    for _ in range(200):
        world.step(0.05, move=(-1.0, 0.0))
    assert world.player_pos.x == demo_sim.PLAYER_RADIUS


def test_delta_time_is_clamped():
    world = DemoWorld()
    world.step(10.0, move=(1.0, 0.0))
    expected = CENTER.x + demo_sim.PLAYER_SPEED * demo_sim.MAX_DELTA_SECONDS
    assert world.player_pos.x == pytest.approx(expected)


def test_shooting_and_cooldown():
    world = DemoWorld()
    events = world.step(0.02, shoot=True, aim_target=(1000.0, CENTER.y))
    assert events == ["shot"]
    assert len(world.bullets) == 1
    speed = math.sqrt(world.bullets[0].velocity.length_squared)
    assert speed == pytest.approx(demo_sim.BULLET_SPEED)
    assert world.step(0.02, shoot=True, aim_target=(1000.0, CENTER.y)) == []
    assert len(world.bullets) == 1


def test_no_shot_when_aiming_at_self():
    world = DemoWorld()
    assert world.step(0.02, shoot=True, aim_target=CENTER) == []
    assert world.bullets == []


def test_bullets_expire():
    world = DemoWorld()
    world.step(0.02, shoot=True, aim_target=(CENTER.x, 0.0))
    for _ in range(40):
        world.step(0.05)
    assert world.bullets == []


def test_enemy_spawns_outside_arena():
    world = DemoWorld(seed=7)
    for _ in range(100):
        world.step(0.05)
        if world.enemies:
            break
    assert len(world.enemies) == 1
    enemy = world.enemies[0]
    pos = enemy.position
    assert pos.x < 0 or pos.x > demo_sim.WINDOW_WIDTH or pos.y < 0 or pos.y > demo_sim.WINDOW_HEIGHT
    low = demo_sim.ENEMY_BASE_SPEED
    assert low <= enemy.speed <= low + demo_sim.ENEMY_SPEED_JITTER


def test_same_seed_is_deterministic():
    worlds = [DemoWorld(seed=42), DemoWorld(seed=42)]
    for world in worlds:
        for _ in range(60):
            world.step(0.05)
    first, second = ([e.position for e in w.enemies] for w in worlds)
    assert first == second
    assert len(first) > 0


def test_enemy_cap():
    world = DemoWorld()
    world.enemies = [Enemy(position=Vec2(-5000.0, -5000.0)) for _ in range(demo_sim.MAX_ENEMIES)]
    for _ in range(30):
        world.step(0.05)
    assert len(world.enemies) == demo_sim.MAX_ENEMIES


def test_bullet_kills_enemy():
    world = DemoWorld()
    world.enemies.append(Enemy(position=Vec2(CENTER.x + 20.0, CENTER.y)))
    events = world.step(0.02, shoot=True, aim_target=(1000.0, CENTER.y))
    assert events == ["shot", "hit"]
    assert world.score == 1
    assert world.enemies == []
    assert world.bullets == []


def test_enemy_touch_hurts_once_per_cooldown():
    world = DemoWorld()
    world.enemies.append(Enemy(position=Vec2(CENTER.x + 10.0, CENTER.y)))
    assert world.step(0.02) == ["hurt"]
    assert world.health == demo_sim.INITIAL_HEALTH - demo_sim.TOUCH_DAMAGE
    assert world.step(0.02) == []
    assert world.health == demo_sim.INITIAL_HEALTH - demo_sim.TOUCH_DAMAGE


def test_game_over_freezes_until_reset():
    world = DemoWorld()
    world.health = demo_sim.TOUCH_DAMAGE
    world.enemies.append(Enemy(position=Vec2(CENTER.x + 10.0, CENTER.y)))
    assert "hurt" in world.step(0.02)
    assert world.health == 0
    assert world.game_over
    before = world.player_pos
    assert world.step(0.02, move=(1.0, 0.0)) == []
    assert world.player_pos == before
    world.reset()
    assert not world.game_over
    assert world.health == demo_sim.INITIAL_HEALTH
    assert world.enemies == [] and world.player_pos == CENTER


def test_world_drives_synth():
    synth = SoundSynth()
    world = DemoWorld(synth=synth)
    world.step(0.02, shoot=True, aim_target=(0.0, 0.0))
    assert synth.active_voices == 1


def test_dead_bullets_removed():
    world = DemoWorld()
    world.bullets.append(Bullet(position=CENTER, velocity=Vec2(), remaining_life=0.0))
    world.step(0.02)
    assert world.bullets == []