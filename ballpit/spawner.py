"""
Pointer/touch spawning for the ball pit.

The spawner is the only thing that creates particles. It is rate limited:
once a ball has been spawned, nothing else spawns until the cooldown has
elapsed, after which every point reported in that frame gets a ball.
"""
import logging
import numpy as np
from typing import Iterable, List, Optional, Tuple

from ballpit.engine import Particle, ParticleSet, SimConfig


class RateLimiter:
    """Stopwatch gate."""

    def __init__(self, cooldown: float):
        self.cooldown = cooldown
        self.elapsed = 0.0

    def tick(self, dt: float) -> float:
        self.elapsed += dt
        return self.elapsed

    def ready(self) -> bool:
        return self.elapsed >= self.cooldown

    def reset(self):
        self.elapsed = 0.0


class Spawner:
    def __init__(self, particles: ParticleSet, config: Optional[SimConfig] = None):
        self.particles = particles
        self.config = config or SimConfig()
        self.rng = np.random.RandomState(self.config.seed)
        self.limiter = RateLimiter(self.config.spawn_cooldown)

    def spawn_at(self, x: float, y: float) -> Particle:
        r = self.rng.uniform(*self.config.radius_range)
        s = self.config.spawn_speed
        vx, vy = self.rng.uniform(-s, s, size=2)
        ball = self.particles.add(Particle(
            x=float(x), y=float(y), vx=float(vx), vy=float(vy), radius=float(r)))
        self.limiter.reset()
        logging.debug(f"Spawned ball {ball.particle_id} at ({x:.1f}, {y:.1f}), r={r:.1f}")
        return ball

    def update(self, elapsed: float,
               points: Iterable[Tuple[float, float]]) -> List[Particle]:
        """Tick the cooldown, then spawn one ball per point if it has run out."""
        self.limiter.tick(elapsed)
        if not self.limiter.ready():
            return []
        return [self.spawn_at(x, y) for x, y in points]

    def populate(self, n: int, width: float, height: float) -> List[Particle]:
        """Spawn n balls uniformly inside the box, ignoring the cooldown."""
        spawned = []
        for _ in range(n):
            r_max = self.config.radius_range[1]
            x = self.rng.uniform(r_max, max(r_max, width - r_max))
            y = self.rng.uniform(r_max, max(r_max, height - r_max))
            spawned.append(self.spawn_at(x, y))
        logging.info(f"Populated {n} balls in a {width:g}x{height:g} box.")
        return spawned
