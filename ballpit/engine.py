"""
2D ball pit engine — gravity, border reflection and soft ball-ball collisions.

- Circular particles in a [0, width] x [0, height] box, y pointing up
- Fixed-step tick: integrate → reflect borders → resolve collisions
- Collision corrections are accumulated for every particle before any is applied
- State per particle: (x, y, vx, vy, radius), unit mass
"""

import logging
import math
import numpy as np
from dataclasses import dataclass, fields
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

import ballpit as B

INTEGRATORS = ('quadratic', 'linear')


@dataclass
class Particle:
    """Physics-only state container. No appearance variables."""
    x: float
    y: float
    vx: float
    vy: float
    radius: float
    particle_id: int = -1

    def __post_init__(self):
        assert self.radius > 0, f"radius must be positive, got {self.radius}"

    @property
    def position(self) -> np.ndarray:
        return np.array([self.x, self.y])

    @position.setter
    def position(self, p: np.ndarray):
        self.x, self.y = float(p[0]), float(p[1])

    @property
    def velocity(self) -> np.ndarray:
        return np.array([self.vx, self.vy])

    @velocity.setter
    def velocity(self, v: np.ndarray):
        self.vx, self.vy = float(v[0]), float(v[1])

    @property
    def speed(self) -> float:
        return math.hypot(self.vx, self.vy)

    @property
    def state(self) -> np.ndarray:
        return np.array([self.x, self.y, self.vx, self.vy])

    @property
    def full_state(self) -> np.ndarray:
        return np.array([self.x, self.y, self.vx, self.vy, self.radius])


class ParticleSet:
    """Insertion-ordered particle store keyed by an id that is never reused."""

    def __init__(self, particles: Optional[Iterable[Particle]] = None):
        self._particles: Dict[int, Particle] = {}
        self._next_id = 0
        for p in particles or ():
            self.add(p)

    def add(self, particle: Particle) -> Particle:
        particle.particle_id = self._next_id
        self._next_id += 1
        self._particles[particle.particle_id] = particle
        return particle

    def remove(self, particle_id: int) -> Particle:
        return self._particles.pop(particle_id)

    def get(self, particle_id: int) -> Optional[Particle]:
        return self._particles.get(particle_id)

    def ids(self) -> List[int]:
        return list(self._particles)

    def __len__(self) -> int:
        return len(self._particles)

    def __iter__(self) -> Iterator[Particle]:
        return iter(self._particles.values())

    def __contains__(self, particle_id: int) -> bool:
        return particle_id in self._particles


@dataclass
class SimConfig:
    tick_rate: float = B.TICK_RATE
    gravity: Tuple[float, float] = B.GRAVITY
    dampening: float = B.DAMPENING
    integrator: str = B.INTEGRATOR
    position_correction: float = B.POSITION_CORRECTION
    max_ticks_per_frame: int = B.MAX_TICKS_PER_FRAME
    radius_range: Tuple[float, float] = B.RADIUS_RANGE
    spawn_speed: float = B.SPAWN_SPEED
    spawn_cooldown: float = B.SPAWN_COOLDOWN
    seed: Optional[int] = None

    def __post_init__(self):
        problems = []
        if len(self.gravity) != 2:
            problems.append(f"gravity must have 2 components, got {self.gravity}")
        else:
            self.gravity = (float(self.gravity[0]), float(self.gravity[1]))
        if len(self.radius_range) != 2:
            problems.append(f"radius_range must be (min, max), got {self.radius_range}")
        else:
            self.radius_range = (float(self.radius_range[0]), float(self.radius_range[1]))
            if not 0 < self.radius_range[0] <= self.radius_range[1]:
                problems.append(f"radius_range must satisfy 0 < min <= max, got {self.radius_range}")
        if not (math.isfinite(self.tick_rate) and self.tick_rate > 0):
            problems.append(f"tick_rate must be positive and finite, got {self.tick_rate}")
        if not 0 < self.dampening <= 1:
            problems.append(f"dampening must be in (0, 1], got {self.dampening}")
        if self.integrator not in INTEGRATORS:
            problems.append(f"integrator must be one of {INTEGRATORS}, got {self.integrator!r}")
        if self.position_correction < 0:
            problems.append(f"position_correction must be >= 0, got {self.position_correction}")
        if self.max_ticks_per_frame < 1:
            problems.append(f"max_ticks_per_frame must be >= 1, got {self.max_ticks_per_frame}")
        if self.spawn_speed < 0:
            problems.append(f"spawn_speed must be >= 0, got {self.spawn_speed}")
        if self.spawn_cooldown < 0:
            problems.append(f"spawn_cooldown must be >= 0, got {self.spawn_cooldown}")

        if problems:
            msg = "Configuration error: " + "; ".join(problems)
            logging.critical(msg)
            raise ValueError(msg)

    @property
    def dt(self) -> float:
        return 1.0 / self.tick_rate

    @classmethod
    def from_profile(cls, name: str, **overrides) -> 'SimConfig':
        if name not in B.PROFILES:
            msg = f"Unknown tuning profile {name!r}. Available: {sorted(B.PROFILES)}"
            logging.critical(msg)
            raise ValueError(msg)
        params = dict(B.PROFILES[name])
        params.update(overrides)
        return cls(**params)

    @classmethod
    def from_dict(cls, params: Dict) -> 'SimConfig':
        """Build from a config section: optional 'profile' plus field overrides."""
        params = dict(params)
        profile = params.pop('profile', None)
        unknown = sorted(set(params) - {f.name for f in fields(cls)})
        if unknown:
            msg = f"Configuration error: unknown simulation keys {unknown}"
            logging.critical(msg)
            raise ValueError(msg)
        if profile is None:
            return cls(**params)
        return cls.from_profile(profile, **params)


# Core step

def integrate(particles: Iterable[Particle], dt: float,
              gravity: Tuple[float, float] = B.GRAVITY,
              integrator: str = B.INTEGRATOR):
    """
    Advance every particle under constant gravity.

    quadratic: p += v·dt + ½·g·dt²    linear: p += v·dt
    Both use the pre-update velocity, then v += g·dt.
    """
    assert math.isfinite(dt) and dt > 0, f"dt must be positive and finite, got {dt}"
    if integrator not in INTEGRATORS:
        raise ValueError(f"Unknown integrator: {integrator}")

    gx, gy = gravity
    if integrator == 'quadratic':
        ox, oy = 0.5 * gx * dt * dt, 0.5 * gy * dt * dt
    else:
        ox, oy = 0.0, 0.0

    for p in particles:
        p.x += p.vx * dt + ox
        p.y += p.vy * dt + oy
        p.vx += gx * dt
        p.vy += gy * dt


def reflect_borders(particles: Iterable[Particle], width: float, height: float):
    """Clamp into [r, size - r] per axis and flip the velocity on the axis crossed."""
    for p in particles:
        r = p.radius
        x_min, x_max = r, width - r
        y_min, y_max = r, height - r

        if p.x < x_min:
            p.vx = -p.vx
            p.x = x_min
        elif p.x > x_max:
            p.vx = -p.vx
            p.x = x_max

        if p.y < y_min:
            p.vy = -p.vy
            p.y = y_min
        elif p.y > y_max:
            p.vy = -p.vy
            p.y = y_max


class CollisionResolver:
    """
    Soft pairwise collision resolution, O(n²) per tick.

    Convention: d = p_i - p_j points j→i, penetration = |d| - (r_i + r_j),
    negative while overlapping.
      Δp_i -= correction · penetration · d/|d|
      Δv_i -= ((v_i - v_j)·d / |d|²) · d
    Every particle's Δp/Δv is summed over all partners before any particle
    moves, then v += dampening·Δv and p += Δp.

    The two correction buffers are kept between ticks and only grow.
    """

    def __init__(self, dampening: float = B.DAMPENING,
                 correction: float = B.POSITION_CORRECTION):
        self.dampening = dampening
        self.correction = correction
        self._dpos = np.zeros((0, 2))
        self._dvel = np.zeros((0, 2))

    @property
    def capacity(self) -> int:
        return self._dpos.shape[0]

    def _buffers(self, n: int) -> Tuple[np.ndarray, np.ndarray]:
        if self.capacity < n:
            capacity = max(n, 2 * self.capacity)
            self._dpos = np.zeros((capacity, 2))
            self._dvel = np.zeros((capacity, 2))
        dpos, dvel = self._dpos[:n], self._dvel[:n]
        dpos.fill(0.0)
        dvel.fill(0.0)
        return dpos, dvel

    def resolve(self, particles: Iterable[Particle]) -> int:
        """Resolve one tick of contacts. Returns the number of (i, j) contributions applied."""
        balls = list(particles)
        n = len(balls)
        if n < 2:
            return 0

        pos = np.array([[b.x, b.y] for b in balls])
        vel = np.array([[b.vx, b.vy] for b in balls])
        radii = np.array([b.radius for b in balls])
        dpos, dvel = self._buffers(n)

        # Accumulate (read-only over the snapshot)
        with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
            n_contacts = self._accumulate(pos, vel, radii, dpos, dvel)

        # Apply
        for b, (dx, dy), (dvx, dvy) in zip(balls, dpos, dvel):
            b.vx += self.dampening * float(dvx)
            b.vy += self.dampening * float(dvy)
            b.x += float(dx)
            b.y += float(dy)

        return n_contacts

    def _accumulate(self, pos, vel, radii, dpos, dvel) -> int:
        n_contacts = 0
        for i in range(len(pos)):
            diff = pos[i] - pos
            dist = np.hypot(diff[:, 0], diff[:, 1])
            reach = radii[i] + radii
            # coincident centres have no normal: skip the pair this tick
            touching = (dist <= reach) & (dist != 0.0)
            touching[i] = False
            if not touching.any():
                continue

            d = diff[touching]
            length = dist[touching]
            penetration = length - reach[touching]
            push = -self.correction * (penetration / length)[:, None] * d
            along = ((vel[i] - vel[touching]) * d).sum(axis=1) / (length * length)
            kick = -along[:, None] * d

            finite = np.isfinite(push).all(axis=1) & np.isfinite(kick).all(axis=1)
            dpos[i] = push[finite].sum(axis=0)
            dvel[i] = kick[finite].sum(axis=0)
            n_contacts += int(finite.sum())

        return n_contacts


def resolve_collisions(particles: Iterable[Particle],
                       dampening: float = B.DAMPENING,
                       correction: float = B.POSITION_CORRECTION) -> int:
    return CollisionResolver(dampening, correction).resolve(particles)


class Simulation:
    """
    Fixed-step host for the ball pit.

    Step: integrate → reflect borders → resolve collisions
    """

    def __init__(self, config: SimConfig, particles: Optional[ParticleSet] = None):
        self.config = config
        self.particles = particles if particles is not None else ParticleSet()
        self.resolver = CollisionResolver(config.dampening, config.position_correction)
        self.time: float = 0.0
        self.tick_count: int = 0
        self._accumulator: float = 0.0

        logging.info(
            f"Simulation initialized: {config.tick_rate:g} Hz, "
            f"gravity {config.gravity}, dampening {config.dampening}, "
            f"{config.integrator} integrator."
        )

    @property
    def dt(self) -> float:
        return self.config.dt

    def tick(self, width: float, height: float) -> int:
        integrate(self.particles, self.dt, self.config.gravity, self.config.integrator)
        reflect_borders(self.particles, width, height)
        contacts = self.resolver.resolve(self.particles)
        self.time += self.dt
        self.tick_count += 1
        return contacts

    def advance(self, elapsed: float, width: float, height: float) -> int:
        """Run every whole tick that fits in the elapsed wall time (capped)."""
        self._accumulator += elapsed
        # 1e-9 absorbs the rounding of elapsed sums that land exactly on a tick
        due = int(math.floor(self._accumulator * self.config.tick_rate + 1e-9))
        n_ticks = min(due, self.config.max_ticks_per_frame)
        for _ in range(n_ticks):
            self.tick(width, height)

        if due > n_ticks:
            logging.debug(f"Dropping {due - n_ticks} ticks of simulation backlog.")
            self._accumulator = 0.0
        else:
            self._accumulator = max(0.0, self._accumulator - n_ticks * self.dt)
        return n_ticks

    # State access

    def get_state(self) -> np.ndarray:
        """(n, 4) → [x, y, vx, vy]"""
        return np.array([p.state for p in self.particles]).reshape(-1, 4)

    def get_full_state(self) -> np.ndarray:
        """(n, 5) → [x, y, vx, vy, radius]"""
        return np.array([p.full_state for p in self.particles]).reshape(-1, 5)

    # Conserved-ish quantities (unit mass)

    def total_kinetic_energy(self) -> float:
        return sum(0.5 * (p.vx**2 + p.vy**2) for p in self.particles)

    def total_momentum(self) -> np.ndarray:
        px = sum(p.vx for p in self.particles)
        py = sum(p.vy for p in self.particles)
        return np.array([px, py], dtype=float)

    def center_of_mass(self) -> np.ndarray:
        if len(self.particles) == 0:
            return np.zeros(2)
        return self.get_state()[:, :2].mean(axis=0)

    def invariants(self) -> Dict[str, np.ndarray]:
        return {
            'energy': self.total_kinetic_energy(),
            'momentum': self.total_momentum(),
            'center_of_mass': self.center_of_mass(),
        }


def generate_trajectory(config: SimConfig, n_particles: int = 20,
                        n_steps: int = 600,
                        width: float = B.WINDOW_WIDTH,
                        height: float = B.WINDOW_HEIGHT,
                        log_throttle: int = 100) -> Dict:
    """Returns dict with states, full_states, energy, momentum, com."""
    from ballpit.spawner import Spawner

    sim = Simulation(config)
    Spawner(sim.particles, config).populate(n_particles, width, height)

    states = [sim.get_state()]
    full_states = [sim.get_full_state()]
    energy = [sim.total_kinetic_energy()]
    momentum = [sim.total_momentum()]
    com = [sim.center_of_mass()]

    for step in range(1, n_steps + 1):
        contacts = sim.tick(width, height)
        states.append(sim.get_state())
        full_states.append(sim.get_full_state())
        energy.append(sim.total_kinetic_energy())
        momentum.append(sim.total_momentum())
        com.append(sim.center_of_mass())

        if step % log_throttle == 0:
            logging.info(f"Tick {step}/{n_steps}")
            logging.debug(f"Tick {step} | contacts: {contacts} | energy: {energy[-1]:.2f}")

    return {
        'states': np.array(states),
        'full_states': np.array(full_states),
        'config': config,
        'energy': np.array(energy),
        'momentum': np.array(momentum),
        'com': np.array(com),
    }
