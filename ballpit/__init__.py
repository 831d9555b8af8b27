# ── Central defaults (tune here, not scattered across files) ──

# World (y-up, pixels)
WINDOW_WIDTH = 800
WINDOW_HEIGHT = 600
GRAVITY = (0.0, -800.0)
TICK_RATE = 600           # fixed ticks per second
INTEGRATOR = 'quadratic'  # 'quadratic' | 'linear'
DAMPENING = 0.998
POSITION_CORRECTION = 0.4
MAX_TICKS_PER_FRAME = 60

# Spawning
RADIUS_RANGE = (5.0, 20.0)
SPAWN_SPEED = 40.0
SPAWN_COOLDOWN = 0.2
SEED = 42

# Rendering
FPS = 60
BG_COLOR = (128, 128, 230)
HUE_SCALE = 9.0

# Tuning profiles. 'fine' is the default above.
PROFILES = {
    'fine': {
        'tick_rate': 600,
        'gravity': (0.0, -800.0),
        'dampening': 0.998,
        'integrator': 'quadratic',
    },
    'coarse': {
        'tick_rate': 140,
        'gravity': (0.0, -600.0),
        'dampening': 0.99,
        'integrator': 'linear',
    },
}
