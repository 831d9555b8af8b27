import os

os.environ.setdefault('SDL_VIDEODRIVER', 'dummy')
os.environ.setdefault('PYGAME_HIDE_SUPPORT_PROMPT', '1')

import pytest

from ballpit.engine import Particle


@pytest.fixture
def make_ball():
    def _make(x, y, vx=0.0, vy=0.0, radius=10.0, particle_id=-1):
        return Particle(x=x, y=y, vx=vx, vy=vy, radius=radius, particle_id=particle_id)
    return _make
