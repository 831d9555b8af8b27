import logging
import numpy as np
from typing import Iterable, Optional, Tuple
from dataclasses import dataclass
import os

import ballpit as B
from ballpit.engine import Particle, Simulation
from ballpit.spawner import Spawner

os.environ['PYGAME_HIDE_SUPPORT_PROMPT'] = '1'
import pygame


def speed_to_color(speed: float, hue_scale: float = B.HUE_SCALE) -> Tuple[int, int, int]:
    """Hue grows with speed and wraps every 360·hue_scale px/s."""
    color = pygame.Color(0, 0, 0)
    color.hsla = ((speed / hue_scale) % 360.0, 90, 60, 100)
    return color.r, color.g, color.b


@dataclass
class AppearanceConfig:
    """Affects pixels only, never physics."""
    bg_color: Tuple[int, int, int] = B.BG_COLOR
    hue_scale: float = B.HUE_SCALE
    outline: bool = False


class Renderer:
    """Maps physics state → pixels. World is y-up, the screen y-down."""

    def __init__(self, config: Optional[AppearanceConfig] = None):
        self.config = config or AppearanceConfig()

    @staticmethod
    def world_to_pixel(wx: float, wy: float, height: float) -> Tuple[int, int]:
        return int(round(wx)), int(round(height - wy))

    @staticmethod
    def pixel_to_world(px: float, py: float, height: float) -> Tuple[float, float]:
        return float(px), float(height - py)

    def draw(self, surface: pygame.Surface, particles: Iterable[Particle]):
        height = surface.get_height()
        surface.fill(self.config.bg_color)
        for p in particles:
            color = speed_to_color(p.speed, self.config.hue_scale)
            center = self.world_to_pixel(p.x, p.y, height)
            radius = max(1, int(round(p.radius)))
            pygame.draw.circle(surface, color, center, radius, 2 if self.config.outline else 0)

    def render(self, particles: Iterable[Particle], width: int, height: int) -> np.ndarray:
        """Render single frame → (height, width, 3) uint8."""
        surface = pygame.Surface((width, height))
        self.draw(surface, particles)
        return pygame.surfarray.array3d(surface).transpose(1, 0, 2)

    def play(self, sim: Simulation, spawner: Spawner,
             width: int = B.WINDOW_WIDTH, height: int = B.WINDOW_HEIGHT,
             fps: int = B.FPS):
        """
        Interactive window. Left click (on release) or held right button
        spawns at the cursor, every active touch spawns at its finger.
        \\ logs the frame rate, ` logs window info, Q or close exits.
        """
        pygame.init()
        screen = pygame.display.set_mode((width, height), pygame.RESIZABLE)
        pygame.display.set_caption('Ball Pit')
        clock = pygame.time.Clock()
        logging.info(f"Window opened at {width}x{height}.")

        touches = {}
        running = True
        while running:
            elapsed = clock.tick(fps) / 1000.0
            points = []

            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.KEYDOWN:
                    if event.key == pygame.K_q:
                        running = False
                    elif event.key == pygame.K_BACKSLASH:
                        logging.info(f"Approx fps = {clock.get_fps():.1f}")
                    elif event.key == pygame.K_BACKQUOTE:
                        logging.info(f"Window info: {width}x{height}, {len(sim.particles)} balls, "
                                     f"t={sim.time:.2f}s")
                elif event.type == pygame.VIDEORESIZE:
                    width, height = event.w, event.h
                    logging.debug(f"Window resized to {width}x{height}.")
                elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
                    # touches also arrive as emulated mouse events
                    if not getattr(event, 'touch', False):
                        points.append(self.pixel_to_world(*event.pos, height))
                elif event.type in (pygame.FINGERDOWN, pygame.FINGERMOTION):
                    touches[event.finger_id] = (event.x * width, (1.0 - event.y) * height)
                elif event.type == pygame.FINGERUP:
                    touches.pop(event.finger_id, None)

            if pygame.mouse.get_focused() and pygame.mouse.get_pressed()[2]:
                points.append(self.pixel_to_world(*pygame.mouse.get_pos(), height))
            points.extend(touches.values())

            for ball in spawner.update(elapsed, points):
                logging.info(f"Ball {ball.particle_id} spawned at ({ball.x:.0f}, {ball.y:.0f})")

            sim.advance(elapsed, width, height)
            self.draw(screen, sim.particles)
            pygame.display.flip()

        pygame.quit()
        logging.info(f"Window closed with {len(sim.particles)} balls after {sim.tick_count} ticks.")
