"""
Interactive demo — click or touch to drop balls.
Run: python demo.py [config.json]
Right button held keeps spawning, \\ logs fps, Q or close window to exit.
"""
import logging
import sys

from ballpit.engine import Simulation, SimConfig
from ballpit.renderer import Renderer, AppearanceConfig
from ballpit.spawner import Spawner
from ballpit.utils import setup_logging, load_config
import ballpit as B


def main():
    path = sys.argv[1] if len(sys.argv) > 1 else 'config.json'
    try:
        config = load_config(path)
    except (OSError, ValueError) as e:
        print(f"FATAL: Could not load {path}. Error: {e}")
        return

    setup_logging(config)
    logging.info("--- Ball Pit Starting ---")

    vis = config.get('visualization', {})
    sim_config = SimConfig.from_dict(config.get('simulation', {}))
    sim = Simulation(sim_config)
    spawner = Spawner(sim.particles, sim_config)
    renderer = Renderer(AppearanceConfig(
        bg_color=tuple(vis.get('bg_color', B.BG_COLOR)),
        hue_scale=vis.get('hue_scale', B.HUE_SCALE),
        outline=vis.get('outline', False),
    ))

    renderer.play(sim, spawner,
                  width=vis.get('width', B.WINDOW_WIDTH),
                  height=vis.get('height', B.WINDOW_HEIGHT),
                  fps=vis.get('fps', B.FPS))

    logging.info("--- Ball Pit Shutting Down ---")


if __name__ == "__main__":
    main()
