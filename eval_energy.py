"""
Headless profile comparison — how each tuning profile settles a ball pit.

Every profile starts from the same seeded population and runs the same
amount of simulated time. Metrics:
  1. Total kinetic energy over time
  2. Total momentum over time
  3. Summed overlap depth (how well the soft collisions keep balls apart)
"""
import logging
import numpy as np
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import os
import ballpit as B
from ballpit.engine import generate_trajectory, SimConfig
from ballpit.metrics import compute_energy, compute_momentum, overlap_depth
from ballpit.utils import setup_logging, load_config

COLORS = {
    'fine':   '#3498db',  # blue
    'coarse': '#e74c3c',  # red
}


def evaluate(config_path='config.json', duration=5.0):
    config = load_config(config_path)
    setup_logging(config)
    run = config.get('run_control', {})
    sim_section = dict(config.get('simulation', {}))
    sim_section.pop('profile', None)
    n_particles = run.get('n_particles', 40)
    throttle = run.get('log_throttle_steps', 500)

    results = {}
    for name in B.PROFILES:
        sim_config = SimConfig.from_profile(name, **sim_section)
        n_steps = int(round(duration * sim_config.tick_rate))
        logging.info(f"Running profile '{name}' for {n_steps} ticks")
        traj = generate_trajectory(sim_config, n_particles=n_particles, n_steps=n_steps,
                                   log_throttle=throttle)
        results[name] = {
            't': np.arange(n_steps + 1) * sim_config.dt,
            'energy': compute_energy(traj['states']),
            'momentum': compute_momentum(traj['states']),
            'overlap': np.array([overlap_depth(f) for f in traj['full_states']]),
        }

    print(f"\n{'Profile':<10} {'E_start':>12} {'E_final':>12} {'|p|_final':>10} {'overlap':>10}")
    print("-" * 58)
    for name, r in results.items():
        print(f"{name:<10} {r['energy'][0]:>12.1f} {r['energy'][-1]:>12.1f} "
              f"{np.linalg.norm(r['momentum'][-1]):>10.1f} {r['overlap'][-1]:>10.2f}")

    os.makedirs('results/plots', exist_ok=True)
    fig, axes = plt.subplots(1, 3, figsize=(18, 5))
    for name, r in results.items():
        c = COLORS.get(name)
        axes[0].plot(r['t'], r['energy'], label=name, color=c)
        axes[1].plot(r['t'], r['momentum'][:, 1], label=name, color=c)
        axes[2].plot(r['t'], r['overlap'], label=name, color=c)
    axes[0].set_title('Kinetic energy')
    axes[1].set_title('Momentum (y)')
    axes[2].set_title('Overlap depth')
    for ax in axes:
        ax.set_xlabel('t [s]')
        ax.legend()
    plt.tight_layout()
    plt.savefig('results/plots/profiles.png')
    plt.close()

    print("Plots saved to results/plots/")


if __name__ == "__main__":
    evaluate()
