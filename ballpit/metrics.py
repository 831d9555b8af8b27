import numpy as np


def compute_energy(states):
    """(T, N, 4) → (T,) total kinetic energy, unit mass."""
    vel = states[:, :, 2:]
    return 0.5 * (vel ** 2).sum(axis=(1, 2))


def compute_momentum(states):
    """(T, N, 4) → (T, 2) total momentum, unit mass."""
    return states[:, :, 2:].sum(axis=1)


def overlap_depth(full_state):
    """(N, 5) single frame → summed penetration depth over unordered pairs."""
    pos = full_state[:, :2]
    radii = full_state[:, 4]
    rel = pos[:, None, :] - pos[None, :, :]
    dist = np.sqrt((rel ** 2).sum(-1))
    depth = np.clip(radii[:, None] + radii[None, :] - dist, 0.0, None)
    np.fill_diagonal(depth, 0.0)
    return 0.5 * depth.sum()
