"""Shared fixtures: a small synthetic room cloud with known layout."""

import itertools

import numpy as np
import pytest


def grid(center, half_extents, counts):
    """Regular grid of points around a center (includes the center for odd counts)."""
    axes = [
        np.linspace(c - h, c + h, n)
        for c, h, n in zip(center, half_extents, counts)
    ]
    return np.array(list(itertools.product(*axes)), dtype=float)


def make_room_cloud() -> np.ndarray:
    """
    200 points in scan order:

    - 50 furniture-band points forming a 0.75 x 0.4 x 0.5 box centered
      at (0, 0.7, 0), center first (volume 0.15, height 0.4 -> table)
    - 75 wall-band points stacked just above it (0.25 m square, y 1.25-1.5)
    - 75 wall-band points around (5, 1.5, 0), center first

    Every furniture point is also a wall candidate; with the default
    wall distance of 1.0 the first wall seed (the table center) absorbs
    the table and the stack above it, giving exactly two wall clusters.
    """
    table_center = np.array([0.0, 0.7, 0.0])
    table = np.vstack([
        table_center,
        grid(table_center, (0.375, 0.2, 0.25), (5, 3, 3)),
        [[0.1, 0.6, 0.1], [-0.1, 0.8, -0.1], [0.2, 0.7, 0.0], [-0.2, 0.6, 0.1]],
    ])

    stack = grid((0.0, 1.375, 0.0), (0.25, 0.125, 0.25), (5, 3, 5))

    far_center = np.array([5.0, 1.5, 0.0])
    far_grid = grid(far_center, (0.25, 0.25, 0.25), (5, 3, 5))
    far_grid = far_grid[np.any(far_grid != far_center, axis=1)]
    far = np.vstack([far_center, far_grid])

    cloud = np.vstack([table, stack, far])
    assert cloud.shape == (200, 3)
    return cloud


@pytest.fixture
def room_cloud():
    return make_room_cloud()


@pytest.fixture
def room_frames(room_cloud):
    """The room cloud split into four 50-point frames."""
    from utils.validation import Frame

    return [
        Frame(vertices=chunk.reshape(-1).tolist(), frame_timestamp=i * 0.5)
        for i, chunk in enumerate(np.split(room_cloud, 4))
    ]
