#augment.py
"""
Random horizontal flips and 90 degree rotations of a training batch.
The random source is injectable: anything with a random() method returning uniform floats in [0, 1),
e.g. numpy.random.Generator. Per image two draws are taken, the first decides the flip, the second the rotation.
"""

import numpy as np
import torch
from typing import List, Optional
from image import Image

THRESHOLD = 0.5

def hflip(grid: torch.Tensor) -> torch.Tensor:
    """reverse every row"""
    return torch.flip(grid, dims=(1,))

def rot90(grid: torch.Tensor) -> torch.Tensor:
    """clockwise quarter turn: new[j][N-1-i] = old[i][j]"""
    return torch.rot90(grid, k=-1, dims=(0, 1))

def augment_batch(batch: List[Image], rng: Optional[np.random.Generator] = None) -> List[Image]:
    """
    Augments the images of the batch in place and returns the batch.
    Without an rng a freshly seeded generator is used for every call.
    """
    if rng is None:
        rng = np.random.default_rng()

    for image in batch:
        if rng.random() > THRESHOLD:
            image.data.copy_(hflip(image.data))
        if rng.random() > THRESHOLD:
            image.data.copy_(rot90(image.data))
    return batch
