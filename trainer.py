#trainer.py
"""
Training loop of the toy CNN.
Every epoch walks the images in their original order, in contiguous batches.
A batch is copied and augmented, then every image gets a forward pass followed immediately by a backward pass.
Batches never average anything, they only group images for augmentation.
"""

import numpy as np
from math import ceil
from typing import Iterator, List, Optional, Sequence
from tqdm import tqdm
from image import Image
from weight_set import WeightSet
from conv_net import forward, backward
from augment import augment_batch
from config import DEFAULT_CFG, validate_cfg

def batches(images: Sequence[Image], batch_size: int) -> Iterator[Sequence[Image]]:
    """contiguous slices of batch_size images, the last one may be shorter"""
    for start in range(0, len(images), batch_size):
        yield images[start:start + batch_size]

def train_batch(weights: WeightSet, batch: List[Image], learning_rate: float) -> None:
    for image in batch:
        output = forward(weights, image)
        backward(weights, output, image.label, learning_rate)

def train(
    weights: WeightSet,
    images: Sequence[Image],
    epochs: int,
    learning_rate: float,
    batch_size: int = DEFAULT_CFG['batch_size'],
    rng: Optional[np.random.Generator] = None,
    verbose: bool = False,
) -> None:
    """
    Trains the weights in place.
    The caller's images are never modified, augmentation works on copies.
    rng: random source for augmentation. If None every batch gets a freshly seeded generator.
    """
    validate_cfg({**DEFAULT_CFG, 'epochs': epochs, 'learning_rate': learning_rate, 'batch_size': batch_size, 'verbose': verbose})

    print(f'Starting training with {len(images)} images.')
    num_batches = ceil(len(images) / batch_size)
    for epoch in range(epochs):
        for batch in tqdm(batches(images, batch_size), total=num_batches, desc=f'Epoch {epoch + 1}/{epochs}', disable=not verbose):
            batch = [image.clone() for image in batch]
            augment_batch(batch, rng)
            train_batch(weights, batch, learning_rate)
        print(f'Epoch {epoch + 1} completed.')
