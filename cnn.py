#cnn.py
"""
The toy CNN as a single object: a WeightSet plus train, predict, save_weights and load_weights.
Hyperparameters come from a config dict, see config.DEFAULT_CFG.

Example:
    model = CNN({'epochs': 2, 'learning_rate': 1e-4})
    model.train(images)
    label = model.predict(images[0])
    model.save_weights('weights.bin')
"""

import numpy as np
from typing import Optional, Sequence
from image import Image
from weight_set import WeightSet
from conv_net import predict
from trainer import train
from config import DEFAULT_CFG, validate_cfg
from utils.profiler import profiler

class CNN:
    """
    Attributes:
        cfg (dict): DEFAULT_CFG updated with the user's config.
        weights (WeightSet): The learnable state, constant-initialised from cfg['init_value'].
    """
    def __init__(self, cfg: Optional[dict] = None) -> None:
        if cfg is not None and not isinstance(cfg, dict):
            raise TypeError(f"Config error: 'cfg' is of type {type(cfg)}, expected dict.")
        self.cfg = {**DEFAULT_CFG, **(cfg or {})}
        validate_cfg(self.cfg)
        self.weights = WeightSet(self.cfg['init_value'])

    def train(
        self,
        images: Sequence[Image],
        epochs: Optional[int] = None,
        learning_rate: Optional[float] = None,
        batch_size: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        """
        Trains in place. Arguments left as None fall back to the config.
        """
        epochs = self.cfg['epochs'] if epochs is None else epochs
        learning_rate = self.cfg['learning_rate'] if learning_rate is None else learning_rate
        batch_size = self.cfg['batch_size'] if batch_size is None else batch_size

        with profiler(f'Training on {len(images)} images for {epochs} epochs', enabled=self.cfg['verbose']):
            train(self.weights, images, epochs, learning_rate, batch_size, rng=rng, verbose=self.cfg['verbose'])

    def predict(self, image: Image) -> int:
        prediction = predict(self.weights, image)
        print(f'Predicted label: {prediction}, Actual label: {image.label}')
        return prediction

    def save_weights(self, path: str) -> bool:
        return self.weights.save(path)

    def load_weights(self, path: str, strict: bool = True) -> bool:
        return self.weights.load(path, strict=strict)
