#image.py
import numpy as np
import torch

IMAGE_SIZE = 64
NUM_CLASSES = 4

class Image:
    """
    A labelled 64x64 grayscale image.
    data:  float32 tensor of shape (IMAGE_SIZE, IMAGE_SIZE). Augmentation modifies it in place.
    label: class index in [0, NUM_CLASSES).
    """
    def __init__(self, data, label: int) -> None:
        if isinstance(data, torch.Tensor):
            grid = data.detach().to(dtype=torch.float32, device='cpu').clone()
        else:
            grid = torch.from_numpy(np.array(data, dtype=np.float32))

        if grid.shape != (IMAGE_SIZE, IMAGE_SIZE):
            raise ValueError(f"Image data must have shape ({IMAGE_SIZE}, {IMAGE_SIZE}), got {tuple(grid.shape)}.")
        if not isinstance(label, (int, np.integer)) or isinstance(label, bool):
            raise TypeError(f"Label error: 'label' is of type {type(label)}, expected int.")
        if not 0 <= label < NUM_CLASSES:
            raise ValueError(f"Label {label} is outside [0, {NUM_CLASSES}).")

        self.data = grid
        self.label = int(label)

    def clone(self) -> 'Image':
        return Image(self.data, self.label)

    def __repr__(self) -> str:
        return f"Image(label={self.label}, mean={self.data.mean().item():.4f})"
