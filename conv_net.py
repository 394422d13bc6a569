#conv_net.py
"""
Forward pass, backward pass and arg-max decision of the toy CNN.

Forward:
    64x64 input
    -> conv1 (32 filters)  32x32 window, ReLU
    -> conv2 (64 filters)  16x16 window over the first conv1 map, ReLU
    -> conv3 (128 filters)  8x8 window over the first conv2 map, ReLU
    -> fc1   one dot product with the 8192 flattened conv3 values, copied 256 times, ReLU
    -> fc2   one dot product with fc1, copied 128 times, ReLU
    -> fc3   one dot product with fc2, copied NUM_CLASSES times, linear
Every convolution window covers only the top-left part of its input, not the full valid extent.

Backward:
    Not backpropagation. A single scalar, 1 - output[label], is spread to every weight of every layer
    (fc3 -> fc2 -> conv3 -> conv2 -> conv1), see utils.layer_math.broadcast_*_update.
"""

import torch
from typing import Dict, Union
from image import Image, IMAGE_SIZE, NUM_CLASSES
from weight_set import WeightSet
from utils.layer_math import relu, partial_conv3x3, replicated_dense, broadcast_dense_update, broadcast_conv_update

# output window of each convolution stage
CONV_WINDOWS = {
    'conv1': 32,
    'conv2': 16,
    'conv3': 8,
}

# number of replicated outputs of each fully connected stage
FC_OUTPUTS = {
    'fc1': 256,
    'fc2': 128,
    'fc3': NUM_CLASSES,
}

def _as_grid(x: Union[Image, torch.Tensor]) -> torch.Tensor:
    grid = x.data if isinstance(x, Image) else torch.as_tensor(x, dtype=torch.float32)
    if grid.shape != (IMAGE_SIZE, IMAGE_SIZE):
        raise ValueError(f"Input must have shape ({IMAGE_SIZE}, {IMAGE_SIZE}), got {tuple(grid.shape)}.")
    return grid

@torch.no_grad
def forward(weights: WeightSet, x: Union[Image, torch.Tensor], trace: bool = False) -> Union[torch.Tensor, Dict[str, torch.Tensor]]:
    """
    Maps a 64x64 grid (or an Image) to NUM_CLASSES raw scores. No softmax.
    With trace=True returns every activation instead:
        {'conv1': (32, 32, 32), 'conv2': (64, 16, 16), 'conv3': (128, 8, 8), 'fc1': (256,), 'fc2': (128,), 'output': (NUM_CLASSES,)}
    """
    activations = {}

    fmap = _as_grid(x)
    for name, window in CONV_WINDOWS.items():
        activations[name] = relu(partial_conv3x3(fmap, getattr(weights, name), window))
        # the next stage only sees the first feature map
        fmap = activations[name][0]

    activations['fc1'] = relu(replicated_dense(activations['conv3'], weights.fc1, FC_OUTPUTS['fc1']))
    activations['fc2'] = relu(replicated_dense(activations['fc1'], weights.fc2, FC_OUTPUTS['fc2']))
    activations['output'] = replicated_dense(activations['fc2'], weights.fc3, FC_OUTPUTS['fc3'])

    return activations if trace else activations['output']

@torch.no_grad
def backward(weights: WeightSet, output, label: int, learning_rate: float) -> None:
    """
    Updates all weights in place from one forward output and its true label.
    Only the label slot carries a signal: 1 - output[label].
    """
    output = torch.as_tensor(output, dtype=torch.float32)
    if output.shape != (NUM_CLASSES,):
        raise ValueError(f"Output must hold {NUM_CLASSES} scores, got shape {tuple(output.shape)}.")
    if not 0 <= label < NUM_CLASSES:
        raise ValueError(f"Label {label} is outside [0, {NUM_CLASSES}).")

    output_grad = torch.zeros(NUM_CLASSES, dtype=torch.float32)
    output_grad[label] = 1. - output[label]

    grad = broadcast_dense_update(weights.fc3, output_grad, learning_rate)
    grad = broadcast_dense_update(weights.fc2, grad, learning_rate)
    for name in reversed(CONV_WINDOWS):
        filters = getattr(weights, name).shape[0]
        grad = broadcast_conv_update(getattr(weights, name), grad, filters, CONV_WINDOWS[name] ** 2, learning_rate)

def predict(weights: WeightSet, x: Union[Image, torch.Tensor]) -> int:
    """
    Index of the highest score. Ties go to the lowest index.
    """
    return int(torch.argmax(forward(weights, x)).item())
