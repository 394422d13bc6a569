#weight_set.py
"""
The learnable state of the toy CNN: six float32 buffers with a fixed topology.

    conv1   32 filters x   9 taps   (3x3, 1 input channel)
    conv2   64 filters x 288 taps   (3x3 over 32 input channels)
    conv3  128 filters x 576 taps   (3x3 over 64 input channels)
    fc1    8192 weights             (one scalar per input unit, no matrix)
    fc2     256 weights
    fc3     128 weights

The buffers are registered as nn.Parameters without gradient tracking, in the order above.
That order is also the order of the weight file.
"""

import torch
import torch.nn as nn
from copy import deepcopy
from warnings import warn
from utils.weight_io import write_vector, read_length, read_payload

LAYER_SHAPES = {
    'conv1': (32, 9),
    'conv2': (64, 32 * 3 * 3),
    'conv3': (128, 64 * 3 * 3),
    'fc1': (128 * 8 * 8,),
    'fc2': (256,),
    'fc3': (128,),
}

INIT_VALUE = 0.01

class TopologyMismatchError(ValueError):
    """A weight file does not describe the fixed network topology."""

class WeightSet(nn.Module):
    """
    Owns the six weight buffers of the network.
    Watch out:
        - Backward passes mutate the buffers in place.
        - save() and load() warn and return False if the file can't be opened. The weights stay as they were.
        - Use equal() instead of == or != to compare two weight sets.
    """
    def __init__(self, init_value: float = INIT_VALUE) -> None:
        super(WeightSet, self).__init__()
        for name, shape in LAYER_SHAPES.items():
            self.register_parameter(name, nn.Parameter(torch.empty(shape, dtype=torch.float32), requires_grad=False))
        self.initialize(init_value)

    @torch.no_grad
    def initialize(self, value: float = INIT_VALUE) -> None:
        """
        Fill every buffer with a constant. Naive on purpose: with identical weights every filter computes the same map.
        """
        for param in self.parameters():
            param.data.fill_(value)

    def save(self, path: str) -> bool:
        """
        Writes conv1, conv2, conv3, fc1, fc2, fc3 as length-prefixed float32 arrays.
        Returns False if the file could not be opened for writing.
        """
        try:
            file = open(path, 'wb')
        except OSError as e:
            warn(f"Could not open file to save weights: {e}")
            return False
        with file:
            for param in self.parameters():
                write_vector(file, param.data)
        return True

    @torch.no_grad
    def load(self, path: str, strict: bool = True) -> bool:
        """
        Reads the six buffers written by save().
        strict: every stored length must match the topology, otherwise TopologyMismatchError is raised.
                Nothing is assigned until all six buffers are read, so a failed load leaves the weights untouched.
        not strict: trust the stored lengths and resize the buffers to them.
        Returns False if the file could not be opened for reading.
        """
        try:
            file = open(path, 'rb')
        except OSError as e:
            warn(f"Could not open file to load weights: {e}")
            return False

        loaded = {}
        with file:
            for name, shape in LAYER_SHAPES.items():
                expected = shape[0] if len(shape) == 1 else shape[0] * shape[1]
                try:
                    length = read_length(file)
                    if strict and length != expected:
                        raise TopologyMismatchError(f"Buffer '{name}' holds {length} weights in {path}, expected {expected}.")
                    loaded[name] = read_payload(file, length)
                except EOFError as e:
                    raise TopologyMismatchError(f"Weight file {path} ends inside buffer '{name}': {e}") from e

        for name, values in loaded.items():
            tensor = torch.from_numpy(values)
            filters = LAYER_SHAPES[name][0]
            # conv buffers keep one row per filter whenever the length allows it
            if len(LAYER_SHAPES[name]) == 2 and tensor.numel() % filters == 0:
                tensor = tensor.view(filters, -1)
            getattr(self, name).data = tensor
        return True

    def _ensure_compatible(self, other: 'WeightSet') -> None:
        if not isinstance(other, self.__class__):
            raise TypeError(f"Compatibility error: 'other' {other} is of type {type(other)}, expected {type(self)}.")

        for (name, param), (other_name, other_param) in zip(self.named_parameters(), other.named_parameters()):
            if name != other_name:
                raise ValueError(f"Buffer name mismatch: {name} (self) vs {other_name} (other).")
            if param.data.shape != other_param.data.shape:
                raise ValueError(f"Buffer shape mismatch in '{name}': {param.data.shape} (self) vs {other_param.data.shape} (other).")

    def _clone(self) -> 'WeightSet':
        """
        Helper method to clone this WeightSet, creating a deep copy.
        """
        return deepcopy(self)

    def equal(self, other: 'WeightSet', tol: float = 0.) -> bool:
        """
        Compares this WeightSet with another, within a tolerance. The default tolerance of 0 asks for identical values.
        Not overloading __eq__ because that opens a can of worms with inheritance of __hash__.
        """
        self._ensure_compatible(other)
        for param, other_param in zip(self.parameters(), other.parameters()):
            if not torch.allclose(param, other_param, rtol=0., atol=tol):
                return False
        return True

    def __abs__(self) -> float:
        """
        Returns the L2 norm over all six buffers.
        """
        norm = 0
        for param in self.parameters():
            norm += torch.norm(param).item() ** 2
        return norm ** 0.5

    def size(self) -> int:
        """
        Returns the number of bytes used by the buffers.
        """
        size = 0
        for param in self.parameters():
            size += param.data.element_size() * param.data.numel()
        return size
