import numpy as np
import torch
from typing import BinaryIO

"""
Raw vector codec of the weight file.
Each vector is an 8 byte unsigned element count followed by the float32 payload, both in native byte order.
"""

LENGTH_DTYPE = np.dtype(np.uint64)
VALUE_DTYPE = np.dtype(np.float32)

def write_vector(file: BinaryIO, values: torch.Tensor) -> None:
    """write a tensor as a length-prefixed flat float32 array"""
    payload = values.detach().cpu().flatten().numpy().astype(VALUE_DTYPE, copy=False)
    file.write(np.array([payload.size], dtype=LENGTH_DTYPE).tobytes())
    file.write(payload.tobytes())

def read_length(file: BinaryIO) -> int:
    """read the element count of the next vector"""
    header = file.read(LENGTH_DTYPE.itemsize)
    if len(header) != LENGTH_DTYPE.itemsize:
        raise EOFError(f"Expected a {LENGTH_DTYPE.itemsize} byte length, got {len(header)} bytes.")
    return int(np.frombuffer(header, dtype=LENGTH_DTYPE)[0])

def read_payload(file: BinaryIO, length: int) -> np.ndarray:
    """read `length` float32 values"""
    nbytes = length * VALUE_DTYPE.itemsize
    payload = file.read(nbytes)
    if len(payload) != nbytes:
        raise EOFError(f"Expected {nbytes} bytes of weights, got {len(payload)} bytes.")
    # frombuffer is read-only, torch wants a writable array
    return np.frombuffer(payload, dtype=VALUE_DTYPE).copy()

def read_vector(file: BinaryIO) -> np.ndarray:
    return read_payload(file, read_length(file))
