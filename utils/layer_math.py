import torch

"""
Stateless building blocks of the toy network. Everything is float32 and runs without autograd.
Forward helpers return new tensors, the broadcast updates modify the weights they are given in place.
"""

KERNEL = 3
TAPS = KERNEL * KERNEL

@torch.no_grad
def relu(x: torch.Tensor) -> torch.Tensor:
    """max(0, x), elementwise"""
    return torch.clamp_min(x, 0.)

@torch.no_grad
def partial_conv3x3(fmap: torch.Tensor, weights: torch.Tensor, out_size: int) -> torch.Tensor:
    """
    Valid 3x3 convolution of a single 2D feature map, restricted to the top-left out_size x out_size window.
    Only the first 9 taps of every filter are read, in row-major (ki, kj) order.
    fmap:    (H, W) with H, W >= out_size + 2
    weights: (filters, taps) with taps >= 9
    Returns: (filters, out_size, out_size)
    """
    if fmap.dim() != 2 or min(fmap.shape) < out_size + KERNEL - 1:
        raise ValueError(f"Feature map of shape {tuple(fmap.shape)} is too small for a {out_size}x{out_size} output window.")
    if weights.dim() != 2 or weights.shape[1] < TAPS:
        raise ValueError(f"Convolution weights of shape {tuple(weights.shape)} do not hold {TAPS} taps per filter.")

    filters = weights.shape[0]
    out = torch.zeros((filters, out_size, out_size), dtype=torch.float32)
    # one tap at a time, so every window sums in the same order
    for k in range(TAPS):
        ki, kj = divmod(k, KERNEL)
        window = fmap[ki:ki + out_size, kj:kj + out_size]
        out += window.unsqueeze(0) * weights[:, k].view(filters, 1, 1)
    return out

@torch.no_grad
def replicated_dense(x: torch.Tensor, weights: torch.Tensor, outputs: int) -> torch.Tensor:
    """
    Fully connected stage without a weight matrix: one dot product of x with weights,
    copied into every one of the `outputs` slots.
    """
    x = x.flatten()
    if x.numel() != weights.numel():
        raise ValueError(f"Input of {x.numel()} units does not match {weights.numel()} weights.")
    return torch.dot(x, weights.flatten()).repeat(outputs)

@torch.no_grad
def broadcast_dense_update(weights: torch.Tensor, upstream: torch.Tensor, lr: float) -> torch.Tensor:
    """
    Every weight receives lr * upstream[i] for every upstream unit i.
    Returns the layer gradient: the upstream sum, once per weight.
    """
    total = upstream.sum()
    weights += lr * total
    return torch.full_like(weights, total.item())

@torch.no_grad
def broadcast_conv_update(weights: torch.Tensor, upstream: torch.Tensor, filters: int, positions: int, lr: float) -> torch.Tensor:
    """
    Broadcast update of a convolution stage with `filters` filters over `positions` output positions.
    Unit d = f * positions + p takes its upstream value from the same flat index of the previous gradient,
    zero where the previous gradient is shorter. Tap k of filter f receives lr * (k + 1) * upstream[d]
    for every position of the filter. Only the first 9 taps are touched.
    Returns the layer gradient: 9 * upstream[d] per unit.
    """
    units = filters * positions
    up = torch.zeros(units, dtype=torch.float32)
    n = min(units, upstream.numel())
    up[:n] = upstream.flatten()[:n]

    per_filter = up.view(filters, positions).sum(dim=1)
    multiples = torch.arange(1, TAPS + 1, dtype=torch.float32)
    weights[:filters, :TAPS] += lr * per_filter.unsqueeze(1) * multiples
    return up * TAPS
