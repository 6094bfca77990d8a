"""Per-pixel random streams for parallel Monte Carlo sampling.

Every pixel owns one xorshift32 stream, stored in a preallocated Taichi field
and addressed by a stream id (``row * width + column``). A pixel computation
only ever reads and advances its own stream, so the render kernel can run
across all pixels in parallel without sharing generator state, and a render
seeded with the same value reproduces every draw exactly.

Stream states are derived from the seed and the stream id with Wang's integer
hash, so neighbouring pixels start from uncorrelated states.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.sampler import seed_streams, uniform
    >>> seed_streams(42)
    >>> # Within a Taichi kernel:
    >>> # x = uniform(stream)  # x in [0, 1)
"""

import taichi as ti

# One stream per pixel of the largest supported render target (2048 x 2048)
MAX_STREAMS = 2048 * 2048

# 2^-24: maps the top 24 bits of a draw onto [0, 1)
_INV_2_24 = 1.0 / 16777216.0

_rng_state = ti.field(dtype=ti.u32, shape=MAX_STREAMS)
_num_streams = ti.field(dtype=ti.i32, shape=())


@ti.func
def _wang_hash(x):
    x = (x ^ ti.u32(61)) ^ ti.bit_shr(x, 16)
    x = x * ti.u32(9)
    x = x ^ ti.bit_shr(x, 4)
    x = x * ti.u32(0x27D4EB2D)
    x = x ^ ti.bit_shr(x, 15)
    return x


@ti.kernel
def _seed_streams_kernel(seed: ti.u32, count: ti.i32):
    base = _wang_hash(seed)
    for k in range(count):
        state = _wang_hash(ti.cast(k, ti.u32) ^ base)
        # xorshift has a fixed point at zero
        if state == 0:
            state = ti.u32(1)
        _rng_state[k] = state


def seed_streams(seed: int, count: int | None = None) -> None:
    """Seed the per-pixel random streams.

    Args:
        seed: Base seed. Only the low 32 bits are used.
        count: Number of streams to seed. Defaults to MAX_STREAMS.

    Raises:
        ValueError: If count is outside [1, MAX_STREAMS].
    """
    if count is None:
        count = MAX_STREAMS
    if count < 1 or count > MAX_STREAMS:
        raise ValueError(f"Stream count {count} outside [1, {MAX_STREAMS}]")
    _seed_streams_kernel(seed & 0xFFFFFFFF, count)
    _num_streams[None] = count


def get_stream_count() -> int:
    """Get the number of streams seeded by the last seed_streams() call."""
    return int(_num_streams[None])


@ti.func
def _next_u32(stream: ti.i32) -> ti.u32:
    x = _rng_state[stream]
    x = x ^ (x << 13)
    x = x ^ ti.bit_shr(x, 17)
    x = x ^ (x << 5)
    _rng_state[stream] = x
    return x


@ti.func
def uniform(stream: ti.i32) -> ti.f32:
    """Draw a uniform float in [0, 1) from a stream.

    Args:
        stream: The stream id owned by the calling pixel computation.

    Returns:
        A float in [0, 1).
    """
    return ti.cast(ti.bit_shr(_next_u32(stream), 8), ti.f32) * _INV_2_24


@ti.func
def uniform_range(stream: ti.i32, lo: ti.f32, hi: ti.f32) -> ti.f32:
    """Draw a uniform float in [lo, hi) from a stream."""
    return lo + (hi - lo) * uniform(stream)


_samples_out = ti.field(dtype=ti.f32, shape=1024)


@ti.kernel
def _sample_uniform_kernel(stream: ti.i32, count: ti.i32):
    # Serialized so draws land in stream order
    ti.loop_config(serialize=True)
    for k in range(count):
        _samples_out[k] = uniform(stream)


def sample_uniform(stream: int, count: int) -> list[float]:
    """Draw values from a stream on the Python side.

    Advances the stream exactly as kernel-side draws would.

    Args:
        stream: The stream id.
        count: Number of draws (at most 1024).

    Returns:
        The drawn values in order.
    """
    if count < 0 or count > _samples_out.shape[0]:
        raise ValueError(f"Sample count {count} outside [0, {_samples_out.shape[0]}]")
    if count == 0:
        return []
    _sample_uniform_kernel(stream, count)
    values = _samples_out.to_numpy()[:count]
    return [float(v) for v in values]
