"""Per-sample random number streams for Taichi kernels.

Every function that consumes randomness takes the current stream state as an
argument and returns the advanced state alongside its result. A state is a
single ``ti.u32`` driven by a xorshift32 generator, so streams are cheap to
create, carry no shared mutable data, and give identical results no matter how
pixels are scheduled across threads.

A stream for one pixel sample is seeded by hashing the render seed, the pixel
index and the sample index together with Thomas Wang's integer hash.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.rng import random_f32, seed_stream
    >>> @ti.kernel
    ... def draw() -> ti.f32:
    ...     state = seed_stream(ti.u32(7), ti.u32(0), ti.u32(0))
    ...     u, state = random_f32(state)
    ...     return u
"""

import taichi as ti

# 2^-24: maps the top 24 bits of a state onto [0, 1)
_INV_2_POW_24 = 1.0 / 16777216.0


@ti.func
def wang_hash(key: ti.u32) -> ti.u32:
    """Thomas Wang's 32-bit integer hash.

    Args:
        key: Value to hash.

    Returns:
        A well-mixed 32-bit value.
    """
    h = key
    h = (h ^ ti.u32(61)) ^ (h >> ti.u32(16))
    h = h * ti.u32(9)
    h = h ^ (h >> ti.u32(4))
    h = h * ti.u32(668265261)
    h = h ^ (h >> ti.u32(15))
    return h


@ti.func
def seed_stream(seed: ti.u32, pixel_index: ti.u32, sample_index: ti.u32) -> ti.u32:
    """Create the stream state for one sample of one pixel.

    Args:
        seed: Render-wide seed.
        pixel_index: Flattened pixel index.
        sample_index: Index of the sample within the pixel.

    Returns:
        A nonzero xorshift32 state.
    """
    h = wang_hash(wang_hash(wang_hash(seed) ^ pixel_index) ^ sample_index)
    # xorshift has a fixed point at zero
    if h == ti.u32(0):
        h = ti.u32(1)
    return h


@ti.func
def next_state(state: ti.u32) -> ti.u32:
    """Advance a xorshift32 state by one step."""
    x = state
    x ^= x << ti.u32(13)
    x ^= x >> ti.u32(17)
    x ^= x << ti.u32(5)
    return x


@ti.func
def random_f32(state: ti.u32):
    """Draw a float uniformly distributed in [0, 1).

    Args:
        state: Current stream state.

    Returns:
        A tuple (value, new_state).
    """
    new_state = next_state(state)
    value = ti.cast(new_state >> ti.u32(8), ti.f32) * _INV_2_POW_24
    return value, new_state


@ti.func
def random_range(lo: ti.f32, hi: ti.f32, state: ti.u32):
    """Draw a float uniformly distributed in [lo, hi).

    Returns:
        A tuple (value, new_state).
    """
    u, new_state = random_f32(state)
    return lo + (hi - lo) * u, new_state


def initial_state(seed: int) -> int:
    """Host-side equivalent of ``seed_stream(seed, 0, 0)``.

    Useful for passing a starting state into kernels from Python.

    Args:
        seed: Any integer; only the low 32 bits are used.

    Returns:
        A nonzero 32-bit state.
    """

    def _wang(key: int) -> int:
        key &= 0xFFFFFFFF
        key = (key ^ 61) ^ (key >> 16)
        key = (key * 9) & 0xFFFFFFFF
        key ^= key >> 4
        key = (key * 668265261) & 0xFFFFFFFF
        key ^= key >> 15
        return key

    h = _wang(_wang(_wang(seed) ^ 0) ^ 0)
    return h if h != 0 else 1
