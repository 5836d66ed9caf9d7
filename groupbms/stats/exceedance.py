"""Monte Carlo exceedance probabilities for a Dirichlet posterior.

For each model k, estimates the probability that a frequency vector drawn
from Dirichlet(alpha) gives model k the largest share.  Draws are made in
blocks so the (draws x models) matrix of float64 samples never exceeds a
fixed memory cap; per-block win counts are then summed.
"""

from __future__ import annotations

import logging
import math

import numpy as np

from groupbms.core.config import settings

logger = logging.getLogger(__name__)

_FLOAT_BYTES = 8


def plan_blocks(n_samples: int, n_models: int, max_block_bytes: int) -> list[int]:
    """Split ``n_samples`` draws into blocks that fit in ``max_block_bytes``.

    All blocks get ``floor(n_samples / n_blocks)`` draws except the last,
    which takes whatever remains, so the sizes always sum to ``n_samples``.

    Parameters
    ----------
    n_samples : int
        Total number of Dirichlet draws.
    n_models : int
        Number of models (columns per draw).
    max_block_bytes : int
        Memory cap for one block of float64 draws.

    Returns
    -------
    list[int]
        Block sizes in draw order.
    """
    if n_samples < 1:
        raise ValueError("n_samples must be positive")
    if n_models < 1:
        raise ValueError("n_models must be positive")
    if max_block_bytes < 1:
        raise ValueError("max_block_bytes must be positive")

    n_blocks = math.ceil(n_samples * n_models * _FLOAT_BYTES / max_block_bytes)
    n_blocks = min(n_blocks, n_samples)
    size = n_samples // n_blocks
    blocks = [size] * n_blocks
    blocks[-1] = n_samples - size * (n_blocks - 1)
    return blocks


def count_block_winners(alpha: np.ndarray, size: int, rng: np.random.Generator) -> np.ndarray:
    """Draw ``size`` Dirichlet(alpha) samples and count how often each model wins.

    Each draw is built from independent Gamma(alpha_k, 1) variates divided
    by their sum (Ferguson 1973).  Ties go to the lowest index, as
    ``np.argmax`` does.

    Returns
    -------
    np.ndarray
        Integer counts of shape (n_models,), summing to ``size``.
    """
    n_models = len(alpha)
    samples = rng.gamma(shape=alpha, scale=1.0, size=(size, n_models))
    samples /= samples.sum(axis=1, keepdims=True)
    winners = np.argmax(samples, axis=1)
    return np.bincount(winners, minlength=n_models)


def dirichlet_exceedance(
    alpha,
    n_samples: int | None = None,
    seed: int | None = None,
    rng: np.random.Generator | None = None,
    max_block_bytes: int | None = None,
) -> np.ndarray:
    """Exceedance probabilities of a Dirichlet(alpha) distribution by sampling.

    Parameters
    ----------
    alpha : array-like
        Strictly positive concentration parameters, one per model.
    n_samples : int | None
        Total number of draws.  Defaults to ``settings.XP_SAMPLES``.
    seed : int | None
        RNG seed for reproducibility.  Ignored when ``rng`` is given.
    rng : np.random.Generator | None
        Generator to draw from, e.g. to share one stream across calls.
    max_block_bytes : int | None
        Memory cap per block.  Defaults to ``settings.XP_MAX_BLOCK_BYTES``.

    Returns
    -------
    np.ndarray
        Fraction of draws won by each model; sums to exactly one up to
        float rounding because the counts partition the draws.
    """
    alpha = np.asarray(alpha, dtype=np.float64).reshape(-1)
    if alpha.size == 0:
        raise ValueError("alpha must contain at least one model")
    if not np.all(np.isfinite(alpha)) or np.any(alpha <= 0):
        raise ValueError("alpha must be positive and finite")

    n_samples = settings.XP_SAMPLES if n_samples is None else int(n_samples)
    max_block_bytes = settings.XP_MAX_BLOCK_BYTES if max_block_bytes is None else int(max_block_bytes)
    if rng is None:
        rng = np.random.default_rng(seed)

    blocks = plan_blocks(n_samples, alpha.size, max_block_bytes)
    logger.debug("Sampling %d Dirichlet draws in %d block(s)", n_samples, len(blocks))

    counts = sum(count_block_winners(alpha, size, rng) for size in blocks)
    return counts / n_samples
