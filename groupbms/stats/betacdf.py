"""Regularized incomplete beta function, used as the closed-form exceedance
probability when exactly two models are compared.
"""

from __future__ import annotations

import logging

import numpy as np
from scipy import special

from groupbms.stats.errors import ShapeMismatchError

logger = logging.getLogger(__name__)


def regularized_beta_cdf(x, v, w):
    """CDF of a Beta(v, w) distribution at ``x``, i.e. I_x(v, w).

    Each argument may be a scalar or an array.  Arguments with more than one
    element must all have the same shape; single-element arguments are
    treated as scalars.

    Positions where ``x`` is outside [0, 1] or ``v``/``w`` are not strictly
    positive come back as NaN, and one warning is logged for the call.

    Parameters
    ----------
    x : float | np.ndarray
        Evaluation point(s).
    v, w : float | np.ndarray
        Shape parameters of the Beta distribution.

    Returns
    -------
    float | np.ndarray
        A float when every argument is a scalar, otherwise an array with the
        shape of the non-scalar arguments.

    Raises
    ------
    ShapeMismatchError
        If two non-scalar arguments differ in shape.
    """
    args = [np.asarray(a, dtype=np.float64) for a in (x, v, w)]
    shapes = {a.shape for a in args if a.size != 1}
    if len(shapes) > 1:
        raise ShapeMismatchError(
            f"non-scalar args must match in size, got shapes {sorted(shapes)}"
        )
    out_shape = shapes.pop() if shapes else ()
    xa, va, wa = (
        np.broadcast_to(a.reshape(()) if a.size == 1 else a, out_shape) for a in args
    )

    F = np.zeros(out_shape)

    # Only defined for x in [0, 1] and strictly positive v, w
    defined = (xa >= 0) & (xa <= 1) & (va > 0) & (wa > 0)
    if not np.all(defined):
        F[~defined] = np.nan
        logger.warning("Returning NaN for out of range arguments")

    F[defined & (xa == 1)] = 1.0

    interior = defined & (xa > 0) & (xa < 1)
    if np.any(interior):
        F[interior] = special.betainc(va[interior], wa[interior], xa[interior])

    if out_shape == ():
        return float(F)
    return F


def two_model_exceedance(alpha: np.ndarray) -> np.ndarray:
    """Exceedance probabilities for a two-model Dirichlet (Beta) posterior.

    P(r_1 > r_2) is the Beta(alpha_2, alpha_1) CDF at one half, and the
    pair sums to one by the reflection identity I_x(a, b) = 1 - I_{1-x}(b, a).
    """
    a1, a2 = float(alpha[0]), float(alpha[1])
    return np.array([
        regularized_beta_cdf(0.5, a2, a1),
        regularized_beta_cdf(0.5, a1, a2),
    ])
