"""Variational Bayes estimation of the Dirichlet posterior over model frequencies.

Each subject's data is assumed to come from one of Nk models, picked with
unknown population frequencies r ~ Dirichlet(alpha0).  The fixed-point
iteration alternates between per-subject model responsibilities g and the
Dirichlet concentrations alpha (Stephan et al. 2009, NeuroImage 46:1004-1017).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
from scipy.special import digamma

from groupbms.core.config import settings
from groupbms.stats.records import validate_evidence, validate_prior

logger = logging.getLogger(__name__)


def responsibilities(lme: np.ndarray, alpha: np.ndarray) -> np.ndarray:
    """Posterior probability g[i, k] that model k generated subject i's data.

    Integrates out the model frequencies under Dirichlet(alpha), then
    normalises each row after subtracting its maximum so large evidences
    cannot overflow.

    Parameters
    ----------
    lme : np.ndarray
        Log evidences, shape (Ni, Nk).
    alpha : np.ndarray
        Current Dirichlet concentrations, shape (Nk,).

    Returns
    -------
    np.ndarray
        Shape (Ni, Nk); every row sums to one.
    """
    log_u = lme + digamma(alpha) - digamma(alpha.sum())
    u = np.exp(log_u - log_u.max(axis=1, keepdims=True))
    return u / u.sum(axis=1, keepdims=True)


@dataclass(frozen=True)
class VBEstimate:
    """Output of :meth:`VariationalEstimator.fit`.

    ``delta`` is the Euclidean norm of the last alpha update; it is below
    the tolerance exactly when ``converged`` is True.
    """

    alpha: np.ndarray
    g: np.ndarray
    converged: bool
    n_iterations: int
    delta: float


class VariationalEstimator:
    """Fixed-point solver for the model-frequency posterior.

    Parameters
    ----------
    tolerance : float
        Stop once the alpha update has Euclidean norm below this value.
    max_iterations : int
        Hard cap on iterations.  Hitting it is not an error: the current
        estimate is returned with ``converged=False``.
    """

    def __init__(
        self,
        tolerance: float | None = None,
        max_iterations: int | None = None,
    ) -> None:
        self.tolerance = settings.VB_TOLERANCE if tolerance is None else float(tolerance)
        self.max_iterations = (
            settings.VB_MAX_ITERATIONS if max_iterations is None else int(max_iterations)
        )
        if self.tolerance <= 0:
            raise ValueError("tolerance must be positive")
        if self.max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")

    def fit(self, lme, alpha0=None) -> VBEstimate:
        """Run the iteration on a subjects x models log-evidence matrix.

        Parameters
        ----------
        lme : array-like
            Log evidences, shape (Ni, Nk).
        alpha0 : array-like | None
            Prior concentrations, defaulting to all ones.

        Returns
        -------
        VBEstimate
        """
        lme = validate_evidence(lme)
        alpha0 = validate_prior(alpha0, lme.shape[1])

        alpha = alpha0.copy()
        delta = np.inf
        n_iterations = 0

        while n_iterations < self.max_iterations:
            n_iterations += 1
            g = responsibilities(lme, alpha)

            # Expected number of subjects generated by each model
            beta = g.sum(axis=0)

            prev = alpha
            alpha = alpha0 + beta
            delta = float(np.linalg.norm(alpha - prev))
            if delta < self.tolerance:
                break

        converged = delta < self.tolerance
        if converged:
            logger.debug("VB converged after %d iterations (delta=%.3g)", n_iterations, delta)
        else:
            logger.warning(
                "VB did not converge within %d iterations (delta=%.3g, tolerance=%.3g)",
                self.max_iterations,
                delta,
                self.tolerance,
            )

        return VBEstimate(
            alpha=alpha,
            g=g,
            converged=converged,
            n_iterations=n_iterations,
            delta=delta,
        )
