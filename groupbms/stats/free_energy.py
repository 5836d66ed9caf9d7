"""Variational free energy of the fitted model and of the null hypothesis.

The Bayes Omnibus Risk compares the free energy F1 of the fitted
random-effects model with the evidence F0 of a null in which every model
(or every family of models) is equally frequent in the population
(Rigoux et al. 2014, NeuroImage 84:971-985, Eqs. A.17 and A.20).

All functions here take log evidences in models x subjects orientation.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

import numpy as np
from scipy.special import digamma, expit, gammaln

from groupbms.core.config import settings
from groupbms.stats.errors import InvalidEvidenceError
from groupbms.stats.records import Posterior, Prior

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FreeEnergyTerms:
    """Fitted free energy ``F = ELJ + Sqf + Sqm`` and its parts.

    Attributes
    ----------
    F : float
        Free energy (lower bound on the log evidence of the fitted model).
    ELJ : float
        Expected log joint under the approximate posterior.
    Sqf : float
        Entropy of the Dirichlet posterior over frequencies.
    Sqm : float
        Entropy of the per-subject categorical responsibilities.
    """

    F: float
    ELJ: float
    Sqf: float
    Sqm: float


def free_energy(
    L: np.ndarray,
    posterior: Posterior,
    prior: Prior,
    eps: float | None = None,
) -> FreeEnergyTerms:
    """Free energy of the current approximate posterior.

    Parameters
    ----------
    L : np.ndarray
        Log evidences, shape (Nk, Ni).
    posterior : Posterior
        Fitted concentrations ``a`` (Nk,) and responsibilities ``r`` (Nk, Ni).
    prior : Prior
        Prior concentrations ``a`` (Nk,).
    eps : float | None
        Guard inside ``log(r + eps)``.  Defaults to ``settings.LOG_EPS``.

    Returns
    -------
    FreeEnergyTerms
    """
    eps = settings.LOG_EPS if eps is None else eps
    a = np.asarray(posterior.a, dtype=np.float64)
    r = np.asarray(posterior.r, dtype=np.float64)
    a0 = np.asarray(prior.a, dtype=np.float64)
    if r.shape != L.shape:
        raise InvalidEvidenceError(
            f"responsibilities shape {r.shape} does not match evidences {L.shape}"
        )

    Elogr = digamma(a) - digamma(a.sum())
    Sqf = gammaln(a).sum() - gammaln(a.sum()) - np.sum((a - 1) * Elogr)
    Sqm = -np.sum(r * np.log(r + eps))
    ELJ = (
        gammaln(a0.sum())
        - gammaln(a0).sum()
        + np.sum((a0 - 1) * Elogr)
        + np.sum(r * (Elogr[:, None] + L))
    )
    F = ELJ + Sqf + Sqm
    return FreeEnergyTerms(F=float(F), ELJ=float(ELJ), Sqf=float(Sqf), Sqm=float(Sqm))


def _subject_softmax(L: np.ndarray) -> np.ndarray:
    """Column-wise softmax of (Nk, Ni) evidences, stabilised by the column max."""
    tmp = np.exp(L - L.max(axis=0, keepdims=True))
    return tmp / tmp.sum(axis=0, keepdims=True)


# ======================================================================
# Null hypotheses
# ======================================================================


class NullHypothesis(ABC):
    """Evidence of a fixed-frequency null model over the same evidences."""

    @abstractmethod
    def free_energy(self, L: np.ndarray, eps: float | None = None) -> float:
        """Return F0 for log evidences ``L`` of shape (Nk, Ni)."""


class EqualModelFrequencies(NullHypothesis):
    """H0: every model is equally frequent, r_k = 1 / Nk."""

    def free_energy(self, L: np.ndarray, eps: float | None = None) -> float:
        eps = settings.LOG_EPS if eps is None else eps
        n_models = L.shape[0]
        g = _subject_softmax(L)
        return float(np.sum(g * (L - np.log(n_models) - np.log(g + eps))))

    def __repr__(self) -> str:
        return "EqualModelFrequencies()"


class EqualFamilyFrequencies(NullHypothesis):
    """H0: every family is equally frequent, split evenly among its members.

    Parameters
    ----------
    membership : array-like
        Nk x Nf matrix of zeros and ones; entry (k, f) is 1 when model k
        belongs to family f.  Each model belongs to exactly one family and
        no family is empty.
    """

    def __init__(self, membership) -> None:
        C = np.asarray(membership, dtype=np.float64)
        if C.ndim != 2 or C.shape[0] < 1 or C.shape[1] < 1:
            raise InvalidEvidenceError("family membership must be a non-empty 2-D matrix")
        if not np.all((C == 0) | (C == 1)):
            raise InvalidEvidenceError("family membership entries must be 0 or 1")
        if np.any(C.sum(axis=1) != 1):
            raise InvalidEvidenceError("each model must belong to exactly one family")
        if np.any(C.sum(axis=0) == 0):
            raise InvalidEvidenceError("each family must contain at least one model")
        self.membership = C

    @property
    def n_families(self) -> int:
        return self.membership.shape[1]

    def model_prior(self) -> np.ndarray:
        """Null frequency of each model: 1 / (n_families * family size)."""
        C = self.membership
        return C @ (1.0 / C.sum(axis=0)) / C.shape[1]

    def free_energy(self, L: np.ndarray, eps: float | None = None) -> float:
        eps = settings.LOG_EPS if eps is None else eps
        if L.shape[0] != self.membership.shape[0]:
            raise InvalidEvidenceError(
                f"family membership covers {self.membership.shape[0]} models, "
                f"evidences have {L.shape[0]}"
            )
        f0 = self.model_prior()
        g = _subject_softmax(L)
        return float(np.sum(g * (L - np.log(g + eps) + np.log(f0)[:, None])))

    def __repr__(self) -> str:
        return f"EqualFamilyFrequencies(n_models={self.membership.shape[0]}, n_families={self.n_families})"


def null_free_energy(L: np.ndarray, families=None, eps: float | None = None) -> float:
    """F0 under equal model frequencies, or equal family frequencies if
    a membership matrix is given."""
    null = EqualModelFrequencies() if families is None else EqualFamilyFrequencies(families)
    return null.free_energy(L, eps)


def bayes_omnibus_risk(
    L: np.ndarray,
    posterior: Posterior,
    prior: Prior,
    null: NullHypothesis | None = None,
    eps: float | None = None,
) -> tuple[float, float, float]:
    """Posterior probability that the null (equal frequencies) holds.

    ``bor = 1 / (1 + exp(F1 - F0))``, computed with ``expit`` so large
    free-energy gaps saturate instead of overflowing.

    Returns
    -------
    tuple[float, float, float]
        (bor, F0, F1)
    """
    null = EqualModelFrequencies() if null is None else null
    F0 = null.free_energy(L, eps)
    F1 = free_energy(L, posterior, prior, eps).F
    bor = float(expit(F0 - F1))
    logger.debug("F0=%.6g F1=%.6g bor=%.6g (%r)", F0, F1, bor, null)
    return bor, F0, F1
