"""Typed records passed between the estimator, the free-energy evaluator and
the orchestrator, plus input validation for log-evidence matrices.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import numpy as np

from groupbms.stats.errors import InvalidEvidenceError


def validate_evidence(lme: Any) -> np.ndarray:
    """Return a float64 copy of ``lme`` after checking it is usable.

    Parameters
    ----------
    lme : array-like
        Log model evidences, rows are subjects and columns are models.

    Returns
    -------
    np.ndarray
        Array of shape (Ni, Nk).

    Raises
    ------
    InvalidEvidenceError
        If the input is not 2-D, has no subjects or no models, or holds a
        non-finite value.
    """
    try:
        arr = np.array(lme, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise InvalidEvidenceError("log evidences must be numeric") from exc
    if arr.ndim != 2:
        raise InvalidEvidenceError(
            f"log evidences must be a 2-D (subjects x models) matrix, got {arr.ndim}-D"
        )
    n_subjects, n_models = arr.shape
    if n_subjects < 1:
        raise InvalidEvidenceError("need at least one subject")
    if n_models < 1:
        raise InvalidEvidenceError("need at least one model")
    if not np.all(np.isfinite(arr)):
        raise InvalidEvidenceError("log evidences must be finite")
    return arr


def validate_prior(alpha0: Any, n_models: int) -> np.ndarray:
    """Return the prior concentration vector, defaulting to all ones."""
    if alpha0 is None:
        return np.ones(n_models)
    arr = np.array(alpha0, dtype=np.float64).reshape(-1)
    if arr.shape != (n_models,):
        raise InvalidEvidenceError(
            f"prior must have one entry per model ({n_models}), got {arr.size}"
        )
    if not np.all(np.isfinite(arr)) or np.any(arr <= 0):
        raise InvalidEvidenceError("prior concentrations must be positive and finite")
    return arr


@dataclass(frozen=True)
class Prior:
    """Dirichlet prior over model frequencies."""

    a: np.ndarray


@dataclass(frozen=True)
class Posterior:
    """Fitted variational posterior.

    Attributes
    ----------
    a : np.ndarray
        Dirichlet concentrations, shape (Nk,).
    r : np.ndarray
        Per-subject model responsibilities, shape (Nk, Ni).
    """

    a: np.ndarray
    r: np.ndarray


@dataclass(frozen=True)
class BMSResult:
    """Group-level model selection summary.

    ``alpha``, ``exp_r``, ``xp``, ``pxp`` and ``bor`` are the headline
    outputs.  ``converged`` is False when the variational loop hit its
    iteration cap; ``diagnostics`` collects every non-fatal condition met
    along the way.
    """

    alpha: np.ndarray
    exp_r: np.ndarray
    xp: np.ndarray
    pxp: np.ndarray
    bor: float
    F0: float
    F1: float
    responsibilities: np.ndarray
    converged: bool
    n_iterations: int
    diagnostics: list[str] = field(default_factory=list)

    @property
    def n_models(self) -> int:
        return int(self.alpha.shape[0])

    def as_dict(self) -> dict[str, Any]:
        """Plain-Python view (lists and floats), e.g. for JSON output."""
        return {
            "alpha": self.alpha.tolist(),
            "exp_r": self.exp_r.tolist(),
            "xp": self.xp.tolist(),
            "pxp": self.pxp.tolist(),
            "bor": float(self.bor),
            "F0": float(self.F0),
            "F1": float(self.F1),
            "responsibilities": self.responsibilities.tolist(),
            "converged": self.converged,
            "n_iterations": self.n_iterations,
            "diagnostics": list(self.diagnostics),
        }

    def __repr__(self) -> str:
        return (
            f"BMSResult(exp_r={np.round(self.exp_r, 3).tolist()}, "
            f"pxp={np.round(self.pxp, 3).tolist()}, bor={self.bor:.3f})"
        )
