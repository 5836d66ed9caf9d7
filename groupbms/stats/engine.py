"""GroupBMS: orchestrator that ties together the variational estimator,
exceedance probabilities, and the Bayes Omnibus Risk into a single ``run``
call.

This is the main entry point of the package.
"""

from __future__ import annotations

import logging

import numpy as np

from groupbms.core.config import settings
from groupbms.stats.betacdf import two_model_exceedance
from groupbms.stats.exceedance import dirichlet_exceedance
from groupbms.stats.free_energy import (
    EqualFamilyFrequencies,
    EqualModelFrequencies,
    NullHypothesis,
    bayes_omnibus_risk,
)
from groupbms.stats.records import BMSResult, Posterior, Prior, validate_evidence, validate_prior
from groupbms.stats.variational import VariationalEstimator

logger = logging.getLogger(__name__)


class GroupBMS:
    """Random-effects Bayesian model selection for group studies.

    Parameters
    ----------
    tolerance : float | None
        Convergence tolerance of the variational loop.
    max_iterations : int | None
        Iteration cap of the variational loop.
    n_samples : int | None
        Dirichlet draws for exceedance probabilities when Nk != 2.
    max_block_bytes : int | None
        Memory cap per block of draws.
    seed : int | None
        Seed for the exceedance sampler.
    null : NullHypothesis | None
        Null hypothesis for the omnibus risk.  Defaults to equal model
        frequencies.

    Unset parameters fall back to ``groupbms.core.config.settings``.
    """

    def __init__(
        self,
        tolerance: float | None = None,
        max_iterations: int | None = None,
        n_samples: int | None = None,
        max_block_bytes: int | None = None,
        seed: int | None = None,
        null: NullHypothesis | None = None,
    ) -> None:
        self.estimator = VariationalEstimator(tolerance, max_iterations)
        self.n_samples = settings.XP_SAMPLES if n_samples is None else int(n_samples)
        self.max_block_bytes = (
            settings.XP_MAX_BLOCK_BYTES if max_block_bytes is None else int(max_block_bytes)
        )
        self.seed = settings.XP_SEED if seed is None else seed
        self.null = EqualModelFrequencies() if null is None else null

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def run(self, lme, alpha0=None) -> BMSResult:
        """Run the full analysis on a subjects x models log-evidence matrix.

        Steps:
        1. Validate inputs (fatal errors raise before anything is computed)
        2. Fit the Dirichlet posterior by variational Bayes
        3. Expected model frequencies
        4. Exceedance probabilities (closed form for two models)
        5. Free energies of the null and fitted models, and the omnibus risk
        6. Protected exceedance probabilities

        Parameters
        ----------
        lme : array-like
            Log model evidences, shape (Ni, Nk).
        alpha0 : array-like | None
            Prior concentrations, defaulting to all ones.

        Returns
        -------
        BMSResult
        """
        # ----------------------------------------------------------
        # 1. Validate
        # ----------------------------------------------------------
        lme = validate_evidence(lme)
        n_subjects, n_models = lme.shape
        alpha0 = validate_prior(alpha0, n_models)
        diagnostics: list[str] = []

        # ----------------------------------------------------------
        # 2. Variational Bayes
        # ----------------------------------------------------------
        vb = self.estimator.fit(lme, alpha0)
        if not vb.converged:
            diagnostics.append(
                f"variational loop stopped at {vb.n_iterations} iterations "
                f"without convergence (delta={vb.delta:.3g})"
            )
        alpha = vb.alpha

        # ----------------------------------------------------------
        # 3. Expected model frequencies
        # ----------------------------------------------------------
        exp_r = alpha / alpha.sum()

        # ----------------------------------------------------------
        # 4. Exceedance probabilities
        # ----------------------------------------------------------
        if n_models == 2:
            xp = two_model_exceedance(alpha)
        else:
            xp = dirichlet_exceedance(
                alpha,
                n_samples=self.n_samples,
                seed=self.seed,
                max_block_bytes=self.max_block_bytes,
            )

        # ----------------------------------------------------------
        # 5. Bayes Omnibus Risk
        # ----------------------------------------------------------
        posterior = Posterior(a=alpha, r=vb.g.T)
        prior = Prior(a=alpha0)
        bor, F0, F1 = bayes_omnibus_risk(lme.T, posterior, prior, null=self.null)

        # ----------------------------------------------------------
        # 6. Protected exceedance probabilities (Rigoux et al. 2014, Eq. 7)
        # ----------------------------------------------------------
        pxp = (1 - bor) * xp + bor / n_models

        logger.debug(
            "BMS over %d subjects x %d models: exp_r=%s pxp=%s bor=%.4g",
            n_subjects,
            n_models,
            np.round(exp_r, 4).tolist(),
            np.round(pxp, 4).tolist(),
            bor,
        )

        return BMSResult(
            alpha=alpha,
            exp_r=exp_r,
            xp=xp,
            pxp=pxp,
            bor=bor,
            F0=F0,
            F1=F1,
            responsibilities=vb.g,
            converged=vb.converged,
            n_iterations=vb.n_iterations,
            diagnostics=diagnostics,
        )


def bms(
    lme,
    alpha0=None,
    tolerance: float | None = None,
    max_iterations: int | None = None,
    n_samples: int | None = None,
    seed: int | None = None,
    families=None,
) -> BMSResult:
    """Bayesian model selection for group studies.

    Convenience wrapper around :class:`GroupBMS`.  ``families`` is an
    optional Nk x Nf membership matrix; when given, the omnibus risk is
    computed against equal family frequencies instead of equal model
    frequencies.
    """
    null = None if families is None else EqualFamilyFrequencies(families)
    engine = GroupBMS(
        tolerance=tolerance,
        max_iterations=max_iterations,
        n_samples=n_samples,
        seed=seed,
        null=null,
    )
    return engine.run(lme, alpha0)
