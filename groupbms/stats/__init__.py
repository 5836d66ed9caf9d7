"""groupbms statistics engine.

Public API:
- bms / GroupBMS: Full group-level Bayesian model selection
- VariationalEstimator: Dirichlet posterior over model frequencies
- dirichlet_exceedance: Monte Carlo exceedance probabilities
- regularized_beta_cdf: Closed-form exceedance for two models
- free_energy / bayes_omnibus_risk: Fitted vs null model evidence
- EqualModelFrequencies / EqualFamilyFrequencies: Null hypotheses
"""

from groupbms.stats.betacdf import regularized_beta_cdf, two_model_exceedance
from groupbms.stats.engine import GroupBMS, bms
from groupbms.stats.errors import InvalidEvidenceError, ShapeMismatchError
from groupbms.stats.exceedance import count_block_winners, dirichlet_exceedance, plan_blocks
from groupbms.stats.free_energy import (
    EqualFamilyFrequencies,
    EqualModelFrequencies,
    FreeEnergyTerms,
    NullHypothesis,
    bayes_omnibus_risk,
    free_energy,
    null_free_energy,
)
from groupbms.stats.records import BMSResult, Posterior, Prior
from groupbms.stats.variational import VBEstimate, VariationalEstimator, responsibilities

__all__ = [
    "bms",
    "GroupBMS",
    "BMSResult",
    "Posterior",
    "Prior",
    "VariationalEstimator",
    "VBEstimate",
    "responsibilities",
    "regularized_beta_cdf",
    "two_model_exceedance",
    "dirichlet_exceedance",
    "plan_blocks",
    "count_block_winners",
    "free_energy",
    "FreeEnergyTerms",
    "null_free_energy",
    "bayes_omnibus_risk",
    "NullHypothesis",
    "EqualModelFrequencies",
    "EqualFamilyFrequencies",
    "InvalidEvidenceError",
    "ShapeMismatchError",
]
