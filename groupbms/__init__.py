"""Random-effects Bayesian model selection for group studies."""

from groupbms.stats import BMSResult, GroupBMS, bms

__all__ = ["bms", "GroupBMS", "BMSResult"]
