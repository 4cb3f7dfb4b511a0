"""
Estimation calculators.

Pure Python math over a normalized EstimationInput and a RateCard.
Each calculator prices one concern for one quantity tier and returns a
plain dict; the orchestrator passes upstream outputs forward in a context
dict (spine -> paper -> press -> binding -> finishing -> packing ->
pre-press -> freight).
"""
