"""
.. _basic1:

=======================================
Confidence sets from the harmonic mean
=======================================

In confmeta, study-level estimates and standard errors are held in a
:class:`~confmeta.core.StudySet`. The harmonic mean chi-squared test turns
them into a p-value function of the effect size ``mu``, and inverting that
function gives a confidence set. Unlike a classical interval, the set may
consist of several disjoint intervals, or be empty.
"""
###############################################################################
# Start with the necessary imports
# --------------------------------
from pprint import pprint

import numpy as np
import pandas as pd

from confmeta import StudySet, conf_meta, hmean_chisq_pvalue

###############################################################################
# Evaluate the p-value function
# -----------------------------
# The p-value is 1 at every study estimate and decreases between estimates
# that disagree.
y = np.array([-0.3, 0.15, 0.4, 0.55, 1.1])
se = np.array([0.25, 0.3, 0.2, 0.35, 0.4])

mu = np.linspace(-1, 2, 7)
pprint(dict(zip(mu.round(2), hmean_chisq_pvalue(y, se, mu).round(4))))

###############################################################################
# Build a StudySet from a DataFrame
# ---------------------------------
df = pd.DataFrame({"study": list("ABCDE"), "estimate": y, "se": se})
dataset = StudySet(y="estimate", se="se", names="study", data=df)
dataset.to_df()

###############################################################################
# Compute the confidence set
# --------------------------
# Intervals of other methods can be passed in for comparison in the plots.
results = conf_meta(data=dataset, comparison_cis={"Fixed effect": (0.15, 0.52)})
results.get_ci_df()

###############################################################################
# The minima of the p-value function between the estimates (gamma) show how
# strongly neighboring studies conflict.
results.get_gamma_df()

###############################################################################
# Plot the p-value function and a forest plot
# -------------------------------------------
fig = results.plot(figsize=(7, 8))
