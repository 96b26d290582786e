"""
Adding a Coefficient Table from Another Tool
============================================

Fits produced elsewhere (for instance by R's lme4 or glmmTMB on the same
trial.csv) can be added to the comparison as a CSV with columns
variable, estimate, std error.
"""

import pandas as pd

from glmmbench import GLMMComparison

comparison = GLMMComparison().set_seed(42)
comparison.set_fits(exclude=["bayes", "gee"])

# Normally: comparison.set_external_coefficients("glmer_coefs.csv", model="glmer")
# Here we build a stand-in table from the truth to show the expected layout.
design = comparison.design
rows = [(f"Treatment{t}", b0, 0.2) for t, (b0, _) in design.treatment_effects().items()]
rows += [(f"Treatment{t}:x", b1, 0.02) for t, (_, b1) in design.treatment_effects().items()]
external = pd.DataFrame(rows, columns=["Variable", "Estimate", "Std.Error"])

comparison.set_external_coefficients(external, model="reference")
report = comparison.run()
print(report.summary[["model", "rmse_intercept", "rmse_slope", "coverage_slope"]])
