"""
Comparing Fitting Methods
=========================

This example fits the simulated trial with the default fit sequence and
compares the estimates against the truth.
"""

from glmmbench import GLMMComparison, PrintReporter

print("=" * 60)
print("FITTING METHOD COMPARISON")
print("=" * 60)

# 1. Default sequence without the (slow) Bayesian fit
comparison = GLMMComparison().set_seed(42)
comparison.set_fits(exclude=["bayes"])

# 2. An extra configuration: Nelder-Mead with a small evaluation budget
comparison.add_fit("nelder_mead_short", engine="glmm", optimizer="Nelder-Mead", max_fev=20, skip_zero_order=True)

# 3. Run; failures (e.g. the nAGQ=2 request) are reported, not raised
report = comparison.run(progress_callback=PrintReporter())

# 4. Critical doses implied by the estimates
print("\nCritical dose errors (mean absolute, per model):")
print(report.critical_doses.groupby("model")["error"].apply(lambda e: e.abs().mean()).round(2))

# 5. Figures
comparison.plot("coefficients")
comparison.plot("runtime")
