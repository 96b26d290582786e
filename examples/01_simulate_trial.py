"""
Simulating the Benchmark Trial
==============================

This example generates the synthetic dose-response trial used by the
comparison report and checks its basic properties.
"""

import numpy as np

from glmmbench import TrialDesign, generate_trial
from glmmbench.stats.data_generation import write_trial_csv

print("=" * 60)
print("SIMULATED CLOGLOG TRIAL")
print("=" * 60)

# 1. Default design: 15 doses x 24 treatments x 3 repeats, 25 insects per row
design = TrialDesign()
trial = generate_trial(design, seed=42)

print(f"\nRows: {len(trial)}")
print(f"Replicates: {trial.data['Replicate'].nunique()}")
print(trial.data.head(10))

# 2. Every row holds exactly trial_size individuals
assert np.all(trial.data["Dead"] + trial.data["Alive"] == design.trial_size)

# 3. The true critical dose (99% mortality) of each treatment is known
print("\nTrue critical doses (first 6 treatments):")
for treatment in design.treatments[:6]:
    print(f"  {treatment}: {trial.critical_doses[treatment]:.1f}")

# 4. A custom design: fewer treatments, more repeats
small = TrialDesign(
    treatments=("A", "B", "C"),
    intercepts=(-2.0, -1.0, 0.0),
    slopes=(0.1, 0.2, 0.3),
    n_repeats=5,
)
small_trial = generate_trial(small, seed=1)
print(f"\nCustom design: {len(small_trial)} rows, {small.n_replicates} replicates")

# 5. Persist the table for other tools
write_trial_csv(trial, "trial.csv", doses_path="true_critical_doses.csv")
print("\nWrote trial.csv and true_critical_doses.csv")
