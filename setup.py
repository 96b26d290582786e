from setuptools import setup, find_packages

setup(
    name="GLMMBench",
    version="0.1.0",
    packages=find_packages(include=["glmmbench", "glmmbench.*"]),
    install_requires=[
        "numpy",
        "pandas",
        "matplotlib<3.11",
        "scipy",
        "mixedlm>=1.3.0",
        "statsmodels",
        "joblib",
    ],
    extras_require={
        "bayes": ["bambi", "arviz"],
        "progress": ["tqdm"],
        "test": ["pytest"],
    },
    python_requires=">=3.10",
    description="Simulation and fitting comparison for cloglog binomial GLMMs",
)
