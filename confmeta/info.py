"""Package metadata and requirements, read by setup.py."""

VERSION = "0.4.2"

AUTHOR = "confMeta developers"
COPYRIGHT = "Copyright 2023--now, confMeta developers"
LICENSE = "MIT"
STATUS = "Prototype"
PACKAGENAME = "confmeta"
DESCRIPTION = "confmeta: confidence sets from harmonic mean chi-squared p-value functions"

REQUIRES = [
    "numpy>=1.20",
    "scipy>=1.6",
    "pandas<3",
    "wrapt",
]

PLOT_REQUIRES = [
    "matplotlib>=3.1",
]

TESTS_REQUIRES = [
    "coverage",
    "flake8",
    "pytest",
    "pytest-cov",
]

EXTRA_REQUIRES = {
    "plot": PLOT_REQUIRES,
    "tests": TESTS_REQUIRES,
}

# Enable a handle to install all extra dependencies at once
EXTRA_REQUIRES["all"] = sorted(set(v for deps in EXTRA_REQUIRES.values() for v in deps))

# Package classifiers
CLASSIFIERS = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "License :: OSI Approved :: MIT License",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Topic :: Scientific/Engineering",
]
