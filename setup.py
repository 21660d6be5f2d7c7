#!/usr/bin/env python
"""confmeta setup script."""
import importlib.util
import os.path as op

from setuptools import find_packages, setup


def _load_info():
    # Load metadata without importing the package (dependencies may be missing)
    spec = importlib.util.spec_from_file_location(
        "_info", op.join(op.dirname(op.abspath(__file__)), "confmeta", "info.py")
    )
    info = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(info)
    return info


if __name__ == "__main__":
    info = _load_info()
    setup(
        name=info.PACKAGENAME,
        version=info.VERSION,
        description=info.DESCRIPTION,
        author=info.AUTHOR,
        license=info.LICENSE,
        classifiers=info.CLASSIFIERS,
        packages=find_packages(exclude=["examples"]),
        python_requires=">=3.8",
        install_requires=info.REQUIRES,
        extras_require=info.EXTRA_REQUIRES,
        zip_safe=False,
    )
