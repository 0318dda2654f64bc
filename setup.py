#!/usr/bin/env python
import re

from setuptools import find_packages, setup

NAME = "isobar"
VERSION = "0.2.0"
DESCRIPTION = "Variable registry and storage policies for ECMWF IFS open-data forecasts"
KEYWORDS = "ecmwf forecast weather grib quantization metadata"
URL = "https://github.com/isobar-dev/isobar"
AUTHOR = "The isobar developers"
AUTHOR_EMAIL = "isobar-dev@users.noreply.github.com"
REQUIRES_PYTHON = ">=3.9.0"
LICENSE = "Apache Software License 2.0"

requirements = list()
with open("requirements.txt") as req:
    for dependency in req.readlines():
        requirements.append(dependency.strip())

dev_requirements = list()
with open("requirements_dev.txt") as dev:
    for dependency in dev.readlines():
        dev_requirements.append(dependency.strip())

docs_requirements = [
    "furo",
    "ipython",
    "sphinx",
    "sphinx_codeautolink",
    "sphinx_copybutton",
]

readme = open("README.rst").read()
history = open("HISTORY.rst").read().replace(".. :changelog:", "")

hyperlink_replacements = {
    r":issue:`([0-9]+)`": r"`GH/\1 <https://github.com/isobar-dev/isobar/issues/\1>`_",
    r":pull:`([0-9]+)`": r"`PR/\1 <https://github.com/isobar-dev/isobar/pull/\1>`_",
    r":user:`([a-zA-Z0-9_.-]+)`": r"`@\1 <https://github.com/\1>`_",
}
for search, replacement in hyperlink_replacements.items():
    history = re.sub(search, replacement, history)

setup(
    name=NAME,
    version=VERSION,
    description=DESCRIPTION,
    long_description=readme + "\n\n" + history,
    long_description_content_type="text/x-rst",
    author=AUTHOR,
    author_email=AUTHOR_EMAIL,
    url=URL,
    python_requires=REQUIRES_PYTHON,
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_dir={"isobar": "isobar"},
    package_data={"isobar.ecmwf": ["data/*.json"]},
    include_package_data=True,
    install_requires=requirements,
    extras_require={
        "docs": docs_requirements,
        "dev": dev_requirements,
    },
    license=LICENSE,
    zip_safe=False,
    keywords=KEYWORDS,
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: Apache Software License",
        "Natural Language :: English",
        "Operating System :: MacOS",
        "Operating System :: POSIX",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Scientific/Engineering :: Atmospheric Science",
    ],
)
