# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

import os

from setuptools import find_packages, setup


project_name = "mongolock"
this_directory = os.path.abspath(os.path.dirname(__file__))


def read_version():
    """Function to read the package version without importing it."""
    init_file = os.path.join(this_directory, project_name, "__init__.py")
    with open(init_file, "r", encoding="utf-8") as file:
        for line in file:
            if line.startswith("__version__"):
                return line.split("=")[1].strip().strip('"')
    raise RuntimeError("Unable to find __version__ in mongolock/__init__.py")


setup(
    name=project_name,
    version=read_version(),
    description="Distributed mutually exclusive locks in MongoDB.",
    license="MPL-2.0",
    python_requires=">=3.9",
    packages=find_packages(include=[project_name, f"{project_name}.*"]),
    install_requires=[
        "pymongo>=4.13",
        "redis>=4.5",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.23",
        ],
    },
)
