#!/usr/bin/env python3
"""Setup script for the JIRA session bridge.
"""

from setuptools import find_packages, setup

# Read requirements from requirements.txt file
with open("requirements.txt") as f:
    requirements = f.read().splitlines()

# Remove any comments or blank lines from requirements
requirements = [line for line in requirements if line and not line.startswith("#")]

setup(
    name="jira-session-bridge",
    version="0.1.0",
    description="SOAP and REST session layer for talking to JIRA from a CI server",
    author="Sebastian Mendel",
    author_email="sebastian.mendel@netresearch.de",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    python_requires=">=3.12,<4.0",
    install_requires=requirements,
    extras_require={
        "test": [
            "pytest>=8.0",
        ],
    },
    license="MIT",  # SPDX license identifier
    entry_points={
        "console_scripts": [
            "jira-bridge=jira_bridge.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: System Administrators",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
    ],
)
