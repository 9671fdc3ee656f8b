"""Setup configuration for keyrotator."""

import os
import sys

from setuptools import find_packages, setup

# Get version from package
here = os.path.abspath(os.path.dirname(__file__))
sys.path.insert(0, here)
from keyrotator import __author__, __version__  # noqa: E402

# Get the long description from the README file
with open(os.path.join(here, "README.md"), encoding="utf-8") as f:
    long_description = f.read()

setup(
    name="keyrotator",
    version=__version__,
    description="Rotates cloud service-account keys and propagates them to every dependent system",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author=__author__,
    keywords="aws gcp iam service-account key rotation cli",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.8",
    install_requires=[
        "click>=8.0.0",
        "pyyaml>=6.0",
        "gitpython>=3.1.0",
        "cryptography>=3.4.0",
        "jsonschema>=4.0.0",
        "requests>=2.28.0",
        "boto3>=1.26.0",
        "botocore>=1.29.0",
        "google-auth>=2.16.0",
        "google-api-python-client>=2.70.0",
        "google-cloud-storage>=2.7.0",
        "google-cloud-kms>=2.14.0",
        "google-cloud-container>=2.17.0",
        "kubernetes>=25.3.0",
        "pynacl>=1.5.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.12.0",
            "mypy>=0.991",
        ],
    },
    entry_points={
        "console_scripts": [
            "keyrotator=keyrotator.cli:cli",
        ],
    },
)
