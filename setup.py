# pylint: disable=missing-module-docstring
from pathlib import Path

from setuptools import setup, find_packages

this_directory = Path(__file__).parent

with open(this_directory / "requirements.in", encoding="utf-8") as f:
    requirements = [line for line in f.read().splitlines() if line and not line.startswith("#")]

long_description = (this_directory / "README.md").read_text(encoding="utf-8")

setup(
    name="hecship",
    version="1.0.0",
    description="hecship forwards log messages in batches to a Splunk HTTP Event Collector.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="hecship Team",
    license="LGPL-2.1 license",
    classifiers=[
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    packages=find_packages(include=["hecship", "hecship.*"]),
    install_requires=["setuptools"] + requirements,
    extras_require={
        "dev": ["pytest", "responses"],
    },
    python_requires=">=3.10",
    entry_points={
        "console_scripts": [
            "hecship = hecship.run_hecship:cli",
        ]
    },
)
