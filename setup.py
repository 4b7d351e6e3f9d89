"""
docstore setup.py: Package configuration.
"""

from setuptools import find_packages, setup

setup(
    name="docstore",
    version="1.0.0",
    description="docstore: Role-gated document store with on-disk files",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.11",
    install_requires=[
        "pydantic>=2.5",
        "pyyaml>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
        ],
    },
)
