#!/usr/bin/env python3
"""Setup script for ripgrep-sync."""

from setuptools import setup

with open("README.md", encoding="utf-8") as f:
    long_description = f.read()

setup(
    name="ripgrep-sync",
    version="1.0.0",
    description="Keep a ripgrep checkout, its Rust toolchain and its release build up to date",
    long_description=long_description,
    long_description_content_type="text/markdown",
    license="MIT",
    packages=["ripgrep_sync"],
    python_requires=">=3.9",
    install_requires=[
        "PyYAML>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "ripgrep-sync=ripgrep_sync.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 5 - Production/Stable",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Topic :: Software Development :: Build Tools",
    ],
    keywords="ripgrep rust rustup cargo git rebuild",
)
