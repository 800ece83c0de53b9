#!/usr/bin/env python3
"""
Setup configuration for Codebase Line Counter.
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read the contents of README file
this_directory = Path(__file__).parent
long_description = ""
if (this_directory / "README.md").exists():
    long_description = (this_directory / "README.md").read_text()

# Read requirements from requirements.txt
requirements = []
if (this_directory / "requirements.txt").exists():
    requirements = (this_directory / "requirements.txt").read_text().strip().split('\n')
    requirements = [req.strip() for req in requirements if req.strip() and not req.startswith('#')]

setup(
    name="codebase-line-counter",
    version="1.0.0",
    author="Project Think",
    author_email="",
    description="Concurrent line, code line and keyword counter for source trees",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=['lexers*', 'pipeline*']),
    py_modules=[
        'base_classes',
        'count_lines',
        'line_count_pipeline',
        'pipeline_configs',
        'pipeline_errors',
        'pipeline_monitoring',
        'run_tests'
    ],
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Quality Assurance",
        "Topic :: Utilities",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.10",
    install_requires=requirements,
    extras_require={
        "dev": [
            "pytest>=6.0",
            "pytest-cov",
            "black",
            "flake8",
            "mypy",
        ],
        "test": [
            "pytest>=6.0",
            "pytest-cov",
            "pytest-mock",
        ],
    },
    entry_points={
        "console_scripts": [
            "count-lines=count_lines:main",
            "run-line-counter-tests=run_tests:main",
        ],
    },
    keywords=[
        "line-counter",
        "sloc",
        "code-statistics",
        "codebase-analysis",
    ],
)
