#!/usr/bin/env python3
"""
Setup script for SolForge

Install with:
    pip install -e .

With the HTTP debugging service:
    pip install -e ".[api]"
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README
readme_path = Path(__file__).parent / "README.md"
long_description = ""
if readme_path.exists():
    long_description = readme_path.read_text(encoding="utf-8")

# Core dependencies
requirements = [
    "pydantic>=2.5.0",
    "pydantic-settings>=2.1.0",
    "python-dotenv>=1.0.0",
    "httpx>=0.26.0",
    "aiofiles>=23.2.1",
    "rich>=13.7.0",
    "fastapi>=0.109.0",
]

api_requirements = [
    "uvicorn[standard]>=0.27.0",
]

setup(
    name="solforge",
    version="1.0.0",
    description="SolForge - streaming parser and merge engine for generated Solana dApps",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="SolForge Team",
    license="MIT",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={
        "solforge.modules.forge": ["templates/*.xml"],
    },
    include_package_data=True,
    python_requires=">=3.9",
    install_requires=requirements,
    extras_require={
        "api": api_requirements,
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.23.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "solforge=solforge.cli.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Code Generators",
        "Topic :: Text Processing :: Markup",
    ],
    keywords="solana parser streaming code-generation llm",
)
