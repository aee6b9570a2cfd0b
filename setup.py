"""
Setup configuration for creatorlens package.
"""

from setuptools import setup, find_packages

setup(
    name="creatorlens",
    version="0.1.0",
    description="TikTok content analytics aggregation layer",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        "pydantic>=2.0",
        "numpy>=1.24",
        "scipy>=1.10",
        "supabase>=2.0",
        "python-dotenv>=1.0",
        "PyYAML>=6.0",
        "click>=8.0",
        "tqdm>=4.65",
        "logfire>=0.50",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "creatorlens=creatorlens.cli.main:cli",
        ],
    },
)
