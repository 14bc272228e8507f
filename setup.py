"""
Setup script for WriteOff (writeoff)

Allows editable install for the API server and CLI:
    pip install -e .[test]

This ensures writeoff modules are importable from the web app, the CLI and tests.
"""

from setuptools import setup, find_packages

setup(
    name="writeoff",
    version="0.1.0",
    packages=find_packages(include=["writeoff", "writeoff.*"]),
    install_requires=[
        "pandas>=2.0.0",
        "PyYAML>=6.0.0",
        "python-dotenv>=1.0.0",
        "SQLAlchemy>=2.0.0",
        "pydantic>=2.0.0",
        "fastapi>=0.100.0",
        "uvicorn>=0.23.0",
        "openai>=1.0.0",
        "plaid-python>=15.0.0",
        "typer>=0.9.0",
        "rich>=13.0.0",
        "colorama>=0.4.6",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "httpx>=0.24.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "writeoff=writeoff.cli.main:app",
        ],
    },
    author="WriteOff Team",
    description="Bank transaction import and AI tax-deduction classification (API, CLI)",
    include_package_data=True,
)
