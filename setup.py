"""Package setup for mmhub."""

from setuptools import setup, find_packages

setup(
    name="mmhub",
    version="1.0.0",
    description="Idempotent Mattermost workspace bootstrap and MCP bridge config",
    packages=find_packages(include=["mmhub", "mmhub.*", "mmhub_sdk", "mmhub_sdk.*"],
                           exclude=["*.tests"]),
    python_requires=">=3.9",
    install_requires=[
        "httpx>=0.25.0",
        "pydantic>=2.0.0",
        "typer>=0.9.0",
        "rich>=13.0.0",
        "pyyaml>=6.0",
    ],
    extras_require={
        "test": ["pytest>=7.0.0", "fastapi>=0.100.0"],
        "all": ["pytest>=7.0.0", "fastapi>=0.100.0"],
    },
    entry_points={
        "console_scripts": [
            "mmhub=mmhub.cli:app",
        ],
    },
)
