# setup.py
from setuptools import setup, find_packages

setup(
    name="deploy_scout",
    version="0.1.0",
    description="DeployScout: silent install metadata for Windows installers from vendor documentation",
    packages=find_packages(include=["deploy_scout", "deploy_scout.*"]),
    package_data={"deploy_scout": ["templates/*.j2"]},
    install_requires=[
        "aiohttp>=3.9",
        "beautifulsoup4>=4.12",
        "pydantic>=2.0",
        "PyYAML>=6.0",
        "click>=8.1",
        "Jinja2>=3.1",
    ],
    extras_require={
        "test": ["pytest>=7.4", "pytest-asyncio>=0.23"],
    },
    entry_points={"console_scripts": ["deploy-scout=deploy_scout.cli:cli"]},
    python_requires=">=3.11",
)
