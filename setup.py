"""Setup configuration for release_dashboard"""

from setuptools import setup, find_packages

setup(
    name="release-dashboard",
    version="0.1.0",
    description=(
        "Service that harvests GitHub release metadata into a CSV table and "
        "serves monthly, weekday and release-type aggregates."
    ),
    author="Release Dashboard Contributors",
    author_email="",
    python_requires=">=3.10",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=[
        "requests>=2.28.0",
        "fastapi>=0.100.0",
        "uvicorn>=0.23.0",
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "httpx>=0.24.0",
            "black>=22.0",
            "flake8>=4.0",
            "mypy>=0.950",
        ],
    },
    entry_points={
        "console_scripts": [
            "release-dashboard=release_dashboard.main:main",
        ],
    },
)
