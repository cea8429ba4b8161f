from __future__ import annotations

from setuptools import find_packages, setup

from config.version import PROJECT_VERSION, PYTHON_REQUIRES_SPECIFIER

INSTALL_REQUIRES = [
    "beautifulsoup4>=4.12",
    "feedparser>=6.0",
    "httpx>=0.27",
    "loguru>=0.7",
    "pydantic>=2.6",
    "python-dateutil>=2.9",
    "python-dotenv>=1.0",
    "requests>=2.31",
    "SQLAlchemy>=2.0",
    "tomli>=2.0; python_version < '3.11'",
    "tomli-w>=1.0",
]

TEST_REQUIRES = [
    "anyio>=4.0",
    "hypothesis>=6.100",
    "pytest>=8.0",
]

if __name__ == "__main__":
    setup(
        name="verity-news-ingest",
        version=PROJECT_VERSION,
        python_requires=PYTHON_REQUIRES_SPECIFIER,
        packages=find_packages(include=["config", "verity", "src", "src.*"]),
        py_modules=["main"],
        install_requires=INSTALL_REQUIRES,
        extras_require={"test": TEST_REQUIRES},
        entry_points={
            "console_scripts": [
                "verity-ingest=main:main",
                "verity-config=verity.config_manager:main",
            ]
        },
    )
