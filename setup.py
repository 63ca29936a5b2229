"""
Setup script for tutor-progress-engine.

The learning-progress core of a voice-driven language tutor:

1. Spaced repetition - modified SM-2 scheduling of words, rules and phrases
2. Session planning - review queues, strategy selection, knowledge snapshot
3. Cloud sync - batched, idempotent upload of knowledge updates

The 'progress-engine' command is a diagnostics CLI over the local store.
"""

from setuptools import find_packages, setup

setup(
    name="tutor-progress-engine",
    version="0.1.0",
    description="Learning-progress engine for a voice-driven language tutor",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    packages=find_packages(include=["progress_engine", "progress_engine.*"]),
    py_modules=["config"],
    python_requires=">=3.11",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Database
        "sqlalchemy>=2.0.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # HTTP
        "requests>=2.28.0",
        "urllib3>=1.26.0",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
        "postgres": [
            "psycopg2-binary>=2.9.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "progress-engine=progress_engine.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Environment :: Console",
        "Intended Audience :: Education",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education :: Computer Aided Instruction (CAI)",
    ],
    keywords="learning spaced-repetition language-tutor education",
)
