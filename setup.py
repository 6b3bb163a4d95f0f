"""
Setup script for adaptive-quiz.

Adaptive Quiz serves multiple-choice quizzes whose difficulty follows the
learner: two right answers in a row move up a level, two wrong answers move
down. It ships as:

1. An HTTP API (FastAPI) - start a quiz, submit answers, list results
2. A terminal quiz - the same engine behind a rich prompt
3. A seeding tool - load JSON question banks into the database

The 'adaptive-quiz' command is the entry point.
"""

from setuptools import find_packages, setup

setup(
    name="adaptive-quiz",
    version="1.0.0",
    description="Difficulty-adaptive multiple-choice quiz engine with HTTP API and terminal client",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    author="Adaptive Quiz contributors",
    packages=find_packages(include=["adaptive_quiz", "adaptive_quiz.*"]),
    package_data={"adaptive_quiz": ["data/*.json"]},
    python_requires=">=3.10",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Database
        "sqlalchemy>=2.0.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # API
        "fastapi>=0.100.0",
        "uvicorn>=0.23.0",
        "httpx>=0.25.0",
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
            "adaptive-quiz=adaptive_quiz.cli.main:run",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Framework :: FastAPI",
        "Intended Audience :: Developers",
        "Intended Audience :: Education",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Education :: Computer Aided Instruction (CAI)",
    ],
    keywords="quiz adaptive-testing education fastapi cli",
)
