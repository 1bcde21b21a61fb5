"""Setup script for Coupling Insight"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README
this_directory = Path(__file__).parent
long_description = ""
readme_path = this_directory / "README.md"
if readme_path.exists():
    long_description = readme_path.read_text(encoding="utf-8")

setup(
    name="coupling-insight",
    version="0.1.0",
    author="Naman Agarwal",
    author_email="",
    description="Coupling strength, distance and volatility analysis for Rust crates",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/yourusername/coupling-insight",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Quality Assurance",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.11",
    install_requires=[
        "rich>=13.0.0",
        "typer>=0.9.0,<0.26",
        "click>=8.0.0",
        "tree-sitter>=0.22.0",
        "tree-sitter-rust>=0.21.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "coupling-insight=coupling_insight.cli:main",
        ],
    },
    keywords="coupling static-analysis rust architecture git-history",
)
