"""
Setup script for the treemetrics package.
"""

from setuptools import setup, find_packages
import os

# Read the README
readme_path = os.path.join(os.path.dirname(__file__), 'README.md')
if os.path.exists(readme_path):
    with open(readme_path, 'r', encoding='utf-8') as f:
        long_description = f.read()
else:
    long_description = "Cyclomatic complexity and copy-paste-detection tokens for JavaScript and TypeScript."

setup(
    name="treemetrics",
    version="1.0.0",
    author="treemetrics Team",
    description="Cyclomatic complexity and CPD token streams from JavaScript/TypeScript syntax trees",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "tree-sitter>=0.23",
        "tree-sitter-javascript>=0.23",
        "tree-sitter-typescript>=0.23",
        "pyyaml>=6.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "pytest-cov>=4.0",
            "black>=23.0",
            "mypy>=1.0",
            "ruff>=0.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "treemetrics=treemetrics.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Quality Assurance",
    ],
    keywords="static-analysis, cyclomatic-complexity, copy-paste-detection, javascript, typescript, tree-sitter",
)
