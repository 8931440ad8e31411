from __future__ import annotations

from pathlib import Path

from setuptools import find_packages, setup

# Read README for long description
this_directory = Path(__file__).parent
long_description = (this_directory / "README.md").read_text()

setup(
    # Package metadata
    name="devdigest",
    version="1.0.0",
    description="Weekly development newsletter: AI-written content, tech headlines, reliable delivery",
    long_description=long_description,
    long_description_content_type="text/markdown",
    # Package discovery
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={
        "devdigest.llm.prompts": ["*.txt"],
        "devdigest.templates": ["*.html"],
    },
    include_package_data=True,
    # Dependencies
    install_requires=[
        "fastapi>=0.110.0",
        "uvicorn>=0.24.0",
        "pydantic>=2.5.0",
        "python-multipart>=0.0.9",
        "google-cloud-aiplatform>=1.38.0",
        "python-dotenv>=1.0.0",
        "tenacity>=8.2.0",
        "requests>=2.31.0",
        "Markdown>=3.5",
        "beautifulsoup4>=4.12.0",
        "bleach>=6.0.0",
        "Jinja2>=3.1.0",
        "MarkupSafe>=2.1.0",
    ],
    # Optional dependencies (for development)
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "httpx>=0.25.0",
            "black>=23.0.0",
            "mypy>=1.0.0",
            "ruff>=0.1.0",
        ],
    },
    # CLI commands
    entry_points={
        "console_scripts": [
            "devdigest-api=devdigest.api.app:main",
        ],
    },
    # Python version requirement
    python_requires=">=3.11",
    # PyPI classifiers
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
)
