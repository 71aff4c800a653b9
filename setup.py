"""Setup script for the bloodconnect registry package following Cosmic Python pattern."""

from setuptools import setup, find_namespace_packages

setup(
    name="bloodconnect-registry",
    version="1.0.0",
    description="Blood donor and blood request registry kept on the local device",
    author="BloodConnect Team",
    package_dir={"": "src"},
    packages=find_namespace_packages(where="src", include=["bloodconnect*"]),
    py_modules=["config"],
    python_requires=">=3.11",
    install_requires=[
        "fastapi",
        "uvicorn[standard]",
        "pydantic>=2",
        "sqlalchemy>=2",
        "python-multipart",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
            "pytest-cov",
            "httpx",
        ],
        "dev": [
            "black",
            "flake8",
            "mypy",
            "pre-commit",
        ],
    },
    entry_points={
        "console_scripts": [
            "bloodconnect-api=bloodconnect.entrypoints.registry_api:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Healthcare Industry",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3.11",
        "Topic :: Scientific/Engineering :: Medical Science Apps.",
    ],
)
