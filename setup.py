"""
Setup script for the PDF upload service.

Allows development installation with `pip install -e .[test]`
"""

from setuptools import setup, find_packages

setup(
    name="pdf-upload-service",
    version="0.1.0",
    packages=find_packages(include=["pdf_upload_service", "pdf_upload_service.*"]),
    python_requires=">=3.11",
    install_requires=[
        "fastapi>=0.110.0",
        "uvicorn>=0.27.0",
        "pydantic>=2.5.0",
        "pydantic-settings>=2.2.0",
        "playwright>=1.40.0",
        "httpx>=0.26.0",
        "azure-identity>=1.15.0",
        "azure-core>=1.29.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
        ],
    },
)
