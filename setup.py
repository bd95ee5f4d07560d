import os

from setuptools import find_packages, setup

setup(
    name="busline",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "pydantic>=2.10.6,<3.0.0",
        "pydantic-settings>=2.2,<3.0.0",
        "structlog>=24.1.0",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },
    author="Busline Contributors",
    description="In-process request dispatch with fluent, aggregating validation",
    long_description=open("README.md").read()
    if os.path.exists("README.md")
    else "",
    long_description_content_type="text/markdown",
)
