"""
Setup script for PromptLoom
"""
from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

# --------------------------------------------------------------------------
# Optional dependency groups
# Upper bounds on major versions prevent unexpected breaking changes.
# --------------------------------------------------------------------------
_test_deps = [
    "pytest>=7.0.0,<9",
]

setup(
    name="promptloom",
    version="0.1.0",
    author="The PromptLoom Authors",
    description="Render trees of prompt components and collect the inputs they need",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["promptloom", "promptloom.*"]),
    python_requires=">=3.10",
    install_requires=[
        "pydantic>=2.0.0,<3",
        "python-dotenv>=1.0.0,<2",
    ],
    extras_require={
        "test": _test_deps,
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
