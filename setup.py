"""Setup script for the lesser package.

For development installation:
    pip install -e .[test]

For production installation:
    pip install .
"""

from setuptools import setup

# Read requirements from requirements.txt
with open("requirements.txt") as f:
    requirements = [line.strip() for line in f if line.strip() and not line.startswith("#")]

setup(
    name="lesser",
    version="0.1.0",
    description="Line-indexed random access and concurrent search for large files",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    packages=["lesser"],
    python_requires=">=3.11",
    install_requires=requirements,
    extras_require={"test": ["pytest>=8.0"]},
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: BSD License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Topic :: Text Processing",
    ],
)
