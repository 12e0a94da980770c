from setuptools import setup, find_packages


with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="trafficeval",
    version="0.3.0",
    author="trafficeval contributors",
    description="Request load propagation and bottleneck detection for microservice call graphs.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    packages=find_packages(exclude=("tests", "tests.*")),
    package_data={"trafficeval.schemas": ["*.json"]},
    python_requires=">=3.9",
    install_requires=[
        "pandas",
        "openpyxl",
        "PyYAML",
        "jsonschema",
        "networkx",
    ],
    extras_require={"test": ["pytest"]},
    tests_require=["pytest"],
    entry_points={"console_scripts": ["trafficeval=trafficeval.cli:main"]},
)
