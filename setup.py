from setuptools import setup, find_packages

setup(
    name="lineage-hierarchy",
    version="0.1.0",
    description="Hierarchy, count aggregation and coloring for dotted lineage taxonomies",
    packages=find_packages(exclude=["tests", "tests.*"]),
    entry_points={
        "console_scripts": [
            "lineage-hierarchy=lineage_hierarchy.cli:main",
        ],
    },
    install_requires=[
        "numpy>=1.17",
        "pandas>=1.1",
    ],
    extras_require={
        "test": ["pytest"],
    },
    python_requires=">=3.8",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Science/Research",
        "Topic :: Scientific/Engineering :: Bio-Informatics",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
    ],
)
