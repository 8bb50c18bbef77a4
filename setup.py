from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="sockscope",
    version="0.1.0",
    description="Cross-thread poster ID correlation and sockpuppet clustering",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["sockscope", "sockscope.*"]),
    python_requires=">=3.10",
    install_requires=[
        "scikit-learn",
        "scipy",
        "numpy",
        "click",
        "rich",
        "pydantic>=2.0",
        "pyyaml",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "sockscope=sockscope.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Science/Research",
        "Topic :: Text Processing",
        "Programming Language :: Python :: 3.10",
    ],
)
