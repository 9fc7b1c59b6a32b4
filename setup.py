from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as f:
    long_description = f.read()

setup(
    name="perchnlp",
    version="0.1.0",
    description="PyTorch networks as smooth nonlinear optimization problems",
    long_description=long_description,
    long_description_content_type="text/markdown",
    license="MIT",
    platforms=["Any"],
    packages=find_packages(include=["perchnlp", "perchnlp.*"]),
    include_package_data=True,

    # --- Python version support ---
    python_requires=">=3.10",

    classifiers=[
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],

    install_requires=[
        "torch>=2.0",
        "numpy",
        "matplotlib",
        "scikit-learn>=1.3,<2.0.0",
    ],
    extras_require={
        "test": ["pytest"],
    },
)
