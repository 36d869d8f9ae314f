from setuptools import setup, find_packages

setup(
    name="biosignal_preprocessing",
    version="0.1.0",
    description="Gap-tolerant filtering and spectral estimation for biomedical signals",
    author="PRIMOCOSMOS",
    packages=find_packages(exclude=["tests", "tests.*", "examples", "examples.*"]),
    install_requires=[
        "numpy>=1.21.0",
        "scipy>=1.7.0",
        "pandas>=1.3.0",
        "joblib>=1.1.0",
    ],
    extras_require={
        "examples": ["matplotlib>=3.4.0"],
        "test": ["pytest>=7.0"],
    },
    python_requires=">=3.7",
)
