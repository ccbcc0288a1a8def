from setuptools import setup, find_packages

setup(
    name="market_model_engine",
    version="0.1.0",
    description="Numeraire-rebasing accounting engine for market-model Monte Carlo",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "numpy",
        "pandas",
        "scipy",
    ],
    extras_require={
        "test": ["pytest"],
    },
    python_requires=">=3.8",
)
