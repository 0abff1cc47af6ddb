from setuptools import setup, find_packages

setup(
    name="goldbasis",
    version="1.0.0",
    description="Live gold basis terminal: Pyth oracle vs Binance, Hyperliquid and Meteora",
    author="Pascal Legate",
    url="https://github.com/pascal-labs/goldbasis",
    packages=find_packages(exclude=["tests", "tests.*", "examples"]),
    python_requires=">=3.10",
    install_requires=[
        "requests>=2.31",
        "python-dotenv>=1.0",
    ],
    entry_points={
        "console_scripts": ["goldbasis=goldbasis.__main__:main"],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
)
