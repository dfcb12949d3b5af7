from setuptools import setup, find_packages

setup(
    name="auction-ledger",
    version="0.1.0",
    packages=find_packages(include=["auction_ledger", "auction_ledger.*"]),
    python_requires=">=3.9",
    install_requires=[
        "web3>=7.0.0",
        "eth-abi>=4.0.0",
        "eth-utils>=2.0.0",
        "hexbytes>=0.3.0",
        "python-dotenv>=1.0.0",
        "aiohttp>=3.9.0",
        "pyyaml>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "auction-ledger=auction_ledger.scripts.inspect_auctions:main",
        ],
    },
)
