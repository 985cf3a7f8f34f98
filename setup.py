from setuptools import setup, find_packages

setup(
    name="l1-fixture",
    version="0.1.0",
    description="Builds a development L1 node image preloaded with deployed contracts",
    packages=find_packages(),
    install_requires=[
        "web3>=6.0.0",
        "docker>=6.1.0",
        "requests>=2.28.0",
        "pyyaml>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    python_requires=">=3.8",
    entry_points={
        "console_scripts": [
            "l1-fixture=l1_fixture.main:main",
        ],
    },
)
