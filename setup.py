from setuptools import setup, find_packages


setup(
    name="cryptosoft",
    version="1.0.0",
    packages=find_packages(include=["cryptosoft", "cryptosoft.*"]),
    description="Streaming repeating-key XOR of files and directory trees with atomic in-place replacement.",
    author="cryptosoft",
    python_requires=">=3.9",
    install_requires=[
        "numpy>=1.24.0",
    ],
    entry_points={
        "console_scripts": [
            "cryptosoft=cryptosoft.cli:main",
        ]
    },
)
