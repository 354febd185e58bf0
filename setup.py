from setuptools import setup, find_packages


setup(
    name="tarstream",
    version="0.1",
    packages=find_packages(include=["tarstream", "tarstream.*"]),
    description="A forward-only streaming reader for USTAR tar archives.",
    author="tarstream contributors",
    python_requires=">=3.8",
    install_requires=[],
    extras_require={
        "zstd": ["zstandard>=0.15"],
    },
    entry_points={
        "console_scripts": [
            "tarstream=tarstream.cli:main",
        ]
    },
)
