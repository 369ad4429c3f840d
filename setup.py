from setuptools import setup, find_namespace_packages

setup(
    name="timescaleguard",
    version="0.1.0",
    description="Keeps a game server's host_timescale from dropping below 1",
    author="mseibert",
    package_dir={"": "src"},
    packages=find_namespace_packages(where="src", include=["core*", "host*", "guard*"]),
    py_modules=["config", "main"],
    python_requires=">=3.10",
    install_requires=[
        "PyYAML>=6.0",
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
)
