from setuptools import setup, find_namespace_packages

setup(
    name="pastebox",
    version="1.0.0",
    description="A paste service with content deduplication and expiring pastes",
    packages=find_namespace_packages(include=["pastebox", "pastebox.*"]),
    py_modules=["main"],
    python_requires=">=3.11",
    install_requires=[
        "flask>=3.0.0",
        "isodate>=0.6.1",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.3",
            "hypothesis>=6.92.1",
        ],
    },
)
