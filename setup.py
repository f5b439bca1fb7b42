from setuptools import setup, find_packages

setup(
    name="edgebind",
    version="0.1.0",
    packages=find_packages(include=["edgebind", "edgebind.*"]),
    python_requires=">=3.8",
    install_requires=[
        "requests>=2.25.0",
        "numpy>=1.21",
        "python-dotenv>=0.19",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    zip_safe=False,
)
