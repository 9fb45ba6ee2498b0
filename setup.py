from setuptools import setup, find_packages

setup(
    name="dialhook",
    version="0.1.0",
    description="Forward fixed-width dialer parameter buffers to an HTTP backend",
    license="MIT",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "requests>=2.31.0",
        "python-dotenv>=1.0.0",
        "typer>=0.9.0",
        "rich>=13.0.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "dialhook=dialhook.main:dialhook",
        ],
    },
    python_requires=">=3.10",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
)
