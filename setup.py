from setuptools import setup, find_packages

setup(
    name="gazettex",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "pyyaml",
        "pydantic",
        "pymongo",
        "pdfplumber",
        "pytesseract",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "gazettex=gazettex.cli:main",
        ],
    },
)
