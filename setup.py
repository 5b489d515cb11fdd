# setup.py
from setuptools import setup, find_packages

setup(
    name="kitaabsence",
    version="0.1.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "python-dateutil",
        "PySide6",
        "matplotlib",
        "reportlab",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-qt",
            "shiboken6",
        ],
    },
    entry_points={
        "console_scripts": [
            "kitaabsence=kitaabsence.main:main",
        ],
    },
)
