"""
Setup script for the academic calendar engine.
"""
from setuptools import setup, find_packages

setup(
    name="academic-calendar-engine",
    version="0.1.0",
    description="Semester calendar generation and timetable conflict detection",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["main"],
    python_requires=">=3.9",
    install_requires=[
        "pandas>=1.4.0",
        "flask>=2.0.0",
        "flask-cors>=3.0.0",
        "werkzeug>=2.0.0",
        "python-dotenv>=0.19.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=2.0.0",
            "black>=22.0.0",
            "mypy>=0.900"
        ],
    },
    entry_points={
        "console_scripts": [
            "academic-calendar=main:main",
        ],
    },
)
