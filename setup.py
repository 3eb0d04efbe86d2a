"""Setup configuration for copilot_metrics"""

from setuptools import setup, find_packages

setup(
    name="copilot-metrics-engine",
    version="0.1.0",
    description=(
        "GitHub Copilot usage metrics: payload normalization, time-saved estimates, "
        "date-range approximation, trends and team comparison."
    ),
    author="Copilot Metrics Engine Contributors",
    author_email="",
    python_requires=">=3.10",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=[
        "requests>=2.28.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "black>=22.0",
            "flake8>=4.0",
            "mypy>=0.950",
        ],
    },
    entry_points={
        "console_scripts": [
            "copilot-metrics=copilot_metrics.main:main",
        ],
    },
)
