from setuptools import setup, find_packages

setup(
    name="arima-garch-signals",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "scripts"]),
    py_modules=["models", "run_backtest"],
    install_requires=[
        "numpy",
        "pandas",
        "scipy",
        "arch",
        "statsmodels",
        "duckdb",
        "tqdm",
        "psutil",
        "python-dotenv",
        "yfinance",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": ["arima-garch-backtest=run_backtest:main"],
    },
    python_requires=">=3.8",
)
