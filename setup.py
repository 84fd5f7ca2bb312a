from setuptools import setup, find_packages

setup(
    name="adaptive-learning-engine",
    version="1.0.0",
    packages=find_packages(),
    install_requires=[
        "fastapi>=0.93.0",
        "uvicorn>=0.15.0",
        "pydantic>=1.8.0",
        "PyYAML>=5.4",
        "python-dotenv>=0.19.0",
        "redis>=4.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
            "httpx>=0.23",
        ],
    },
    python_requires=">=3.8",
)
