from setuptools import setup, find_packages

setup(
    name="readingjournal",
    version="0.1.0",
    packages=find_packages(include=["journal", "journal.*"]),
    python_requires=">=3.11",
    install_requires=[
        "fastapi>=0.115",
        "uvicorn[standard]>=0.30",
        "pydantic>=2.7",
        "pydantic-settings>=2.7",
        "sqlalchemy[asyncio]>=2.0.30",
        "asyncpg>=0.29",
        "aiosqlite>=0.20",
        "httpx>=0.27",
        "redis>=5.0",
        "stripe>=8.0",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
            "respx>=0.21",
        ],
    },
)
