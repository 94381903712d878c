from setuptools import setup, find_packages

setup(
    name="examhub-backend",
    version="0.1.0",
    packages=find_packages(exclude=["examhub.tests", "examhub.tests.*"]),
    package_data={"examhub": ["alembic/*.py", "alembic/*.mako", "alembic/versions/*.py"]},
    install_requires=[
        "fastapi>=0.95.0,<0.116.0",
        "uvicorn>=0.15.0",
        "pydantic>=1.8.0,<2.0.0",
        "sqlalchemy[asyncio]>=1.4.0,<2.0.0",
        "alembic>=1.7.0",
        "python-dotenv>=0.19.0",
        "aiosqlite>=0.17.0",
        "asyncpg>=0.25.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "httpx>=0.24.0",
        ],
    },
    python_requires=">=3.8",
)
