from setuptools import setup, find_packages

setup(
    name="boards_backend",
    version="0.1.0",
    packages=find_packages(include=["boards", "boards.*"]),
    install_requires=[
        "fastapi",
        "uvicorn",
        "sqlalchemy>=2.0",
        "pydantic>=2.0",
        "pydantic-settings",
        "numpy",
        "python-dotenv",
        "tzdata",
    ],
    extras_require={
        "test": [
            "pytest",
            "httpx",
            "geopy",
        ],
    },
    python_requires=">=3.9",
)
