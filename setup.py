from setuptools import setup, find_packages

setup(
    name="aerofresh",
    version="1.0.0",
    packages=find_packages(include=["aerofresh", "aerofresh.*"]),
    install_requires=[
        "fastapi>=0.110,<0.137",
        "starlette",
        "uvicorn[standard]",
        "pydantic>=2.5",
        "pydantic-settings>=2.7",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
            "httpx",
        ],
    },
    python_requires=">=3.10",
)
