from setuptools import setup, find_packages

setup(
    name="eventmap-routing",
    version="0.1.0",
    description="Map-based event browsing and multi-stop route planning for a regional community calendar.",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["main_cli"],
    install_requires=[
        "requests",
        "pytz",
        "python-dotenv",
        "fastapi",
        "pydantic>=2",
        "uvicorn",
    ],
    extras_require={
        "test": [
            "pytest",
            "httpx",
        ],
    },
    entry_points={
        "console_scripts": [
            "eventmap-routing=main_cli:main",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires='>=3.8',
)
