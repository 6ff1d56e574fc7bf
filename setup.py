import os
import re
import setuptools
from typing import List


def get_content(file: str) -> str:
    with open(file, "r", encoding="utf-8") as f:
        return f.read()


def get_version(package: str) -> str:
    path = os.path.join(package, "__init__.py")
    return re.search("__version__ = ['\"]([^'\"]+)['\"]", get_content(path)).group(1)


def get_packages(package: str) -> List[str]:
    return [
        directory
        for directory, subdirectories, filenames in os.walk(package)
        if os.path.exists(os.path.join(directory, "__init__.py"))
    ]


setuptools.setup(
    name="competition_core",
    version=get_version("competition_core"),
    packages=get_packages("competition_core"),
    package_data={"competition_core": ["persistence/alembic/*.py", "persistence/alembic/*.mako", "persistence/alembic/versions/*.py"]},
    description="Competition core API with delegated management and WCIF event synchronization",
    long_description=get_content("README.md"),
    long_description_content_type="text/markdown",
    license="GLPv3",
    install_requires=[
        "alembic>=1.12,<2.0",
        "argon2-cffi>=23.1.0",
        "fastapi>=0.110.0,<1.0",
        "jsonschema>=4.18,<5.0",
        "pydantic>=2.5,<3.0",
        "pydantic-settings>=2.1,<3.0",
        "python-jose>=3.3.0,<4.0",
        "python-multipart>=0.0.9",
        "SQLAlchemy>=2.0,<3.0",
        "uvicorn>=0.25.0,<1.0"
    ],
    extras_require={
        "test": [
            "httpx>=0.25",
            "pytest>=7.0"
        ]
    },
    project_urls={},
    python_requires=">=3.8",
    classifiers=[
        "Operating System :: OS Independent",
        "License :: OSI Approved :: GNU General Public License v3 (GPLv3)",
        "Topic :: Internet :: WWW/HTTP",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Development Status :: 3 - Alpha"
    ]
)
