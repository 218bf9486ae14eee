[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "txcli"
version = "0.1.0"
description = "Client library for a {json:api} localization service: projects, resources, uploads, downloads and a worker pool"
requires-python = ">=3.10"
dependencies = []
keywords = ["jsonapi", "localization", "translation", "i18n", "client"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Localization",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["txcli"]

[tool.pytest.ini_options]
addopts = "-ra"
