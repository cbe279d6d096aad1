[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "icli"
version = "0.1.0"
description = "Personal command-line toolbox: layered configuration, shell script project builds, command scaffolding, IP prompt helpers and VPN profile generation."
requires-python = ">=3.11"
keywords = ["cli", "toolbox", "argc", "shell", "clash", "quantumultx", "scaffolding"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Utilities",
]
dependencies = [
    "jinja2",
    "pyyaml",
    "requests",
    "psutil",
    "tomli-w",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[project.scripts]
icli = "icli.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["icli"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
ignore_missing_imports = true
