[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "miniblog"
version = "0.1.0"
description = "Building blocks for a small blog API server: request context, structured logging, JWT tokens, password hashing, access control, resource IDs and middleware."
requires-python = ">=3.10"
dependencies = [
    "bcrypt",
    "pyjwt",
]
keywords = [
    "blog",
    "api",
    "jwt",
    "bcrypt",
    "middleware",
    "access-control",
    "logging",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: Dynamic Content :: News/Diary",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["miniblog"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]
