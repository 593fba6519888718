[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kamacache"
version = "0.1.0"
description = "Named cache groups with LRU/LFU stores, consistent hashing, request coalescing and retries."
requires-python = ">=3.11"
dependencies = []
keywords = [
    "cache",
    "lru",
    "lfu",
    "consistent-hashing",
    "singleflight",
    "retry",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Distributed Computing",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["kamacache"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
