[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ordtool"
version = "0.1.0"
description = "Number individual satoshis by ordinal and track them through the Bitcoin blockchain"
requires-python = ">=3.10"
dependencies = [
    "lmdb",
    "cbor2",
]
keywords = ["bitcoin", "ordinals", "satoshi", "blockchain", "index", "nft"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Financial",
    "Topic :: Utilities",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
ordtool = "ordtool.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["ordtool"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]
