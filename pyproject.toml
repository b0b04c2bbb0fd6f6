[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tablestream"
version = "0.1.0"
description = "Building blocks for stateful stream processing: group graphs, codecs, headers, emitters and callback contexts"
requires-python = ">=3.10"
dependencies = []
keywords = ["stream-processing", "codec", "emitter", "consumer-group", "partitioning", "group-table"]
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
    "Topic :: Software Development :: Libraries :: Application Frameworks",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["tablestream"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
