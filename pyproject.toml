[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "podwatch"
version = "0.1.0"
description = "Watch Kubernetes pods and deliver create, modify and delete events to callbacks"
requires-python = ">=3.10"
keywords = ["kubernetes", "pods", "watch", "events", "resync"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Clustering",
]
dependencies = []

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["podwatch"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
