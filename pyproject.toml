[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "oamworkload"
version = "0.1.0"
description = "Build Kubernetes manifests for OAM workload types (servers, workers, tasks) and apply them through a small API client."
requires-python = ">=3.10"
dependencies = []
keywords = ["kubernetes", "oam", "workload", "deployment", "statefulset", "job", "service"]
classifiers = [
    "Development Status :: 3 - Alpha",
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

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["oamworkload"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
