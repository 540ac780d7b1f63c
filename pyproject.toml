[build-system]
requires = ["setuptools>=61"]
build-backend = "setuptools.build_meta"

[project]
name = "ftping"
version = "1.0.0"
description = "A ping utility that sends ICMP echo requests over raw sockets and reports round-trip statistics"
requires-python = ">=3.10"
dependencies = []
keywords = ["ping", "icmp", "network", "latency", "diagnostics"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking :: Monitoring",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
ftping = "ftping.cli:main"

[tool.setuptools.packages.find]
include = ["ftping*"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
