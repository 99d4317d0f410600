[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mailprobe"
version = "0.1.0"
description = "Bulk e-mail address verification by regex screening, MX lookup and SMTP RCPT probing"
requires-python = ">=3.10"
keywords = ["email", "verification", "mx", "smtp", "dns", "doh"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Email",
]
dependencies = [
    "pyyaml",
    "dnspython",
    "requests",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[project.scripts]
mailprobe = "mailprobe.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["mailprobe"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
