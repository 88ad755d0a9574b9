[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kernsim"
version = "0.1.0"
description = "A model of a small x86 teaching kernel: page tables, descriptors, ELF headers, a user heap, locks, system-call dispatch, a shell parser and two small tools"
requires-python = ">=3.10"
dependencies = []
keywords = ["kernel", "operating-system", "paging", "x86", "simulation", "education", "shell"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Operating System",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
kernsim-wc = "kernsim.wc:main"
kernsim-rm = "kernsim.rm:main"

[tool.hatch.build.targets.wheel]
packages = ["kernsim"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
