[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "switchdl"
version = "0.1.0"
description = "Command-line tool for downloading videos and channels from SwitchTube"
requires-python = ">=3.10"
keywords = ["switchtube", "video", "download", "cli"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Video",
]
dependencies = [
    "requests>=2.28",
    "tqdm>=4.64",
    "pyyaml>=6.0",
    "platformdirs>=3.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
    "responses>=0.23",
]

[project.scripts]
switchdl = "switchdl.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["switchdl"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
ignore_missing_imports = true
