[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "flapbird"
version = "0.1.0"
description = "Animatronic bird helpers: speech-like flap patterns, job timing, shake counting and a DFPlayer Mini serial protocol driver"
requires-python = ">=3.10"
dependencies = []
keywords = ["dfplayer", "mp3", "serial", "animatronics", "protocol"]
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
    "Topic :: Multimedia :: Sound/Audio :: Players :: MP3",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["flapbird"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
strict = true
