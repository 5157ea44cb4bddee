[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "hlflash"
version = "0.1.0"
description = "Firmware encryption, patching and flashing helpers for Hitachi-LG Xbox 360 DVD drives"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "firmware",
    "dvd-drive",
    "hitachi-lg",
    "flash",
    "rc4",
    "sha1",
    "mn103",
]
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
    "Topic :: System :: Hardware",
    "Topic :: Utilities",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
firmcrypt = "hlflash.firmcrypt:main"
firmpatch = "hlflash.firmpatch:main"

[tool.hatch.build.targets.wheel]
packages = ["hlflash"]

[tool.pytest.ini_options]
addopts = "-ra"
