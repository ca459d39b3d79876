[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "dguikit"
version = "5.6.11"
description = "Theme, palette, colour, file-drag and single-instance helpers for desktop applications"
requires-python = ">=3.10"
dependencies = [
    "filelock",
]
keywords = ["palette", "theme", "color", "drag-and-drop", "single-instance", "translations"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries :: Application Frameworks",
    "Topic :: Desktop Environment",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["dguikit"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
