[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "spore"
version = "0.1.0"
description = "Lexer, parser, printer and macro expander for the Spore s-expression language"
requires-python = ">=3.10"
dependencies = []
keywords = ["lisp", "s-expression", "parser", "lexer", "macros", "syntax-tree"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Compilers",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["spore"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
