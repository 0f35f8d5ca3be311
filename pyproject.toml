[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "deepseek-mcp"
version = "1.0.0"
description = "A Model Context Protocol server over stdio that forwards coding questions, model listings, balance checks and token estimates to the DeepSeek API."
requires-python = ">=3.10"
keywords = ["mcp", "model-context-protocol", "deepseek", "llm", "code-review", "stdio", "json-rpc"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Artificial Intelligence",
    "Topic :: Software Development :: Quality Assurance",
]
dependencies = [
    "httpx>=0.24",
    "python-dotenv>=1.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
    "respx>=0.20",
]

[project.scripts]
deepseek-mcp = "deepseek_mcp.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["deepseek_mcp"]

[tool.hatch.build.targets.sdist]
include = ["deepseek_mcp", "tests", "README.md", "pyproject.toml"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
