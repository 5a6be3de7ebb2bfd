[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "peril"
version = "0.1.0"
description = "Game rules, message formats and RabbitMQ plumbing for Peril, a turn-based strategy game played over a message broker"
requires-python = ">=3.10"
keywords = ["game", "strategy", "rabbitmq", "amqp", "pubsub", "gob", "multiplayer"]
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
    "Topic :: Games/Entertainment :: Turn Based Strategy",
    "Topic :: System :: Distributed Computing",
]
dependencies = [
    "pika",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["peril"]

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
ignore_missing_imports = true
