[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "slurm_exporter"
version = "0.1.0"
description = "Prometheus exporter for Slurm workload manager metrics"
requires-python = ">=3.10"
dependencies = []
keywords = ["slurm", "prometheus", "exporter", "hpc", "monitoring", "metrics"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Environment :: No Input/Output (Daemon)",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
slurm-exporter = "slurm_exporter.server:main"

[tool.hatch.build.targets.wheel]
packages = ["slurm_exporter"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
