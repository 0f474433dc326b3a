[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "aacenc"
version = "0.1.0"
description = "Building blocks of an AAC encoder: bit writer, channel layout, codeword reordering, FFT, filter bank and block switching"
requires-python = ">=3.10"
dependencies = []
keywords = ["aac", "audio", "encoder", "mdct", "fft", "adts", "bitstream", "hcr"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Multimedia :: Sound/Audio :: Conversion",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["aacenc"]

[tool.pytest.ini_options]
addopts = "-ra"
