[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "lidarcalib"
version = "1.0.1"
description = "Data capture, storage and parameter tuning for 2D lidar-camera and lidar-odometry extrinsic calibration"
requires-python = ">=3.10"
keywords = ["lidar", "calibration", "laser scan", "odometry", "camera", "extrinsic", "point cloud", "pcd"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering",
]
dependencies = [
    "numpy",
    "pillow",
    "pyyaml",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
lidarcalib-camera-template = "lidarcalib.input_templates:main_camera"
lidarcalib-odom-template = "lidarcalib.input_templates:main_odom"

[tool.hatch.build.targets.wheel]
packages = ["lidarcalib"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
