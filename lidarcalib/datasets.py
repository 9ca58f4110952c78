"""Saving and loading captured calibration data sets as folders of files."""

from __future__ import annotations

import xml.etree.ElementTree as ElementTree
from dataclasses import dataclass, field
from datetime import datetime
from os import PathLike
from pathlib import Path
from typing import Union

import numpy as np
from PIL import Image as PILImage

from lidarcalib.camera_collector import CameraData, LaserPlane
from lidarcalib.odom_collector import OdomData
from lidarcalib.opencv_yaml import FileStorageError, dump_file, load_file
from lidarcalib.pcd import PcdError, load_pcd, save_pcd_ascii
from lidarcalib.scan import LaserData

PathType = Union[str, "PathLike[str]"]

CAMERA_CONFIG = "config.xml"
ODOM_CONFIG = "config.yaml"
LASER_PLANE_IMAGE = "laser_image.jpg"
_JPEG_QUALITY = 95


class DatasetError(Exception):
    """Raised when a data set folder cannot be written or read."""


@dataclass
class CameraDataset:
    """Laser clouds paired with camera images, plus the laser plane image."""

    laser_data_set: list[LaserData] = field(default_factory=list)
    camera_data_set: list[CameraData] = field(default_factory=list)
    laser_plane: LaserPlane = field(default_factory=LaserPlane)


@dataclass
class OdomDataset:
    """Laser clouds paired with odometry poses."""

    laser_data_set: list[LaserData] = field(default_factory=list)
    odom_data_set: list[OdomData] = field(default_factory=list)


def timestamp_folder_name(now: datetime | None = None) -> str:
    """Folder name for a data set saved at ``now`` (local time by default)."""
    moment = now if now is not None else datetime.now()
    return moment.strftime("%Y%m%d_%H%M%S")


def _write_image(path: Path, bgr: np.ndarray) -> None:
    pixels = np.asarray(bgr, dtype=np.uint8)
    if pixels.ndim == 2:
        rgb = pixels
    elif pixels.ndim == 3 and pixels.shape[2] == 3:
        rgb = np.ascontiguousarray(pixels[..., ::-1])
    else:
        raise DatasetError(f"cannot write image of shape {pixels.shape} to {path}")
    if rgb.size == 0:
        raise DatasetError(f"cannot write an empty image to {path}")
    try:
        PILImage.fromarray(rgb).save(path, format="JPEG", quality=_JPEG_QUALITY)
    except OSError as exc:
        raise DatasetError(f"cannot write {path}: {exc}") from exc


def _read_image(path: Path) -> np.ndarray:
    try:
        with PILImage.open(path) as picture:
            rgb = np.asarray(picture.convert("RGB"), dtype=np.uint8)
    except OSError as exc:
        raise DatasetError(f"Can't Load {path}") from exc
    return np.ascontiguousarray(rgb[..., ::-1])


def _write_count_xml(path: Path, count: int) -> None:
    text = f'<?xml version="1.0"?>\n<opencv_storage>\n<data_num>{count}</data_num>\n</opencv_storage>\n'
    try:
        path.write_text(text, encoding="utf-8")
    except OSError as exc:
        raise DatasetError(f"cannot write {path}: {exc}") from exc


def _read_count_xml(path: Path) -> int:
    if not path.is_file():
        raise DatasetError(f"No {path.name} file found. Data Load failed!")
    try:
        root = ElementTree.parse(path).getroot()
    except (ElementTree.ParseError, OSError) as exc:
        raise DatasetError(f"cannot read {path}: {exc}") from exc
    node = root.find("data_num")
    if node is None or node.text is None:
        return 0
    try:
        return int(node.text.strip())
    except ValueError as exc:
        raise DatasetError(f"invalid data_num in {path}") from exc


def _read_count_yaml(path: Path) -> int:
    if not path.is_file():
        raise DatasetError(f"No {path.name} file found. Data Load failed!")
    try:
        document = load_file(path)
    except FileStorageError as exc:
        raise DatasetError(str(exc)) from exc
    value = document.get("data_num", 0)
    if isinstance(value, bool) or not isinstance(value, int):
        raise DatasetError(f"invalid data_num in {path}")
    return value


def _make_folder(folder: PathType) -> Path:
    path = Path(folder)
    try:
        path.mkdir(exist_ok=True)
    except OSError as exc:
        raise DatasetError(f"cannot create {path}: {exc}") from exc
    return path


def _save_cloud(path: Path, points: np.ndarray) -> None:
    try:
        save_pcd_ascii(path, points)
    except PcdError as exc:
        raise DatasetError(str(exc)) from exc


def _load_cloud(path: Path) -> np.ndarray:
    try:
        return load_pcd(path)
    except PcdError as exc:
        raise DatasetError(f"Can't Load {path}") from exc


def save_camera_dataset(folder: PathType, dataset: CameraDataset) -> Path:
    """Write clouds, images, the laser plane image and config.xml into ``folder``."""
    if len(dataset.laser_data_set) != len(dataset.camera_data_set):
        raise DatasetError("laser and camera data sets differ in length")
    plane = dataset.laser_plane.laser_plane_image
    if plane is None:
        raise DatasetError("no laser plane image to save")
    path = _make_folder(folder)
    _write_image(path / LASER_PLANE_IMAGE, plane)
    for index, (laser, camera) in enumerate(zip(dataset.laser_data_set, dataset.camera_data_set)):
        _save_cloud(path / f"point_cloud{index}.pcd", laser.point_cloud)
        _write_image(path / f"image{index}.jpg", camera.image)
    _write_count_xml(path / CAMERA_CONFIG, len(dataset.laser_data_set))
    return path


def load_camera_dataset(folder: PathType) -> CameraDataset:
    """Read a data set written by :func:`save_camera_dataset`."""
    path = Path(folder)
    count = _read_count_xml(path / CAMERA_CONFIG)
    plane_path = path / LASER_PLANE_IMAGE
    if not plane_path.is_file():
        raise DatasetError(f"Can't Load {plane_path} for initialization")
    dataset = CameraDataset(laser_plane=LaserPlane(laser_plane_image=_read_image(plane_path)))
    for index in range(count):
        image_path = path / f"image{index}.jpg"
        if not image_path.is_file():
            raise DatasetError(f"Can't Load {image_path}")
        image = _read_image(image_path)
        cloud = _load_cloud(path / f"point_cloud{index}.pcd")
        dataset.laser_data_set.append(LaserData(point_cloud=cloud, can_be_used=True))
        dataset.camera_data_set.append(CameraData(image=image))
    return dataset


def save_odom_pose(path: PathType, xy, rotation) -> None:
    """Write a planar pose as ``odom_pose_xy`` (2x1) and ``odom_pose_yaw_rotation`` (2x2)."""
    xy_matrix = np.asarray(xy, dtype=np.float64).reshape(2, 1)
    rotation_matrix = np.asarray(rotation, dtype=np.float64).reshape(2, 2)
    try:
        dump_file(path, {"odom_pose_xy": xy_matrix, "odom_pose_yaw_rotation": rotation_matrix})
    except FileStorageError as exc:
        raise DatasetError(str(exc)) from exc


def load_odom_pose(path: PathType) -> tuple[np.ndarray, np.ndarray]:
    """Read a pose written by :func:`save_odom_pose` as (xy, rotation)."""
    try:
        document = load_file(path)
    except FileStorageError as exc:
        raise DatasetError(f"can not open yaml {path}") from exc
    try:
        xy = np.asarray(document["odom_pose_xy"], dtype=np.float64).reshape(-1)
        rotation = np.asarray(document["odom_pose_yaw_rotation"], dtype=np.float64)
    except (KeyError, TypeError, ValueError) as exc:
        raise DatasetError(f"incomplete pose in {path}") from exc
    if xy.size != 2 or rotation.size != 4:
        raise DatasetError(f"pose in {path} has the wrong shape")
    return xy.copy(), rotation.reshape(2, 2).copy()


def save_odom_dataset(folder: PathType, dataset: OdomDataset) -> Path:
    """Write clouds, odometry poses and config.yaml into ``folder``."""
    if len(dataset.laser_data_set) != len(dataset.odom_data_set):
        raise DatasetError("laser and odometry data sets differ in length")
    path = _make_folder(folder)
    for index, (laser, odom) in enumerate(zip(dataset.laser_data_set, dataset.odom_data_set)):
        _save_cloud(path / f"laser_scan{index}.pcd", laser.point_cloud)
        save_odom_pose(path / f"odom_pose{index}.yaml", odom.odom_pose_xy, odom.odom_pose_yaw_rotation)
    try:
        dump_file(path / ODOM_CONFIG, {"data_num": len(dataset.laser_data_set)})
    except FileStorageError as exc:
        raise DatasetError(str(exc)) from exc
    return path


def load_odom_dataset(folder: PathType) -> OdomDataset:
    """Read a data set written by :func:`save_odom_dataset`."""
    path = Path(folder)
    count = _read_count_yaml(path / ODOM_CONFIG)
    dataset = OdomDataset()
    for index in range(count):
        pose_path = path / f"odom_pose{index}.yaml"
        try:
            xy, rotation = load_odom_pose(pose_path)
        except DatasetError as exc:
            raise DatasetError(f"Can't Load {pose_path}") from exc
        cloud = _load_cloud(path / f"laser_scan{index}.pcd")
        dataset.laser_data_set.append(LaserData(point_cloud=cloud))
        dataset.odom_data_set.append(OdomData(odom_pose_xy=xy, odom_pose_yaw_rotation=rotation))
    return dataset