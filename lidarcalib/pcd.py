"""Point cloud files in the PCD format, XYZ points only."""

from __future__ import annotations

from os import PathLike
from pathlib import Path
from typing import Union

import numpy as np

PathType = Union[str, "PathLike[str]"]

_TYPE_CODES = {"F": ("f", (4, 8)), "I": ("i", (1, 2, 4, 8)), "U": ("u", (1, 2, 4, 8))}


class PcdError(Exception):
    """Raised when a PCD file cannot be read or written."""


def _as_cloud(points) -> np.ndarray:
    cloud = np.asarray(points, dtype=np.float32)
    if cloud.size == 0:
        return cloud.reshape(0, 3)
    if cloud.ndim != 2 or cloud.shape[1] != 3:
        raise ValueError(f"points must have shape (N, 3), got {cloud.shape}")
    return cloud


def save_pcd_ascii(path: PathType, points) -> None:
    """Write an (N, 3) array of points as an ASCII PCD file."""
    cloud = _as_cloud(points)
    count = len(cloud)
    header = [
        "# .PCD v0.7 - Point Cloud Data file format",
        "VERSION 0.7",
        "FIELDS x y z",
        "SIZE 4 4 4",
        "TYPE F F F",
        "COUNT 1 1 1",
        f"WIDTH {count}",
        "HEIGHT 1",
        "VIEWPOINT 0 0 0 1 0 0 0",
        f"POINTS {count}",
        "DATA ascii",
    ]
    body = [" ".join(f"{float(value):.9g}" for value in point) for point in cloud]
    try:
        Path(path).write_text("\n".join(header + body) + "\n", encoding="ascii")
    except OSError as exc:
        raise PcdError(f"cannot write {path}: {exc}") from exc


def _ints(values: list[str], name: str) -> list[int]:
    try:
        return [int(value) for value in values]
    except ValueError as exc:
        raise PcdError(f"invalid {name} entry: {values}") from exc


def _read_header(raw: bytes) -> tuple[dict[str, list[str]], int]:
    header: dict[str, list[str]] = {}
    offset = 0
    while offset < len(raw):
        end = raw.find(b"\n", offset)
        stop = len(raw) if end < 0 else end
        line = raw[offset:stop].decode("ascii", errors="replace").strip()
        offset = stop + 1
        if not line or line.startswith("#"):
            continue
        key, *values = line.split()
        header[key.upper()] = values
        if key.upper() == "DATA":
            return header, min(offset, len(raw))
    raise PcdError("header ends before the DATA line")


def _numpy_type(code: str, size: int) -> str:
    try:
        kind, sizes = _TYPE_CODES[code.upper()]
    except KeyError as exc:
        raise PcdError(f"unknown field type {code!r}") from exc
    if size not in sizes:
        raise PcdError(f"unsupported size {size} for field type {code!r}")
    return f"<{kind}{size}"


def load_pcd(path: PathType) -> np.ndarray:
    """Read the x, y and z fields of a PCD file as an (N, 3) float32 array."""
    try:
        raw = Path(path).read_bytes()
    except OSError as exc:
        raise PcdError(f"cannot open {path}: {exc}") from exc
    header, offset = _read_header(raw)

    fields = header.get("FIELDS")
    if not fields:
        raise PcdError("missing FIELDS line")
    sizes = _ints(header.get("SIZE", ["4"] * len(fields)), "SIZE")
    types = header.get("TYPE", ["F"] * len(fields))
    counts = _ints(header.get("COUNT", ["1"] * len(fields)), "COUNT")
    if not len(fields) == len(sizes) == len(types) == len(counts):
        raise PcdError("FIELDS, SIZE, TYPE and COUNT disagree in length")
    missing = [axis for axis in "xyz" if axis not in fields]
    if missing:
        raise PcdError(f"missing fields: {' '.join(missing)}")

    if "POINTS" in header:
        (n_points,) = _ints(header["POINTS"][:1], "POINTS") or [0]
    else:
        width = _ints(header.get("WIDTH", ["0"])[:1], "WIDTH")[0]
        height = _ints(header.get("HEIGHT", ["1"])[:1], "HEIGHT")[0]
        n_points = width * height
    if n_points < 0:
        raise PcdError("negative point count")

    kind = header["DATA"][0].lower() if header["DATA"] else ""
    if kind == "ascii":
        return _load_ascii(raw[offset:], fields, counts, n_points)
    if kind == "binary":
        return _load_binary(raw, offset, fields, sizes, types, counts, n_points)
    raise PcdError(f"unsupported DATA kind {kind!r}")


def _load_ascii(body: bytes, fields, counts, n_points: int) -> np.ndarray:
    rows = [line.split() for line in body.decode("ascii", errors="replace").splitlines() if line.strip()]
    if len(rows) < n_points:
        raise PcdError(f"file holds {len(rows)} points, header declares {n_points}")
    starts = np.cumsum([0, *counts[:-1]])
    columns = [int(starts[fields.index(axis)]) for axis in "xyz"]
    try:
        values = [[float(row[column]) for column in columns] for row in rows[:n_points]]
    except (ValueError, IndexError) as exc:
        raise PcdError(f"malformed point data: {exc}") from exc
    return np.array(values, dtype=np.float32).reshape(-1, 3)


def _load_binary(raw: bytes, offset: int, fields, sizes, types, counts, n_points: int) -> np.ndarray:
    layout = []
    for index, (code, size, count) in enumerate(zip(types, sizes, counts)):
        entry = (f"f{index}", _numpy_type(code, size))
        layout.append(entry + ((count,),) if count > 1 else entry)
    dtype = np.dtype(layout)
    if len(raw) - offset < dtype.itemsize * n_points:
        raise PcdError("binary data is shorter than the header declares")
    records = np.frombuffer(raw, dtype=dtype, count=n_points, offset=offset)
    columns = [
        np.asarray(records[f"f{fields.index(axis)}"]).reshape(n_points, -1)[:, 0] for axis in "xyz"
    ]
    return np.stack(columns, axis=1).astype(np.float32).reshape(-1, 3)