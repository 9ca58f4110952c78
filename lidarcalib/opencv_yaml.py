"""Reading and writing the YAML dialect used by OpenCV's FileStorage."""

from __future__ import annotations

import json
import math
import re
from collections.abc import Iterable, Mapping
from os import PathLike
from pathlib import Path
from typing import Any, Union

import numpy as np
import yaml

HEADER = "%YAML:1.0\n---\n"

_MATRIX_TAG = "tag:yaml.org,2002:opencv-matrix"
_KEY_PATTERN = re.compile(r"[A-Za-z_][A-Za-z0-9_\-]*")
_DT_PATTERN = re.compile(r"(\d*)([ucwsifd])")

_DT_TO_DTYPE = {
    "u": np.dtype(np.uint8),
    "c": np.dtype(np.int8),
    "w": np.dtype(np.uint16),
    "s": np.dtype(np.int16),
    "i": np.dtype(np.int32),
    "f": np.dtype(np.float32),
    "d": np.dtype(np.float64),
}
_DTYPE_TO_DT = {dtype: code for code, dtype in _DT_TO_DTYPE.items()}

PathType = Union[str, "PathLike[str]"]


class FileStorageError(Exception):
    """Raised when a FileStorage document cannot be read or written."""


def _format_float(value: float, digits: int) -> str:
    if math.isnan(value):
        return ".NaN"
    if math.isinf(value):
        return ".Inf" if value > 0 else "-.Inf"
    return f"{value:.{digits}e}"


def _format_number(value: Any, digits: int = 16) -> str:
    if isinstance(value, (bool, np.bool_)):
        return str(int(value))
    if isinstance(value, (int, np.integer)):
        return str(int(value))
    if isinstance(value, (float, np.floating)):
        return _format_float(float(value), digits)
    raise FileStorageError(f"cannot write value of type {type(value).__name__}")


def _format_matrix(value: np.ndarray) -> str:
    array = np.asarray(value)
    if array.ndim == 1:
        array = array.reshape(-1, 1)
    if array.ndim == 2:
        channels = 1
    elif array.ndim == 3:
        channels = array.shape[2]
    else:
        raise FileStorageError(f"cannot write a matrix with {array.ndim} dimensions")
    code = _DTYPE_TO_DT.get(array.dtype.newbyteorder("="))
    if code is None:
        raise FileStorageError(f"cannot write a matrix of type {array.dtype}")
    dt = f"{channels}{code}" if channels > 1 else code
    digits = 8 if code == "f" else 16
    data = ", ".join(_format_number(item, digits) for item in array.ravel())
    data_text = f"[ {data} ]" if data else "[]"
    return (
        "!!opencv-matrix\n"
        f"   rows: {array.shape[0]}\n"
        f"   cols: {array.shape[1]}\n"
        f"   dt: {dt}\n"
        f"   data: {data_text}"
    )


def _format_value(value: Any) -> str:
    if isinstance(value, np.ndarray):
        if value.ndim == 0:
            return _format_value(value.item())
        return _format_matrix(value)
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    return _format_number(value)


def dumps(items: Mapping[str, Any] | Iterable[tuple[str, Any]]) -> str:
    """Render key/value pairs as a FileStorage YAML document."""
    pairs = items.items() if isinstance(items, Mapping) else items
    lines = []
    for key, value in pairs:
        if not isinstance(key, str) or not _KEY_PATTERN.fullmatch(key):
            raise FileStorageError(f"invalid key {key!r}")
        lines.append(f"{key}: {_format_value(value)}")
    return HEADER + "".join(line + "\n" for line in lines)


def _to_number(value: Any) -> float:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        special = {".nan": math.nan, ".inf": math.inf, "+.inf": math.inf, "-.inf": -math.inf}
        if value.lower() in special:
            return special[value.lower()]
    raise FileStorageError(f"matrix element {value!r} is not a number")


def _matrix_from_fields(fields: Mapping[str, Any]) -> np.ndarray:
    try:
        rows = int(fields["rows"])
        cols = int(fields["cols"])
        dt = str(fields["dt"])
        data = fields["data"]
    except (KeyError, TypeError, ValueError) as exc:
        raise FileStorageError(f"incomplete matrix description: {exc}") from exc
    match = _DT_PATTERN.fullmatch(dt)
    if match is None:
        raise FileStorageError(f"unknown matrix type {dt!r}")
    channels = int(match.group(1) or 1)
    dtype = _DT_TO_DTYPE[match.group(2)]
    if data is None:
        data = []
    if not isinstance(data, list):
        raise FileStorageError("matrix data must be a sequence")
    values = [_to_number(item) for item in data]
    if len(values) != rows * cols * channels:
        raise FileStorageError(
            f"matrix holds {len(values)} elements, expected {rows * cols * channels}"
        )
    shape = (rows, cols, channels) if channels > 1 else (rows, cols)
    return np.array(values, dtype=np.float64).astype(dtype).reshape(shape)


class _Loader(yaml.SafeLoader):
    pass


def _construct_matrix(loader: _Loader, node: yaml.Node) -> np.ndarray:
    return _matrix_from_fields(loader.construct_mapping(node, deep=True))


_Loader.add_constructor(_MATRIX_TAG, _construct_matrix)


def loads(text: str) -> dict[str, Any]:
    """Parse a FileStorage YAML document into a dict, matrices as numpy arrays."""
    first, _, rest = text.partition("\n")
    if first.startswith("%YAML:"):
        text = rest
    try:
        document = yaml.load(text, Loader=_Loader)
    except yaml.YAMLError as exc:
        raise FileStorageError(f"malformed document: {exc}") from exc
    if document is None:
        return {}
    if not isinstance(document, dict):
        raise FileStorageError("top level of the document is not a mapping")
    return document


def dump_file(path: PathType, items: Mapping[str, Any] | Iterable[tuple[str, Any]]) -> None:
    """Write key/value pairs to a FileStorage YAML file."""
    text = dumps(items)
    try:
        Path(path).write_text(text, encoding="utf-8")
    except OSError as exc:
        raise FileStorageError(f"cannot write {path}: {exc}") from exc


def load_file(path: PathType) -> dict[str, Any]:
    """Read a FileStorage YAML file."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise FileStorageError(f"cannot open {path}: {exc}") from exc
    return loads(text)