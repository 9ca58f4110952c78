# lidarcalib

Tools for gathering, storing and tuning the data behind two extrinsic
calibrations of a 2D laser scanner:

* **lidar to camera**: a chessboard is seen by both the camera and the
  laser; several laser scans are accumulated into one point cloud and
  paired with a camera image.
* **lidar to odometry**: accumulated laser scans of an L-shaped target are
  paired with odometry poses.

## Installation

```
pip install .
```

For the tests:

```
pip install .[test]
pytest
```

## Parameter templates

Each calibration reads its settings from `parameters_input.yaml`. Write a
template with the default values:

```
lidarcalib-camera-template
lidarcalib-odom-template
```

Both write `parameters_input.yaml` in the current directory; pass
`-o PATH` / `--output PATH` to write elsewhere. From Python, use
`lidarcalib.input_templates.write_camera_template(path)` and
`write_odom_template(path)`; the default values themselves are returned as
dictionaries, in file order, by `camera_parameters()` and
`odom_parameters()`.

The files are in the YAML dialect of OpenCV's FileStorage (a `%YAML:1.0`
header, matrices tagged `!!opencv-matrix`). `lidarcalib.opencv_yaml`
reads and writes it: `dumps(items)` and `dump_file(path, items)` take a
mapping or a sequence of key/value pairs (strings, numbers and numpy
arrays), `loads(text)` and `load_file(path)` return a dict with matrices as
numpy arrays. Errors raise `FileStorageError`.

## Laser scans

`lidarcalib.scan.LaserScan` holds a scan's time stamp (whole seconds),
`angle_min`, `angle_increment` and `ranges`. `scan_to_points(scan,
max_range=30.0)` converts it to an `(N, 3)` float32 array of points in the
laser frame (z is 0), dropping ranges that are not finite or exceed
`max_range`. `LaserData` pairs a point cloud with a `can_be_used` flag.

## Capturing data

The collectors are fed messages by the caller; they do not subscribe to
anything themselves.

`lidarcalib.camera_collector.CameraDataCollector` takes `LaserScan` and
`Image` messages through `on_laser_scan` and `on_image`. Call
`start_capture()` and keep feeding messages until
`current_capture_succeed()` is true: the collector accumulates three scans
into one cloud, then appends a `LaserData` to `laser_data_set` and a
`CameraData` (a BGR image) to `camera_data_set`. Messages closer than three
seconds to the previous accepted one are ignored. To capture the reference
image of the laser plane instead, call `capture_laser_plane_image()` and
feed images until `laser_plane_image_capture_succeed()` is true; the image
lands in `laser_plane_image`. `image_to_bgr(image)` converts `bgr8`,
`rgb8`, `bgra8`, `rgba8` and `mono8` images and raises `ValueError` for
other encodings or short buffers.

`lidarcalib.odom_collector.OdomDataCollector` works the same way with
`on_laser_scan` and `on_odometry`, accumulating four scans per capture and
filling `laser_data_set` and `odom_data_set`. Each `OdomData` holds the
planar position `odom_pose_xy`, the upper-left 2x2 block of the rotation
(`odom_pose_yaw_rotation`) and `current_yaw`. The helpers
`quaternion_to_rotation(w, x, y, z)` and `yaw_from_rotation(rotation)` are
public too.

## Saving and loading data sets

`lidarcalib.datasets` stores captured data in a folder, conventionally
named by `timestamp_folder_name()` (`YYYYmmdd_HHMMSS`, local time):

* `save_camera_dataset(folder, CameraDataset)` writes `point_cloudN.pcd`,
  `imageN.jpg`, `laser_image.jpg` and `config.xml`;
  `load_camera_dataset(folder)` reads them back.
* `save_odom_dataset(folder, OdomDataset)` writes `laser_scanN.pcd`,
  `odom_poseN.yaml` and `config.yaml`; `load_odom_dataset(folder)` reads
  them back. Single poses can be handled with `save_odom_pose` and
  `load_odom_pose`.

Point clouds use the PCD format: `lidarcalib.pcd.save_pcd_ascii(path,
points)` writes ASCII files and `load_pcd(path)` reads the x, y and z
fields of ASCII or binary files. Failures raise `DatasetError` or
`PcdError`.

## Tuning line detection

`lidarcalib.adjust.CameraParameterAdjuster` and `OdomParameterAdjuster`
wrap a calibrator object that you supply. It must have a `laser_data_set`
sequence, `get_parameters_adjust()` returning the initial parameters, and
`update_parameters_detect(index, ...)`. On creation every frame is detected
with the initial parameters. The `set_continuity`, `set_length_tolerance`
(odometry only) and `set_fit_threshold` methods take slider positions
(0..200 with 100 as the initial value, or 0..100 with 50 for the fit
threshold), scale the parameter accordingly and return it; positions
outside the range raise `ValueError`. `apply()` re-runs detection on the
current frame and passes its data to the optional `on_update` callback.
The `navigator` attribute is a `FrameNavigator` whose `previous()` and
`next()` move between frames, raising `IndexError` past either end.

## What this package does not do

It has no graphical interface or point cloud viewer, does not connect to
a robot middleware to receive messages, and contains no calibration solver:
chessboard detection, line detection and the extrinsic estimation itself
are left to the calibrator object you provide.