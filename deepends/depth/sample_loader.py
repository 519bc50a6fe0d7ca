"""
Depth Sample Loader.

Reads photographs stored as JPEG Multi-Picture (MPO) containers, where
the primary frame is the photo and a secondary frame carries the
disparity map.

Load steps (any failure aborts the sample):
1. Decode the base image
2. Extract the auxiliary disparity frame
3. Read the EXIF orientation tag
4. Upgrade disparity to single-channel float32
5. Orient disparity to match the displayed photo
6. Min-max stretch disparity to [0, 1]
7. Build the oriented, float filter-ready image
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union
import numpy as np
from numpy.typing import NDArray
import cv2
from PIL import Image
from loguru import logger

from deepends.core.contracts import DepthSample
from deepends.core.errors import BaseImageUnreadable, NoDepthData, UnknownOrientation
from deepends.core.orientation import EXIF_ORIENTATION_TAG, Orientation


DEFAULT_EXTENSIONS = (".jpg", ".jpeg", ".mpo")

# MP Index IFD tag holding the per-frame MP entries
MP_ENTRY_TAG = 0xB002

SINGLE_CHANNEL_MODES = frozenset({"L", "I", "F", "I;16", "I;16L", "I;16B", "I;16N"})


class DepthSampleLoader:
    """
    Loader for photos with embedded disparity maps.

    Guarantees:
    - Either a complete DepthSample or a DecodeFailure subclass
    - Disparity and filter image share the photo's display orientation
    - Missing depth is reported, never replaced with a blank map
    """

    def __init__(self, extensions: Sequence[str] = DEFAULT_EXTENSIONS):
        """
        Initialize loader.

        Args:
            extensions: File suffixes considered samples by discover()
        """
        self.extensions = tuple(ext.lower() for ext in extensions)

    def discover(self, directory: Union[str, Path]) -> List[Path]:
        """List sample files in a directory, sorted by name."""
        directory = Path(directory)
        if not directory.is_dir():
            logger.warning(f"Sample directory not found: {directory}")
            return []

        sources = sorted(
            path for path in directory.iterdir()
            if path.is_file() and path.suffix.lower() in self.extensions
        )
        logger.info(f"Found {len(sources)} sample(s) in {directory}")
        return sources

    def load(self, source: Union[str, Path]) -> DepthSample:
        """
        Load a sample.

        Args:
            source: Path to an MPO/JPEG file

        Returns:
            Fully constructed DepthSample

        Raises:
            BaseImageUnreadable: photo cannot be decoded
            NoDepthData: no usable disparity frame
            UnknownOrientation: orientation tag missing or invalid
        """
        path = Path(source)

        try:
            container = Image.open(path)
        except (OSError, Image.DecompressionBombError) as e:
            raise BaseImageUnreadable(path, str(e)) from e

        with container:
            try:
                base = container.convert("RGB")
            except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as e:
                raise BaseImageUnreadable(path, str(e)) from e

            orientation_tag = self._read_orientation_tag(container)

        disparity_frame = self._extract_disparity_frame(path)

        orientation = Orientation.from_exif(orientation_tag)
        if orientation is None:
            raise UnknownOrientation(path, f"orientation tag {orientation_tag!r}")

        disparity = orientation.apply(to_float_disparity(disparity_frame))
        disparity = normalize_disparity(disparity)

        original = orientation.apply(np.asarray(base, dtype=np.uint8))
        filter_image = original.astype(np.float32) * (1.0 / 255.0)

        sample = DepthSample(
            source=path,
            original=original,
            depth_image=disparity_to_image(disparity),
            disparity=disparity,
            filter_image=filter_image,
            orientation=orientation,
        )

        h, w = original.shape[:2]
        dh, dw = disparity.shape
        logger.info(
            f"Loaded {path.name}: {w}x{h}, disparity {dw}x{dh}, "
            f"orientation {orientation.name}"
        )
        return sample

    def _read_orientation_tag(self, container: Image.Image) -> Optional[int]:
        """Orientation tag of the primary frame, None if unreadable."""
        try:
            return container.getexif().get(EXIF_ORIENTATION_TAG)
        except (OSError, ValueError, SyntaxError) as e:
            logger.debug(f"EXIF unreadable: {e}")
            return None

    def _extract_disparity_frame(self, path: Path) -> Image.Image:
        """
        Find the disparity frame among the container's secondary frames.

        An entry typed as disparity wins; otherwise the first secondary,
        non-thumbnail frame holding a single-channel image is used.

        Uses its own file handle: once the primary frame is decoded, Pillow
        reuses its decoder state for later frames of the same handle.
        """
        try:
            container = Image.open(path)
        except (OSError, Image.DecompressionBombError) as e:
            raise NoDepthData(path, f"auxiliary images unreadable: {e}") from e

        with container:
            n_frames = getattr(container, "n_frames", 1)
            if n_frames < 2:
                raise NoDepthData(path, "no auxiliary images")

            mpinfo = getattr(container, "mpinfo", None) or {}
            entries = mpinfo.get(MP_ENTRY_TAG, [])

            try:
                for index in range(1, n_frames):
                    mp_type = _mp_type(entries, index)
                    if "Thumbnail" in mp_type:
                        continue

                    container.seek(index)
                    declared = (container.mode, container.size)
                    if "Disparity" in mp_type or declared[0] in SINGLE_CHANNEL_MODES:
                        frame = container.copy()
                        _check_decoded(frame, declared, index, path)
                        logger.debug(
                            f"{path.name}: disparity in frame {index} "
                            f"({mp_type}, mode {frame.mode})"
                        )
                        return frame
            except (OSError, ValueError, SyntaxError, EOFError, Image.DecompressionBombError) as e:
                raise NoDepthData(path, f"malformed auxiliary image: {e}") from e

        raise NoDepthData(path, f"none of {n_frames - 1} auxiliary images is a disparity map")


def _check_decoded(frame: Image.Image, declared: tuple, index: int, path: Path):
    """Reject a frame whose decoded mode or size differs from its header."""
    if (frame.mode, frame.size) != declared:
        raise NoDepthData(
            path,
            f"frame {index} decoded as {frame.mode} {frame.size}, "
            f"header declares {declared[0]} {declared[1]}",
        )


def _mp_type(entries: list, index: int) -> str:
    """MP type label of a frame, 'Undefined' when the index has no entry."""
    if index >= len(entries):
        return "Undefined"
    attribute = entries[index].get("Attribute", {})
    return str(attribute.get("MPType", "Undefined"))


def to_float_disparity(frame: Image.Image) -> NDArray[np.float32]:
    """
    Convert a disparity frame to single-channel float32.

    8-bit and 16-bit integer frames are scaled to [0, 1]; float frames
    are kept as stored.
    """
    mode = frame.mode
    if mode == "F":
        return np.asarray(frame, dtype=np.float32)
    if mode.startswith("I;16"):
        return np.asarray(frame).astype(np.float32) * (1.0 / 65535.0)
    if mode == "I":
        return np.asarray(frame).astype(np.float32)
    if mode != "L":
        frame = frame.convert("L")
    return np.asarray(frame).astype(np.float32) * (1.0 / 255.0)


def normalize_disparity(disparity: NDArray[np.float32]) -> NDArray[np.float32]:
    """
    Min-max stretch a disparity map to [0, 1].

    Non-finite values map to 0. A constant map has no range to stretch
    and becomes all zeros.
    """
    disparity = np.asarray(disparity, dtype=np.float32)
    finite = np.isfinite(disparity)
    if not finite.any():
        return np.zeros(disparity.shape, dtype=np.float32)

    lo = float(disparity[finite].min())
    hi = float(disparity[finite].max())
    span = hi - lo
    if span < 1e-6:
        return np.zeros(disparity.shape, dtype=np.float32)

    normalized = (disparity.astype(np.float64) - lo) / span
    normalized[~finite] = 0.0
    return np.clip(normalized, 0.0, 1.0).astype(np.float32)


def disparity_to_image(disparity: NDArray[np.float32]) -> NDArray[np.uint8]:
    """Grayscale RGB visualization of a normalized disparity map."""
    gray = np.round(np.clip(disparity, 0.0, 1.0) * 255.0).astype(np.uint8)
    return cv2.cvtColor(gray, cv2.COLOR_GRAY2RGB)


def write_depth_sample(
    path: Union[str, Path],
    image: NDArray[np.uint8],
    disparity: NDArray,
    orientation: Optional[Orientation] = Orientation.UP,
    extra_frames: Iterable[NDArray[np.uint8]] = (),
    quality: int = 95,
) -> Path:
    """
    Pack a photo and its disparity map into an MPO container.

    Args:
        path: Output file
        image: H x W x 3 uint8 RGB photo, in stored (unrotated) layout
        disparity: H' x W' map; uint8 kept, floats in [0, 1] scaled to 8 bits
        orientation: EXIF orientation to record, None to omit the tag
        extra_frames: RGB frames stored before the disparity frame
        quality: JPEG quality of the primary frame

    Returns:
        The written path
    """
    path = Path(path)
    base = Image.fromarray(np.asarray(image, dtype=np.uint8))

    disparity = np.asarray(disparity)
    if disparity.dtype != np.uint8:
        disparity = np.clip(np.round(disparity * 255.0), 0, 255).astype(np.uint8)

    frames = [Image.fromarray(np.asarray(frame, dtype=np.uint8)) for frame in extra_frames]
    frames.append(Image.fromarray(disparity))

    save_kwargs = {"format": "MPO", "save_all": True, "append_images": frames, "quality": quality}
    if orientation is not None:
        exif = Image.Exif()
        exif[EXIF_ORIENTATION_TAG] = orientation.exif_value
        save_kwargs["exif"] = exif

    base.save(path, **save_kwargs)
    logger.debug(f"Wrote depth sample {path}")
    return path
