"""ScaleDefinition records and the YAML-backed scale catalog."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Final, Iterator

import yaml

from fretscale.pitch import SEMITONES_PER_OCTAVE

logger = logging.getLogger(__name__)

DEFAULT_SCALES_PATH: Final[Path] = Path(__file__).parent / "data" / "scales.yaml"

MIN_TEMPLATE_LENGTH: Final[int] = 4
MAX_TEMPLATE_LENGTH: Final[int] = 8


class ScaleCatalogError(Exception):
    """Raised when a scale catalog cannot be loaded or a scale id is unknown."""


@dataclass(frozen=True)
class ScaleDefinition:
    """
    A scale template: semitone offsets from the root plus display metadata.

    Attributes:
        scale_id:   Stable identifier, e.g. "major".
        name:       Human-readable name, e.g. "Major (Ionian)".
        intervals:  Strictly increasing semitone offsets starting at 0.
        mode_names: Optional display name for every rotation.
        tags:       Free-form labels ("pentatonic", "jazz", ...).
    """

    scale_id: str
    name: str
    intervals: tuple[int, ...]
    mode_names: tuple[str, ...] | None = None
    tags: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        intervals = self.intervals
        if not MIN_TEMPLATE_LENGTH <= len(intervals) <= MAX_TEMPLATE_LENGTH:
            raise ValueError(
                f"Scale '{self.scale_id}' must have {MIN_TEMPLATE_LENGTH}-"
                f"{MAX_TEMPLATE_LENGTH} intervals, got {len(intervals)}."
            )
        if intervals[0] != 0:
            raise ValueError(f"Scale '{self.scale_id}' intervals must start at 0.")
        if any(b <= a for a, b in zip(intervals, intervals[1:])):
            raise ValueError(f"Scale '{self.scale_id}' intervals must be strictly increasing.")
        if intervals[-1] >= SEMITONES_PER_OCTAVE:
            raise ValueError(f"Scale '{self.scale_id}' intervals must stay below 12.")
        if self.mode_names is not None and len(self.mode_names) != len(intervals):
            raise ValueError(
                f"Scale '{self.scale_id}' has {len(self.mode_names)} mode names "
                f"for {len(intervals)} intervals."
            )

    @property
    def size(self) -> int:
        """Number of notes in the template."""
        return len(self.intervals)

    def mode_name(self, rotation: int) -> str | None:
        """Display name of a rotation, or None when the scale names none."""
        if self.mode_names is None or not 0 <= rotation < len(self.mode_names):
            return None
        return self.mode_names[rotation]

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> "ScaleDefinition":
        """Build a definition from one entry of a catalog document."""
        mode_names = data.get("mode_names")
        return cls(
            scale_id=str(data["id"]),
            name=str(data.get("name", data["id"])),
            intervals=tuple(int(i) for i in data["intervals"]),
            mode_names=tuple(str(n) for n in mode_names) if mode_names is not None else None,
            tags=tuple(str(t) for t in data.get("tags") or ()),
        )


class ScaleCatalog:
    """
    An ordered, id-indexed collection of scale definitions.

    Catalogs read from disk are cached per resolved path, so repeated
    ``ScaleCatalog.load()`` calls parse each file once.
    """

    _loaded: dict[Path, "ScaleCatalog"] = {}

    def __init__(self, scales: list[ScaleDefinition]) -> None:
        self._scales: dict[str, ScaleDefinition] = {}
        for scale in scales:
            if scale.scale_id in self._scales:
                raise ScaleCatalogError(f"Duplicate scale id '{scale.scale_id}'.")
            self._scales[scale.scale_id] = scale

    def __len__(self) -> int:
        return len(self._scales)

    def __iter__(self) -> Iterator[ScaleDefinition]:
        return iter(self._scales.values())

    def __contains__(self, scale_id: object) -> bool:
        return scale_id in self._scales

    @property
    def ids(self) -> list[str]:
        return list(self._scales)

    def get(self, scale_id: str) -> ScaleDefinition:
        """
        Look up a scale by id.

        Raises:
            ScaleCatalogError: If no scale has that id.
        """
        try:
            return self._scales[scale_id]
        except KeyError:
            known = ", ".join(self._scales)
            raise ScaleCatalogError(f"Unknown scale '{scale_id}'. Known scales: {known}.") from None

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    @classmethod
    def from_yaml(cls, text: str, source: str = "<string>") -> "ScaleCatalog":
        """
        Parse a YAML catalog document.

        Raises:
            ScaleCatalogError: If the document is malformed or an entry is invalid.
        """
        try:
            document = yaml.safe_load(text) or {}
        except yaml.YAMLError as exc:
            raise ScaleCatalogError(f"Failed to parse scale catalog {source}: {exc}") from exc

        entries = document.get("scales") if isinstance(document, dict) else None
        if not isinstance(entries, list):
            raise ScaleCatalogError(f"Scale catalog {source} needs a top-level 'scales' list.")

        scales: list[ScaleDefinition] = []
        for index, entry in enumerate(entries):
            if not isinstance(entry, dict):
                raise ScaleCatalogError(f"Scale entry #{index} in {source} is not a mapping.")
            try:
                scales.append(ScaleDefinition.from_mapping(entry))
            except (KeyError, TypeError, ValueError) as exc:
                raise ScaleCatalogError(f"Invalid scale entry #{index} in {source}: {exc}") from exc
        return cls(scales)

    @classmethod
    def load(cls, path: str | Path | None = None) -> "ScaleCatalog":
        """
        Load (once) a catalog file; defaults to the bundled scale set.

        Raises:
            ScaleCatalogError: If the file is missing or invalid.
        """
        resolved = Path(path if path is not None else DEFAULT_SCALES_PATH).resolve()
        if resolved in cls._loaded:
            return cls._loaded[resolved]

        if not resolved.exists():
            raise ScaleCatalogError(f"Scale catalog not found: {resolved}")

        catalog = cls.from_yaml(resolved.read_text(encoding="utf-8"), source=str(resolved))
        cls._loaded[resolved] = catalog
        logger.debug("Loaded %d scales from %s", len(catalog), resolved)
        return catalog
