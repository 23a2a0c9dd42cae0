"""
Sample catalog for the music quiz.

Read-only lookup of sample metadata by ID. The quiz only depends on the
SampleCatalog protocol; two implementations are provided, an in-memory
one and one backed by a YAML catalog file.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Protocol, Set, runtime_checkable

import yaml

from musicquiz.core.models import Sample
from musicquiz.utils.errors import CatalogError, SampleNotFoundError


@runtime_checkable
class SampleCatalog(Protocol):
    """
    Protocol for sample metadata lookup.

    Uses structural subtyping - any object with these methods can serve
    as the catalog of a quiz session.
    """

    def get_all_sample_ids(self) -> Set[int]:
        """Return the IDs of every sample in the catalog."""
        ...

    def get_sample_by_id(self, sample_id: int) -> Optional[Sample]:
        """Return the sample with the given ID, or None if unknown."""
        ...

    def get_composer_art_by_sample_id(self, sample_id: int) -> Any:
        """Return the artwork handle revealed with the given sample."""
        ...


class InMemorySampleCatalog:
    """Catalog over a fixed collection of Sample objects."""

    def __init__(self, samples: Iterable[Sample], default_artwork: Any = None):
        """
        Initialize the catalog.

        Args:
            samples: Catalog entries; IDs must be unique
            default_artwork: Returned for samples without artwork

        Raises:
            CatalogError: If two samples share an ID
        """
        self._samples: Dict[int, Sample] = {}
        for sample in samples:
            if sample.sample_id in self._samples:
                raise CatalogError(f"Duplicate sample id: {sample.sample_id}")
            self._samples[sample.sample_id] = sample
        self.default_artwork = default_artwork
        self.logger = logging.getLogger("catalog")

    def __len__(self) -> int:
        return len(self._samples)

    def get_all_sample_ids(self) -> Set[int]:
        return set(self._samples)

    def get_sample_by_id(self, sample_id: int) -> Optional[Sample]:
        return self._samples.get(sample_id)

    def get_composer_art_by_sample_id(self, sample_id: int) -> Any:
        """
        Return the composer artwork for a sample.

        Raises:
            SampleNotFoundError: If the ID is not in the catalog
        """
        sample = self._samples.get(sample_id)
        if sample is None:
            raise SampleNotFoundError(sample_id)
        if sample.artwork_ref is None:
            return self.default_artwork
        return sample.artwork_ref

    def list_samples(self) -> List[Sample]:
        """All samples ordered by ID."""
        return [self._samples[key] for key in sorted(self._samples)]


class YamlSampleCatalog(InMemorySampleCatalog):
    """
    Catalog loaded from a YAML file.

    File layout:
        default_artwork: art/question_mark.png
        samples:
          - id: 0
            composer: Johann Sebastian Bach
            title: Toccata and Fugue in D minor
            uri: samples/bach_toccata.mp3
            artwork: art/bach.png

    Relative ``uri`` and ``artwork`` values are resolved against the
    directory holding the catalog file.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        records, default_artwork = self._read(self.path)
        base = self.path.parent

        samples = []
        for record in records:
            try:
                record = dict(record)
                record["uri"] = _resolve(base, record["uri"])
                if record.get("artwork"):
                    record["artwork"] = _resolve(base, record["artwork"])
                samples.append(Sample.from_dict(record))
            except (KeyError, TypeError, ValueError) as e:
                raise CatalogError(
                    f"Invalid sample record {record!r}: {e}", path=str(self.path)
                )

        super().__init__(
            samples,
            default_artwork=_resolve(base, default_artwork) if default_artwork else None,
        )
        self.logger.info(f"Loaded {len(samples)} samples from {self.path}")

    @staticmethod
    def _read(path: Path) -> tuple:
        if not path.exists():
            raise CatalogError(f"Catalog file not found: {path}", path=str(path))
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise CatalogError(f"Failed to parse catalog: {e}", path=str(path))

        records = data.get("samples") if isinstance(data, dict) else None
        if not isinstance(records, list):
            raise CatalogError("Catalog must contain a 'samples' list", path=str(path))
        return records, data.get("default_artwork")


def _resolve(base: Path, value: str) -> str:
    # URIs with a scheme are left alone
    if "://" in value or Path(value).is_absolute():
        return value
    return str(base / value)


def find_default_catalog() -> Optional[Path]:
    """
    Locate a catalog when ``catalog.path`` is not configured.

    Tries "config/samples.yaml" and "samples.yaml" in the working
    directory, then the catalog next to a source checkout. An installed
    package ships no catalog, so there ``catalog.path`` must be set.
    """
    default_paths = [
        Path("config/samples.yaml"),
        Path("samples.yaml"),
        Path(__file__).parent.parent.parent / "config" / "samples.yaml",
    ]
    for path in default_paths:
        if path.exists():
            return path
    return None


def create_sample_catalog(config: Optional[Dict[str, Any]] = None) -> SampleCatalog:
    """
    Factory function to create the catalog from the 'catalog' section.

    Without ``path`` the catalog is searched with find_default_catalog().

    Raises:
        CatalogError: If no catalog is configured or found, or the file is
            malformed
    """
    if config is None:
        config = {}

    path = config.get("path")
    if not path:
        path = find_default_catalog()
        if path is None:
            raise CatalogError(
                "No sample catalog found; set 'catalog.path' in the configuration"
            )
    return YamlSampleCatalog(Path(path))
