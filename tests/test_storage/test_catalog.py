"""Tests for the sample catalogs."""

from pathlib import Path

import pytest
import yaml

from musicquiz.core.models import Sample
from musicquiz.storage import catalog as catalog_module
from musicquiz.storage.catalog import (
    InMemorySampleCatalog,
    SampleCatalog,
    YamlSampleCatalog,
    create_sample_catalog,
    find_default_catalog,
)
from musicquiz.utils.errors import CatalogError, SampleNotFoundError


def write_catalog(path: Path, data) -> Path:
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f)
    return path


class TestInMemorySampleCatalog:
    def test_lookup(self, catalog):
        assert catalog.get_all_sample_ids() == {1, 2, 3, 4, 5}
        assert catalog.get_sample_by_id(3).composer_name == "Composer 3"
        assert catalog.get_sample_by_id(42) is None
        assert len(catalog) == 5

    def test_satisfies_protocol(self, catalog):
        assert isinstance(catalog, SampleCatalog)

    def test_composer_art(self, catalog):
        assert catalog.get_composer_art_by_sample_id(2) == "art/2.png"

    def test_composer_art_falls_back_to_default(self):
        catalog = InMemorySampleCatalog(
            [Sample(sample_id=1, composer_name="Satie", audio_uri="satie.mp3")],
            default_artwork="art/question_mark.png",
        )
        assert catalog.get_composer_art_by_sample_id(1) == "art/question_mark.png"

    def test_composer_art_unknown_id(self, catalog):
        with pytest.raises(SampleNotFoundError) as exc_info:
            catalog.get_composer_art_by_sample_id(99)
        assert exc_info.value.sample_id == 99

    def test_duplicate_ids_rejected(self):
        samples = [
            Sample(sample_id=1, composer_name="A", audio_uri="a.mp3"),
            Sample(sample_id=1, composer_name="B", audio_uri="b.mp3"),
        ]
        with pytest.raises(CatalogError):
            InMemorySampleCatalog(samples)

    def test_list_samples_sorted(self):
        catalog = InMemorySampleCatalog(
            [
                Sample(sample_id=7, composer_name="A", audio_uri="a.mp3"),
                Sample(sample_id=2, composer_name="B", audio_uri="b.mp3"),
            ]
        )
        assert [s.sample_id for s in catalog.list_samples()] == [2, 7]


class TestYamlSampleCatalog:
    def test_loads_and_resolves_relative_paths(self, tmp_path):
        path = write_catalog(
            tmp_path / "samples.yaml",
            {
                "default_artwork": "art/unknown.png",
                "samples": [
                    {
                        "id": 0,
                        "composer": "Bach",
                        "title": "Toccata",
                        "uri": "audio/bach.mp3",
                        "artwork": "art/bach.png",
                    },
                    {
                        "id": 1,
                        "composer": "Chopin",
                        "uri": "https://example.org/chopin.mp3",
                    },
                ],
            },
        )
        catalog = YamlSampleCatalog(path)

        bach = catalog.get_sample_by_id(0)
        assert bach.title == "Toccata"
        assert bach.audio_uri == str(tmp_path / "audio" / "bach.mp3")
        assert catalog.get_composer_art_by_sample_id(0) == str(tmp_path / "art" / "bach.png")
        assert catalog.get_sample_by_id(1).audio_uri == "https://example.org/chopin.mp3"
        assert catalog.get_composer_art_by_sample_id(1) == str(tmp_path / "art" / "unknown.png")

    def test_missing_file(self, tmp_path):
        with pytest.raises(CatalogError) as exc_info:
            YamlSampleCatalog(tmp_path / "nope.yaml")
        assert exc_info.value.path == str(tmp_path / "nope.yaml")

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("samples: [unclosed", encoding="utf-8")
        with pytest.raises(CatalogError):
            YamlSampleCatalog(path)

    def test_missing_samples_list(self, tmp_path):
        path = write_catalog(tmp_path / "empty.yaml", {"default_artwork": "x.png"})
        with pytest.raises(CatalogError):
            YamlSampleCatalog(path)

    @pytest.mark.parametrize(
        "record",
        [
            {"composer": "No id", "uri": "a.mp3"},
            {"id": 3, "composer": "No uri"},
            {"id": "three", "composer": "Bad id", "uri": "a.mp3"},
        ],
    )
    def test_invalid_record(self, tmp_path, record):
        path = write_catalog(tmp_path / "bad.yaml", {"samples": [record]})
        with pytest.raises(CatalogError):
            YamlSampleCatalog(path)


class TestCreateSampleCatalog:
    def test_from_config_path(self, tmp_path):
        path = write_catalog(
            tmp_path / "samples.yaml",
            {"samples": [{"id": 5, "composer": "Liszt", "uri": "liszt.mp3"}]},
        )
        catalog = create_sample_catalog({"path": str(path)})
        assert catalog.get_all_sample_ids() == {5}

    def test_bundled_catalog(self):
        catalog = create_sample_catalog()
        assert len(catalog.get_all_sample_ids()) >= 4


class TestDefaultCatalogLookup:
    def test_working_directory_catalog_preferred(self, tmp_path, monkeypatch):
        (tmp_path / "config").mkdir()
        write_catalog(
            tmp_path / "config" / "samples.yaml",
            {"samples": [{"id": 11, "composer": "Ravel", "uri": "ravel.mp3"}]},
        )
        monkeypatch.chdir(tmp_path)
        assert find_default_catalog() == Path("config/samples.yaml")
        assert create_sample_catalog({"path": None}).get_all_sample_ids() == {11}

    def test_no_catalog_names_the_config_key(self, monkeypatch):
        monkeypatch.setattr(catalog_module, "find_default_catalog", lambda: None)
        with pytest.raises(CatalogError) as exc_info:
            create_sample_catalog({})
        assert "catalog.path" in str(exc_info.value)
