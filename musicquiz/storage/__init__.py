"""
Collaborator storage: the sample catalog and the score store.
"""

from musicquiz.storage.catalog import (
    InMemorySampleCatalog,
    SampleCatalog,
    YamlSampleCatalog,
    create_sample_catalog,
)
from musicquiz.storage.score_store import (
    InMemoryScoreStore,
    ScoreStore,
    YamlScoreStore,
    create_score_store,
)

__all__ = [
    "InMemorySampleCatalog",
    "SampleCatalog",
    "YamlSampleCatalog",
    "create_sample_catalog",
    "InMemoryScoreStore",
    "ScoreStore",
    "YamlScoreStore",
    "create_score_store",
]
