"""Datasets: model, codecs, resource resolution, modifiers and composition."""

from sqlfixture.dataset.models import CompositeDataset, Dataset, Table
from sqlfixture.dataset.modifiers import (
    DatasetModifier,
    ModifierChain,
    NoOpModifier,
    ReplacementModifier,
    null_token_modifier,
)
from sqlfixture.dataset.resources import ResourceLocator
from sqlfixture.dataset.composer import DatasetComposer

__all__ = [
    "Table",
    "Dataset",
    "CompositeDataset",
    "DatasetModifier",
    "ModifierChain",
    "NoOpModifier",
    "ReplacementModifier",
    "null_token_modifier",
    "ResourceLocator",
    "DatasetComposer",
]
