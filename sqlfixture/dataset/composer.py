"""Loads datasets through a codec and composes them."""

import logging
from pathlib import Path
from typing import List, Optional, Sequence

from sqlfixture.dataset.codecs.base import DatasetCodec
from sqlfixture.dataset.models import CompositeDataset, Dataset
from sqlfixture.dataset.modifiers import DatasetModifier
from sqlfixture.exceptions import ResourceNotFoundError

logger = logging.getLogger(__name__)


class DatasetComposer:
    """Turns declaration locations into datasets."""

    def load(
        self,
        codec: DatasetCodec,
        namespace_dir: Optional[Path],
        location: str,
        dataset_id: Optional[str] = None,
        modifier: Optional[DatasetModifier] = None,
    ) -> Optional[Dataset]:
        """Load one dataset.

        Returns:
            The dataset, or None for a blank location.

        Raises:
            ResourceNotFoundError: If a non-blank location cannot be resolved.
        """
        if not location or not location.strip():
            return None

        dataset = codec.load(namespace_dir, location, dataset_id)
        if dataset is None:
            raise ResourceNotFoundError(location)

        if modifier is not None:
            dataset = modifier.modify(dataset)
        return dataset

    def compose(
        self,
        locations: Sequence[str],
        codec: DatasetCodec,
        connection,
        namespace_dir: Optional[Path],
        dataset_id: Optional[str] = None,
        modifier: Optional[DatasetModifier] = None,
    ) -> Dataset:
        """Load every location and merge them into one dataset.

        Without locations the full current content of ``connection`` is used.

        Raises:
            ResourceNotFoundError: If a location cannot be resolved.
            DuplicateTableError: If two datasets define the same table.
        """
        if not locations:
            logger.debug(f"No dataset locations, using full content of '{connection.name}'")
            return connection.create_dataset()

        datasets: List[Dataset] = []
        for location in locations:
            dataset = self.load(codec, namespace_dir, location, dataset_id, modifier)
            if dataset is not None:
                datasets.append(dataset)
        return CompositeDataset(datasets)
