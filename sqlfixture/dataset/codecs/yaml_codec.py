"""YAML dataset codec, same structure as the JSON codec."""

from pathlib import Path

import yaml

from sqlfixture.dataset.codecs.base import DatasetCodec
from sqlfixture.dataset.codecs.json_codec import dataset_from_mapping, dataset_to_mapping
from sqlfixture.dataset.models import Dataset
from sqlfixture.exceptions import DatasetError


class YamlCodec(DatasetCodec):
    """YAML codec."""

    key = "yaml"
    formats = ("yml", "yaml")

    def read(self, path: Path) -> Dataset:
        try:
            with open(path, 'r', encoding='utf-8') as file:
                content = yaml.safe_load(file)
        except yaml.YAMLError as e:
            raise DatasetError(f"Invalid YAML in dataset '{path}': {e}") from e
        return dataset_from_mapping(content, path)

    def write_dataset(self, dataset: Dataset, destination: Path, xml_element: bool = False) -> None:
        with open(destination, 'w', encoding='utf-8') as file:
            yaml.safe_dump(
                dataset_to_mapping(dataset),
                file,
                default_flow_style=False,
                sort_keys=False,
                allow_unicode=True,
            )
