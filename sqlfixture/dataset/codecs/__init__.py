"""Dataset codecs and the registry that maps codec keys and file formats to them."""

import logging
from typing import Any, Callable, Dict, List

from sqlfixture.dataset.codecs.base import (
    DatasetCodec,
    apply_replacements,
    pair_replacements,
    sort_dataset_columns,
)
from sqlfixture.dataset.codecs.csv_codec import CsvCodec
from sqlfixture.dataset.codecs.excel_codec import ExcelCodec
from sqlfixture.dataset.codecs.json_codec import JsonCodec
from sqlfixture.dataset.codecs.xml_codec import FlatXmlCodec
from sqlfixture.dataset.codecs.yaml_codec import YamlCodec
from sqlfixture.exceptions import CodecInstantiationError, ConfigurationError

logger = logging.getLogger(__name__)

CodecFactory = Callable[..., DatasetCodec]

_codec_factories: Dict[str, CodecFactory] = {
    FlatXmlCodec.key: FlatXmlCodec,
    CsvCodec.key: CsvCodec,
    JsonCodec.key: JsonCodec,
    YamlCodec.key: YamlCodec,
    ExcelCodec.key: ExcelCodec,
}

_format_keys: Dict[str, str] = {
    fmt: codec.key
    for codec in (FlatXmlCodec, CsvCodec, JsonCodec, YamlCodec, ExcelCodec)
    for fmt in codec.formats
}


def register_codec(key: str, factory: CodecFactory, formats: List[str] = ()) -> None:
    """Register a codec factory under ``key`` and, optionally, for export formats."""
    _codec_factories[key] = factory
    for fmt in formats:
        _format_keys[fmt.lower()] = key


def get_codec_keys() -> List[str]:
    return list(_codec_factories)


def get_supported_formats() -> List[str]:
    return list(_format_keys)


def create_codec(key: str, **kwargs: Any) -> DatasetCodec:
    """Instantiate the codec registered under ``key``.

    Raises:
        CodecInstantiationError: If the key is unknown or the factory fails.
    """
    factory = _codec_factories.get(key)
    if factory is None:
        raise CodecInstantiationError(
            f"Unknown dataset codec '{key}'. Registered codecs: {get_codec_keys()}"
        )
    try:
        return factory(**kwargs)
    except Exception as e:
        raise CodecInstantiationError(f"Unable to create dataset codec '{key}': {e}") from e


def codec_for_format(fmt: str, **kwargs: Any) -> DatasetCodec:
    """Instantiate the codec that writes export format ``fmt``.

    Raises:
        ConfigurationError: If no codec handles the format.
    """
    key = _format_keys.get((fmt or "").strip().lower())
    if key is None:
        raise ConfigurationError(
            f"Unsupported export format '{fmt}'. Supported formats: {get_supported_formats()}"
        )
    return create_codec(key, **kwargs)


__all__ = [
    "DatasetCodec",
    "FlatXmlCodec",
    "CsvCodec",
    "JsonCodec",
    "YamlCodec",
    "ExcelCodec",
    "apply_replacements",
    "pair_replacements",
    "sort_dataset_columns",
    "register_codec",
    "get_codec_keys",
    "get_supported_formats",
    "create_codec",
    "codec_for_format",
]
