"""YAML serialization helpers."""

from typing import IO
from typing import Any

import yaml


class _TextFloatLoader(yaml.SafeLoader):
    """SafeLoader that keeps float scalars as their source text."""


# "1.10" must not collapse to 1.1 when it names a version
_TextFloatLoader.add_constructor("tag:yaml.org,2002:float", lambda loader, node: loader.construct_scalar(node))


def load_yaml(source: str | bytes | IO, *, floats_as_text: bool = False) -> Any:
    """Deserialize a YAML document.

    Args:
        source: YAML text, UTF-8 bytes, or a readable stream
        floats_as_text: Return float scalars as the text written in the document

    Returns:
        The parsed value (None for an empty document)

    Raises:
        yaml.YAMLError: If the document is not valid YAML
    """
    if isinstance(source, bytes):
        source = source.decode("utf-8")
    if floats_as_text:
        return yaml.load(source, Loader=_TextFloatLoader)
    return yaml.safe_load(source)


def dump_yaml(value: Any, stream: IO | None = None) -> str | None:
    """Serialize a value as block-style YAML, keeping key order.

    Returns:
        The YAML text when no stream is given, otherwise None
    """
    return yaml.safe_dump(value, stream, default_flow_style=False, sort_keys=False, allow_unicode=True)
