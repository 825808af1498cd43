"""Decoding of rendered template text into manifest objects."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List

import yaml


class Decoder(ABC):
    """Turns rendered text into zero or more structured objects."""

    @abstractmethod
    def decode(self, text: str) -> List[Dict[str, Any]]:
        """Decode rendered text.

        Raises:
            ValueError: If the text is not a valid sequence of objects
        """
        pass


class YamlDecoder(Decoder):
    """Multi-document YAML decoder.

    Empty documents are skipped. Documents of a ``*List`` kind carrying an
    ``items`` list are flattened into their items.
    """

    def __init__(self, flatten_lists: bool = True) -> None:
        self.flatten_lists = flatten_lists

    def decode(self, text: str) -> List[Dict[str, Any]]:
        objects: List[Dict[str, Any]] = []

        try:
            documents = list(yaml.safe_load_all(text))
        except yaml.YAMLError as e:
            raise ValueError(f"invalid YAML: {e}") from e

        for index, document in enumerate(documents):
            if document is None:
                continue
            if not isinstance(document, dict):
                raise ValueError(
                    f"document {index} must be a mapping, got {type(document).__name__}"
                )
            if self.flatten_lists and self._is_list(document):
                for item_index, item in enumerate(document["items"]):
                    if not isinstance(item, dict):
                        raise ValueError(
                            f"document {index} item {item_index} must be a mapping, "
                            f"got {type(item).__name__}"
                        )
                    objects.append(item)
            else:
                objects.append(document)

        return objects

    @staticmethod
    def _is_list(document: Dict[str, Any]) -> bool:
        kind = document.get("kind")
        return (
            isinstance(kind, str)
            and kind.endswith("List")
            and isinstance(document.get("items"), list)
        )
