"""
Per-image analysis state and its JSON serializer.

The catalog treats analysis state as opaque: it asks a serializer for a
fresh state, and for text to write or parse. ``JsonStateSerializer`` is the
default; any object with the same three methods can be injected into a
``ProjectCatalog`` instead.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List

from OC_Libs.constants import (
    FIELD_STATE_ANNOTATIONS,
    FIELD_STATE_IMAGE_URI,
    FIELD_STATE_PROPERTIES,
    FIELD_STATE_VERSION,
    STATE_VERSION,
)


@dataclass
class AnalysisState:
    """Analysis results attached to one image entry.

    Attributes:
        image_uri: URI of the image the state was produced for
        annotations: Free-form annotation dictionaries (regions, points, ...)
        properties: Arbitrary key/value results
    """

    image_uri: str = ""
    annotations: List[Dict[str, Any]] = field(default_factory=list)
    properties: Dict[str, Any] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not self.annotations and not self.properties

    def to_dict(self) -> Dict[str, Any]:
        return {
            FIELD_STATE_VERSION: STATE_VERSION,
            FIELD_STATE_IMAGE_URI: self.image_uri,
            FIELD_STATE_ANNOTATIONS: list(self.annotations),
            FIELD_STATE_PROPERTIES: dict(self.properties),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalysisState":
        """
        Create from dictionary representation.

        Raises:
            ValueError: If the payload does not have the expected shape
        """
        if not isinstance(data, dict):
            raise ValueError(f"Expected object at top level, got {type(data).__name__}")

        annotations = data.get(FIELD_STATE_ANNOTATIONS, [])
        properties = data.get(FIELD_STATE_PROPERTIES, {})
        if not isinstance(annotations, list):
            raise ValueError("'annotations' must be a list")
        if not isinstance(properties, dict):
            raise ValueError("'properties' must be an object")

        return cls(
            image_uri=str(data.get(FIELD_STATE_IMAGE_URI, "")),
            annotations=annotations,
            properties=properties,
        )


class JsonStateSerializer:
    """Reads and writes ``AnalysisState`` as JSON text."""

    def new_state(self, entry: Any) -> AnalysisState:
        return AnalysisState(image_uri=entry.uri)

    def dumps(self, state: AnalysisState) -> str:
        return json.dumps(state.to_dict(), indent=2)

    def loads(self, text: str) -> AnalysisState:
        """
        Raises:
            ValueError: If text is not valid JSON or not a state document
        """
        return AnalysisState.from_dict(json.loads(text))
