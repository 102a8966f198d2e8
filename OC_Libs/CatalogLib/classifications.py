"""Classification labels shared by all images of a project."""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from OC_Libs.constants import FIELD_CLASS_COLOR, FIELD_CLASS_NAME


@dataclass(frozen=True)
class ClassificationLabel:
    """A named classification with an optional packed 0xRRGGBB color.

    Labels are identified by name only; two labels with the same name and
    different colors are the same label.
    """

    name: str
    color: Optional[int] = field(default=None, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return {FIELD_CLASS_NAME: self.name, FIELD_CLASS_COLOR: self.color}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClassificationLabel":
        color = data.get(FIELD_CLASS_COLOR)
        return cls(
            name=str(data.get(FIELD_CLASS_NAME, "")),
            color=int(color) if color is not None else None,
        )


def unique_labels(labels: Iterable[Any]) -> List[ClassificationLabel]:
    """Keep the first label of each name, preserving order.

    Plain strings are accepted as label names.
    """
    seen = set()
    result: List[ClassificationLabel] = []
    for label in labels:
        if not isinstance(label, ClassificationLabel):
            label = ClassificationLabel(str(label))
        if not label.name or label.name in seen:
            continue
        seen.add(label.name)
        result.append(label)
    return result
