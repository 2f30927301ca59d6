from stylelens.history.elements import ElementNode, ElementResolver, HandleRegistry
from stylelens.history.entries import (
    create_attribute_entry,
    create_class_entry,
    create_dom_entry,
    create_style_entry,
)
from stylelens.history.log import HistoryLog

__all__ = [
    "ElementNode",
    "ElementResolver",
    "HandleRegistry",
    "HistoryLog",
    "create_attribute_entry",
    "create_class_entry",
    "create_dom_entry",
    "create_style_entry",
]
