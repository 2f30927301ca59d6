"""Live element model and the weak-handle capability history entries use to reach it."""

from __future__ import annotations

import weakref
from dataclasses import dataclass, field
from typing import Protocol

from stylelens.core.types import BoundingBox


@dataclass(eq=False)
class ElementNode:
    """
    A mutable element as the editor sees it.

    ``computed`` holds what the host resolved from stylesheets; inline
    overrides in ``inline_style`` win over it in computed_style().
    Identity-hashed so it can key weak maps.
    """

    tag: str
    element_id: str = ""
    classes: list[str] = field(default_factory=list)
    attributes: dict[str, str] = field(default_factory=dict)
    inline_style: dict[str, str] = field(default_factory=dict)
    computed: dict[str, str] = field(default_factory=dict)
    bounding_box: BoundingBox = field(default_factory=BoundingBox)
    path: str = ""  # e.g. "body > main > div:nth-child(2)"

    def __post_init__(self) -> None:
        self.tag = self.tag.lower()

    @property
    def class_attr(self) -> str:
        return " ".join(self.classes)

    # Inline style

    def set_style(self, prop: str, value: str) -> None:
        self.inline_style[prop] = value

    def remove_style(self, prop: str) -> None:
        self.inline_style.pop(prop, None)

    def computed_style(self) -> dict[str, str]:
        return {**self.computed, **self.inline_style}

    # Classes

    def add_class(self, class_name: str) -> None:
        if class_name not in self.classes:
            self.classes.append(class_name)

    def remove_class(self, class_name: str) -> None:
        if class_name in self.classes:
            self.classes.remove(class_name)

    def has_class(self, class_name: str) -> bool:
        return class_name in self.classes

    # Attributes; "id" and "class" are routed to their dedicated fields

    def get_attribute(self, name: str) -> str | None:
        if name == "id":
            return self.element_id or None
        if name == "class":
            return self.class_attr or None
        return self.attributes.get(name)

    def set_attribute(self, name: str, value: str) -> None:
        if name == "id":
            self.element_id = value
        elif name == "class":
            self.classes = value.split()
        else:
            self.attributes[name] = value

    def remove_attribute(self, name: str) -> None:
        if name == "id":
            self.element_id = ""
        elif name == "class":
            self.classes = []
        else:
            self.attributes.pop(name, None)

    def outer_html(self) -> str:
        attrs: list[str] = []
        if self.element_id:
            attrs.append(f'id="{self.element_id}"')
        if self.classes:
            attrs.append(f'class="{self.class_attr}"')
        attrs.extend(f'{k}="{v}"' for k, v in self.attributes.items())
        if self.inline_style:
            style = "; ".join(f"{k}: {v}" for k, v in self.inline_style.items())
            attrs.append(f'style="{style}"')
        opening = " ".join([self.tag, *attrs])
        return f"<{opening}></{self.tag}>"


class ElementResolver(Protocol):
    """Maps a handle to a live element, or None once it is gone."""

    def resolve(self, handle: str) -> ElementNode | None: ...


class HandleRegistry:
    """
    Issues stable handle IDs for live elements without keeping them alive.

    Registering the same element twice returns the same handle. Once the
    last strong reference to an element is dropped, resolve() returns None.
    """

    def __init__(self) -> None:
        self._counter = 0
        self._by_handle: weakref.WeakValueDictionary[str, ElementNode] = weakref.WeakValueDictionary()
        self._by_element: weakref.WeakKeyDictionary[ElementNode, str] = weakref.WeakKeyDictionary()

    def register(self, element: ElementNode) -> str:
        existing = self._by_element.get(element)
        if existing is not None:
            return existing
        self._counter += 1
        handle = f"@h{self._counter}"
        self._by_handle[handle] = element
        self._by_element[element] = handle
        return handle

    def resolve(self, handle: str) -> ElementNode | None:
        return self._by_handle.get(handle)

    def reset(self) -> None:
        self._counter = 0
        self._by_handle.clear()
        self._by_element.clear()

    @property
    def live_count(self) -> int:
        return len(self._by_handle)
