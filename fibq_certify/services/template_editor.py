"""
Template Editor
Element editing operations and drag handling for one template

The editor owns its state explicitly (selection, drag flag, display scale)
so the same operations serve the admin HTTP endpoints and direct callers.
Every operation replaces self.template with an updated copy; the template
passed in is never mutated.
"""

import uuid
from dataclasses import dataclass
from typing import Any, Dict, Optional

from fibq_certify.config import settings
from fibq_certify.schemas.template import (
    ELEMENT_CLASSES,
    CertificateTemplate,
    ElementType,
    TemplateSettings,
)

NEW_ELEMENT_SIZES = {
    ElementType.TEXT: (30, 5),
    ElementType.LINE: (20, 1),
}
DEFAULT_NEW_ELEMENT_SIZE = (10, 10)
DUPLICATE_OFFSET = 5

PROTECTED_ELEMENT_FIELDS = ("id", "type")


def new_element_id() -> str:
    return f"element-{uuid.uuid4().hex[:12]}"


def clamp_percent(value: float) -> float:
    return max(0.0, min(100.0, value))


def _field_names(model_class) -> Dict[str, str]:
    """Map both attribute names and camelCase aliases to attribute names"""
    names = {}
    for name, info in model_class.model_fields.items():
        names[name] = name
        if info.alias:
            names[info.alias] = name
    return names


def normalize_fields(model_class, fields: Dict[str, Any]) -> Dict[str, Any]:
    known = _field_names(model_class)
    normalized = {}
    for key, value in fields.items():
        name = known.get(key)
        if name is not None and name not in PROTECTED_ELEMENT_FIELDS:
            normalized[name] = value
    return normalized


@dataclass
class EditorState:
    selected_element_id: Optional[str] = None
    is_dragging: bool = False
    display_scale: float = settings.EDITOR_DISPLAY_SCALE


class DragSession:
    """
    One pointer drag of one element

    Pointer coordinates are screen pixels. The canvas is displayed at
    state.display_scale, so screen deltas are divided by it before being
    converted to a percentage of the design size.
    """

    def __init__(self, editor: "TemplateEditor", element_id: str, pointer_x: float, pointer_y: float):
        element = editor.template.find_element(element_id)
        self.editor = editor
        self.element_id = element_id
        self.pointer_x = pointer_x
        self.pointer_y = pointer_y
        self.start_x = element.x
        self.start_y = element.y
        self.active = True

    def delta_percent(self, pointer_delta: float, design_size: int) -> float:
        scale = self.editor.state.display_scale or 1.0
        return (pointer_delta / scale) / design_size * 100

    def move(self, pointer_x: float, pointer_y: float):
        if not self.active:
            return None
        template = self.editor.template
        x = clamp_percent(self.start_x + self.delta_percent(pointer_x - self.pointer_x, template.width))
        y = clamp_percent(self.start_y + self.delta_percent(pointer_y - self.pointer_y, template.height))
        return self.editor.update_element(self.element_id, x=x, y=y)

    def end(self) -> None:
        self.active = False
        self.editor.state.is_dragging = False


class TemplateEditor:
    def __init__(self, template: CertificateTemplate, state: EditorState = None):
        self.template = template
        self.state = state or EditorState()

    def _replace_elements(self, elements: list) -> None:
        self.template = self.template.model_copy(update={"elements": elements})

    def select_element(self, element_id: Optional[str]) -> None:
        if element_id is None or self.template.find_element(element_id) is not None:
            self.state.selected_element_id = element_id

    def clear_selection(self) -> None:
        self.state.selected_element_id = None

    def add_element(self, element_type: ElementType):
        """Append a new element at the canvas center and select it"""
        element_type = ElementType(element_type)
        width, height = NEW_ELEMENT_SIZES.get(element_type, DEFAULT_NEW_ELEMENT_SIZE)
        fields = {
            "id": new_element_id(),
            "x": 50,
            "y": 50,
            "width": width,
            "height": height,
            "visible": True,
        }
        if element_type == ElementType.TEXT:
            fields.update(
                content="New Text",
                font_size=16,
                font_family="Inter",
                font_weight="normal",
                text_align="center",
                color=self.template.accent_color,
            )
        elif element_type == ElementType.LINE:
            fields["color"] = self.template.accent_color

        element = ELEMENT_CLASSES[element_type](**fields)
        self._replace_elements(list(self.template.elements) + [element])
        self.state.selected_element_id = element.id
        return element

    def duplicate_element(self, element_id: str):
        """Copy an element offset down and right, and select the copy"""
        element = self.template.find_element(element_id)
        if element is None:
            return None
        copy = element.model_copy(update={
            "id": new_element_id(),
            "x": clamp_percent(element.x + DUPLICATE_OFFSET),
            "y": clamp_percent(element.y + DUPLICATE_OFFSET),
        })
        self._replace_elements(list(self.template.elements) + [copy])
        self.state.selected_element_id = copy.id
        return copy

    def delete_element(self, element_id: str) -> bool:
        elements = [el for el in self.template.elements if el.id != element_id]
        removed = len(elements) != len(self.template.elements)
        if removed:
            self._replace_elements(elements)
        self.state.selected_element_id = None
        return removed

    def update_element(self, element_id: str, **fields):
        """
        Merge fields into an element and re-validate it

        Fields may use attribute names or their camelCase aliases; id and
        type cannot be changed. Raises ValueError (pydantic's
        ValidationError) when the merged element is invalid. Returns None
        for an unknown id.
        """
        element = self.template.find_element(element_id)
        if element is None:
            return None

        element_class = type(element)
        merged = element.model_dump()
        merged.update(normalize_fields(element_class, fields))
        updated = element_class.model_validate(merged)

        self._replace_elements([
            updated if el.id == element_id else el for el in self.template.elements
        ])
        return updated

    def update_template(self, **fields) -> CertificateTemplate:
        """Change canvas-level settings such as name, colours or border"""
        merged = self.template.model_dump()
        merged.update(normalize_fields(TemplateSettings, fields))
        validated = TemplateSettings.model_validate(merged)
        self.template = self.template.model_copy(update=dict(validated))
        return self.template

    def begin_drag(self, element_id: str, pointer_x: float, pointer_y: float) -> Optional[DragSession]:
        if self.template.find_element(element_id) is None:
            return None
        self.state.selected_element_id = element_id
        self.state.is_dragging = True
        return DragSession(self, element_id, pointer_x, pointer_y)

    def drag(self, element_id: str, start_x: float, start_y: float, end_x: float, end_y: float):
        """Apply a completed drag gesture"""
        session = self.begin_drag(element_id, start_x, start_y)
        if session is None:
            return None
        try:
            return session.move(end_x, end_y)
        finally:
            session.end()
