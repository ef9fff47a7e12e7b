"""
Layout Renderer
Places template elements on a canvas of fixed design dimensions

The same render() call feeds the editor, the public preview and the export
pipeline. The mode only changes overlays (selection ring, grab cursor) and
the text scale: preview text is drawn at PREVIEW_TEXT_SCALE of its literal
size because the on-screen preview is not supersampled, while edit and
export use the literal size. Exported files therefore differ slightly from
the browser preview, and that difference is intentional.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Optional, Tuple

from fibq_certify.config import settings
from fibq_certify.schemas.certificate import CertificateData
from fibq_certify.schemas.template import (
    BorderStyle,
    CertificateTemplate,
    ImageElement,
    LineElement,
    LogoElement,
    QrCodeElement,
    SealElement,
    TextElement,
)
from fibq_certify.services.placeholder_resolver import Resolved, resolve


class RenderMode(str, Enum):
    EDIT = "edit"
    PREVIEW = "preview"
    EXPORT = "export"


@dataclass(frozen=True)
class BorderRule:
    width: int
    line: str  # none | solid | double


BORDER_RULES = {
    BorderStyle.NONE: BorderRule(0, "none"),
    BorderStyle.CLASSIC: BorderRule(12, "double"),
    BorderStyle.MODERN: BorderRule(4, "solid"),
    BorderStyle.MINIMAL: BorderRule(1, "solid"),
    BorderStyle.ORNATE: BorderRule(16, "double"),
}

CORNER_BORDER_STYLES = frozenset({BorderStyle.CLASSIC, BorderStyle.ORNATE})
CORNER_SIZE = 48
CORNER_INSET = 16
CORNER_STROKE = 2

LINE_THICKNESS = 2
LINE_HEIGHT = 1.3
IMAGE_BORDER_WIDTH = 3
SEAL_MAX_SIZE = 80
QR_SIZE_SCREEN = 60
QR_SIZE_EXPORT = 80
QR_CAPTION = "Scan to verify"
SEAL_CAPTION = "OFFICIAL"

SERIF_STACK = "'Playfair Display', serif"
SANS_STACK = "'Inter', sans-serif"


def font_stack(font_family: Optional[str]) -> str:
    """CSS font stack for an element font family"""
    if font_family == "monospace":
        return "monospace"
    if font_family == "Playfair Display":
        return SERIF_STACK
    return SANS_STACK


def font_face(font_family: Optional[str]) -> str:
    """Face the rasterizer loads: monospace, Playfair Display or Inter"""
    if font_family in ("monospace", "Playfair Display"):
        return font_family
    return "Inter"


def font_weight_value(font_weight: Optional[str]) -> int:
    if font_weight == "bold":
        return 700
    if font_weight == "semibold":
        return 600
    return 400


def text_scale_for(mode: RenderMode) -> float:
    if mode == RenderMode.PREVIEW:
        return settings.PREVIEW_TEXT_SCALE
    return 1.0


@dataclass(frozen=True)
class TextStyle:
    font_size: float
    font_stack: str
    font_face: str
    font_weight: int
    font_style: str
    text_align: str
    color: str
    line_height: float = LINE_HEIGHT


@dataclass(frozen=True)
class ElementBox:
    """
    One absolutely-positioned box in design pixels

    (anchor_x, anchor_y) is the box center. height is None for text, whose
    height depends on the wrapped content.
    """
    element_id: str
    kind: str
    anchor_x: float
    anchor_y: float
    width: float
    height: Optional[float] = None
    value: Optional[str] = None
    color: Optional[str] = None
    text: Optional[TextStyle] = None
    qr_size: Optional[int] = None
    selected: bool = False

    @property
    def left(self) -> float:
        return self.anchor_x - self.width / 2

    @property
    def top(self) -> Optional[float]:
        if self.height is None:
            return None
        return self.anchor_y - self.height / 2


@dataclass(frozen=True)
class RenderedCanvas:
    """The visual tree for one template rendered against one record"""
    template_id: str
    mode: RenderMode
    width: int
    height: int
    background_color: str
    accent_color: str
    background_image: Optional[str]
    border: BorderRule
    corners: bool
    boxes: Tuple[ElementBox, ...] = field(default_factory=tuple)
    cursor: Optional[str] = None
    display_scale: float = 1.0

    @property
    def corner_offset(self) -> int:
        """Distance of the corner ornaments from the canvas edge"""
        return self.border.width + CORNER_INSET

    def detached(self) -> "RenderedCanvas":
        """Copy at 1:1 design-pixel size, free of any display scaling"""
        return replace(self, boxes=tuple(self.boxes), display_scale=1.0)

    def box_for(self, element_id: str) -> Optional[ElementBox]:
        for box in self.boxes:
            if box.element_id == element_id:
                return box
        return None


def effective_data(template: CertificateTemplate, data: CertificateData) -> CertificateData:
    """Apply template seal/QR defaults where the certificate does not override them"""
    updates = {}
    if data.show_seal is None:
        updates["show_seal"] = template.show_seal
    if data.show_qr_code is None:
        updates["show_qr_code"] = template.show_qr_code
    if not updates:
        return data
    return data.model_copy(update=updates)


def _anchor(element, template: CertificateTemplate) -> Tuple[float, float, float]:
    return (
        element.x / 100 * template.width,
        element.y / 100 * template.height,
        element.width / 100 * template.width,
    )


def layout_element(
    element,
    resolved: Optional[Resolved],
    template: CertificateTemplate,
    mode: RenderMode,
    selected: bool = False,
) -> Optional[ElementBox]:
    """Box for one element, or None when it renders nothing"""
    if resolved is None:
        return None

    anchor_x, anchor_y, width = _anchor(element, template)

    if isinstance(element, TextElement):
        style = TextStyle(
            font_size=element.font_size * text_scale_for(mode),
            font_stack=font_stack(element.font_family),
            font_face=font_face(element.font_family),
            font_weight=font_weight_value(element.font_weight),
            font_style=element.font_style,
            text_align=element.text_align,
            color=element.color or "#000000",
        )
        return ElementBox(
            element.id, "text", anchor_x, anchor_y, width,
            value=resolved.value, text=style, selected=selected,
        )

    if isinstance(element, LineElement):
        return ElementBox(
            element.id, "line", anchor_x, anchor_y, width,
            height=LINE_THICKNESS,
            color=resolved.value or template.accent_color,
            selected=selected,
        )

    height = element.height / 100 * template.height

    if isinstance(element, (ImageElement, LogoElement)):
        if not resolved.value:
            return None
        kind = "image" if isinstance(element, ImageElement) else "logo"
        return ElementBox(
            element.id, kind, anchor_x, anchor_y, width, height,
            value=resolved.value,
            color=template.accent_color if kind == "image" else None,
            selected=selected,
        )

    if isinstance(element, QrCodeElement):
        qr_size = QR_SIZE_EXPORT if mode == RenderMode.EXPORT else QR_SIZE_SCREEN
        return ElementBox(
            element.id, "qrcode", anchor_x, anchor_y, width, height,
            value=resolved.value, qr_size=qr_size, selected=selected,
        )

    if isinstance(element, SealElement):
        return ElementBox(
            element.id, "seal", anchor_x, anchor_y, width, height,
            value=SEAL_CAPTION, color=template.accent_color, selected=selected,
        )

    raise TypeError(f"Unsupported element type: {type(element).__name__}")


def render(
    template: CertificateTemplate,
    data: CertificateData,
    mode: RenderMode = RenderMode.PREVIEW,
    resolver: Callable = resolve,
    selected_element_id: Optional[str] = None,
    is_dragging: bool = False,
    origin: Optional[str] = None,
    display_scale: float = 1.0,
) -> RenderedCanvas:
    """
    Render a template against certificate data

    Elements are laid out in list order, which is also paint order. Hidden
    elements and elements that resolve to nothing contribute no box; boxes
    are absolutely positioned so siblings never reflow.
    """
    data = effective_data(template, data)
    editing = mode == RenderMode.EDIT
    boxes = []
    for element in template.elements:
        if not element.visible:
            continue
        box = layout_element(
            element,
            resolver(element, data, origin),
            template,
            mode,
            selected=editing and element.id == selected_element_id,
        )
        if box is not None:
            boxes.append(box)

    cursor = None
    if editing:
        cursor = "grabbing" if is_dragging else "grab"

    return RenderedCanvas(
        template_id=template.id,
        mode=mode,
        width=template.width,
        height=template.height,
        background_color=template.background_color,
        accent_color=template.accent_color,
        background_image=template.background_image,
        border=BORDER_RULES[template.border_style],
        corners=template.border_style in CORNER_BORDER_STYLES,
        boxes=tuple(boxes),
        cursor=cursor,
        display_scale=display_scale,
    )
