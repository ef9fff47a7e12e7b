"""
Certificate Template Request/Response Models
Templates are a canvas plus an ordered list of positioned elements
"""

import re

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Annotated, Dict, List, Literal, Optional, Union
from enum import Enum


class CamelModel(BaseModel):
    """Snake-case attributes, camelCase on the wire and in stored JSON"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# Hex, rgb()/hsl() or a named colour
COLOR_PATTERN = re.compile(
    r"(#([0-9A-Fa-f]{3,4}|[0-9A-Fa-f]{6}|[0-9A-Fa-f]{8})|(rgb|rgba|hsl|hsla)\([0-9.,% ]+\)|[A-Za-z]+)"
)
URL_UNSAFE_CHARACTERS = re.compile(r"[\s'\"()\\<>]")


def check_color(value: Optional[str]) -> Optional[str]:
    if value is not None and not COLOR_PATTERN.fullmatch(value):
        raise ValueError(f"Invalid colour '{value}'")
    return value


class ElementType(str, Enum):
    """Kind of visual element on a template canvas"""
    TEXT = "text"
    IMAGE = "image"
    QRCODE = "qrcode"
    SEAL = "seal"
    LINE = "line"
    LOGO = "logo"


class BorderStyle(str, Enum):
    """Canvas border treatment"""
    NONE = "none"
    CLASSIC = "classic"
    MODERN = "modern"
    MINIMAL = "minimal"
    ORNATE = "ornate"


class ElementBase(CamelModel):
    """
    Fields shared by every element

    x and y are percentages of the canvas size and locate the element's
    center, not its top-left corner. width is a percentage of canvas width.
    """
    id: str = Field(..., min_length=1, max_length=100)
    x: float = Field(default=50, ge=0, le=100, description="Center X (% of canvas width)")
    y: float = Field(default=50, ge=0, le=100, description="Center Y (% of canvas height)")
    width: float = Field(default=10, ge=0, le=100, description="Width (% of canvas width)")
    visible: bool = Field(default=True)


class TextElement(ElementBase):
    type: Literal["text"] = "text"
    height: Optional[float] = Field(default=None, ge=0, le=100)
    content: Optional[str] = None
    placeholder: Optional[str] = None
    font_size: float = Field(default=16, gt=0, le=400)
    font_family: str = Field(default="Inter")
    font_weight: Literal["normal", "semibold", "bold"] = "normal"
    font_style: Literal["normal", "italic"] = "normal"
    text_align: Literal["left", "center", "right"] = "center"
    color: Optional[str] = None

    @field_validator("color")
    @classmethod
    def color_is_css_color(cls, value):
        return check_color(value)


class ImageElement(ElementBase):
    type: Literal["image"] = "image"
    height: float = Field(default=10, ge=0, le=100)
    placeholder: Optional[str] = None


class QrCodeElement(ElementBase):
    type: Literal["qrcode"] = "qrcode"
    height: float = Field(default=10, ge=0, le=100)


class SealElement(ElementBase):
    type: Literal["seal"] = "seal"
    height: float = Field(default=10, ge=0, le=100)


class LineElement(ElementBase):
    type: Literal["line"] = "line"
    height: Optional[float] = Field(default=None, ge=0, le=100)
    color: Optional[str] = None

    @field_validator("color")
    @classmethod
    def color_is_css_color(cls, value):
        return check_color(value)


class LogoElement(ElementBase):
    type: Literal["logo"] = "logo"
    height: float = Field(default=10, ge=0, le=100)


Element = Annotated[
    Union[TextElement, ImageElement, QrCodeElement, SealElement, LineElement, LogoElement],
    Field(discriminator="type"),
]

ELEMENT_CLASSES = {
    ElementType.TEXT: TextElement,
    ElementType.IMAGE: ImageElement,
    ElementType.QRCODE: QrCodeElement,
    ElementType.SEAL: SealElement,
    ElementType.LINE: LineElement,
    ElementType.LOGO: LogoElement,
}


def _check_unique_ids(elements: list) -> list:
    seen = set()
    for element in elements:
        if element.id in seen:
            raise ValueError(f"Duplicate element id '{element.id}'")
        seen.add(element.id)
    return elements


class TemplateSettings(CamelModel):
    """Canvas-level template properties"""
    name: str = Field(..., min_length=1, max_length=100)
    background_color: str = Field(default="#FFFFFF")
    accent_color: str = Field(default="#C9A227")
    background_image: Optional[str] = Field(default=None, description="URL stretched to cover the canvas")
    border_style: BorderStyle = Field(default=BorderStyle.CLASSIC)
    width: int = Field(default=800, gt=0, le=4000, description="Canvas width in design pixels")
    height: int = Field(default=566, gt=0, le=4000, description="Canvas height in design pixels")
    show_seal: bool = True
    show_qr_code: bool = Field(default=True, alias="showQRCode")

    @field_validator("background_color", "accent_color")
    @classmethod
    def colors_are_css_colors(cls, value):
        return check_color(value)

    @field_validator("background_image")
    @classmethod
    def background_image_is_plain_url(cls, value):
        if value and URL_UNSAFE_CHARACTERS.search(value):
            raise ValueError("Background image URL contains characters not allowed in CSS")
        return value or None


class CertificateTemplate(TemplateSettings):
    """A reusable certificate design"""
    id: str = Field(..., min_length=1, max_length=100)
    elements: List[Element] = Field(default_factory=list)
    is_system: bool = False
    is_default: bool = False

    @field_validator("elements")
    @classmethod
    def element_ids_unique(cls, elements):
        return _check_unique_ids(elements)

    def find_element(self, element_id: str):
        for element in self.elements:
            if element.id == element_id:
                return element
        return None


class CreateTemplateRequest(TemplateSettings):
    """Request to create a user template; elements default to the starter set"""
    elements: Optional[List[Element]] = None

    @field_validator("elements")
    @classmethod
    def element_ids_unique(cls, elements):
        if elements is None:
            return elements
        return _check_unique_ids(elements)


class UpdateTemplateRequest(TemplateSettings):
    """Whole-template replacement submitted by the editor"""
    elements: List[Element] = Field(default_factory=list)

    @field_validator("elements")
    @classmethod
    def element_ids_unique(cls, elements):
        return _check_unique_ids(elements)


class TemplateListResponse(CamelModel):
    """All templates, system presets first"""
    total: int
    default_template_id: Optional[str] = None
    templates: List[CertificateTemplate]


class PlaceholderOption(CamelModel):
    key: str
    label: str


class PlaceholderListResponse(CamelModel):
    """Field picker options for the editor"""
    text: List[PlaceholderOption]
    image: List[PlaceholderOption]
    certificate_types: Dict[str, str]


class AddElementRequest(CamelModel):
    type: ElementType


class DragElementRequest(CamelModel):
    """A completed drag gesture in screen pixels"""
    start_x: float
    start_y: float
    end_x: float
    end_y: float
    display_scale: Optional[float] = Field(default=None, gt=0, le=4)


class EditorResponse(CamelModel):
    """Template after an editor operation, with the edit-mode canvas"""
    template: CertificateTemplate
    selected_element_id: Optional[str] = None
    is_dragging: bool = False
    canvas_html: Optional[str] = None

