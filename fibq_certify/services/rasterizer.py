"""
Canvas Rasterizer
Paints a rendered canvas onto a supersampled RGBA bitmap with Pillow
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Tuple

from PIL import Image, ImageChops, ImageColor, ImageDraw, ImageFont, ImageOps

from fibq_certify.config import settings
from fibq_certify.services.layout_renderer import (
    CORNER_SIZE,
    CORNER_STROKE,
    IMAGE_BORDER_WIDTH,
    LINE_HEIGHT,
    QR_CAPTION,
    SEAL_MAX_SIZE,
    ElementBox,
    RenderedCanvas,
)
from fibq_certify.services.qr_service import make_qr_image

logger = logging.getLogger(__name__)

Color = Tuple[int, int, int, int]

BLACK = (0, 0, 0, 255)
WHITE = (255, 255, 255, 255)
QR_CAPTION_COLOR = "#888888"
QR_CAPTION_SIZE = 8
QR_CAPTION_GAP = 4
SEAL_CAPTION_SIZE = 7
SEAL_RING_WIDTH = 4
SEAL_TINT_ALPHA = 0x10
IMAGE_RADIUS = 8

FACE_FILES = {
    "Inter": "Inter",
    "Playfair Display": "PlayfairDisplay",
    "monospace": "JetBrainsMono",
}

SYSTEM_FACES = {
    "Inter": "DejaVuSans",
    "Playfair Display": "DejaVuSerif",
    "monospace": "DejaVuSansMono",
}


def parse_color(value: str, default: Color = BLACK) -> Color:
    if not value:
        return default
    try:
        return ImageColor.getcolor(value.strip(), "RGBA")
    except ValueError:
        return default


def _style_suffix(weight: int, italic: bool) -> str:
    name = {700: "Bold", 600: "SemiBold"}.get(weight, "Regular")
    if italic:
        return "Italic" if name == "Regular" else f"{name}Italic"
    return name


@lru_cache(maxsize=128)
def load_font(face: str, size: int, weight: int = 400, italic: bool = False) -> ImageFont.ImageFont:
    """
    Font for a face at a pixel size

    Looks in FONT_DIR for <Face>-<Style>.ttf first, then for the matching
    DejaVu face on the system, then falls back to Pillow's built-in font.
    """
    candidates = []
    if settings.FONT_DIR:
        font_dir = Path(settings.FONT_DIR)
        candidates.append(str(font_dir / f"{FACE_FILES.get(face, 'Inter')}-{_style_suffix(weight, italic)}.ttf"))
        candidates.append(str(font_dir / f"{FACE_FILES.get(face, 'Inter')}-Regular.ttf"))

    system_face = SYSTEM_FACES.get(face, "DejaVuSans")
    if weight >= 600:
        candidates.append(f"{system_face}-Bold.ttf")
    candidates.append(f"{system_face}.ttf")

    for candidate in candidates:
        try:
            return ImageFont.truetype(candidate, size)
        except OSError:
            continue

    logger.debug("No TrueType font found for %s, using the built-in font", face)
    return ImageFont.load_default(size=size)


def _fit_prefix(word: str, font: ImageFont.ImageFont, max_width: float) -> int:
    cut = len(word)
    while cut > 1 and font.getlength(word[:cut]) > max_width:
        cut -= 1
    return cut


def wrap_text(text: str, font: ImageFont.ImageFont, max_width: float) -> List[str]:
    """Greedy word wrap; words wider than the box are broken between characters"""
    lines = []
    for paragraph in text.split("\n"):
        current = ""
        for word in paragraph.split(" "):
            candidate = f"{current} {word}" if current else word
            if not current or font.getlength(candidate) <= max_width:
                current = candidate
            else:
                lines.append(current)
                current = word
            while len(current) > 1 and font.getlength(current) > max_width:
                cut = _fit_prefix(current, font, max_width)
                lines.append(current[:cut])
                current = current[cut:]
        lines.append(current)
    return lines


def contain_size(natural: Tuple[int, int], max_width: float, max_height: float) -> Tuple[float, float]:
    """Largest size that fits the box without upscaling or distortion"""
    width, height = natural
    if width <= 0 or height <= 0 or max_width <= 0 or max_height <= 0:
        return (0.0, 0.0)
    ratio = min(1.0, max_width / width, max_height / height)
    return (width * ratio, height * ratio)


def composite(base: Image.Image, overlay: Image.Image, left: float, top: float) -> None:
    """alpha_composite that tolerates overlays hanging off the top/left edge"""
    left, top = int(round(left)), int(round(top))
    crop_x, crop_y = max(0, -left), max(0, -top)
    if crop_x or crop_y:
        if crop_x >= overlay.width or crop_y >= overlay.height:
            return
        overlay = overlay.crop((crop_x, crop_y, overlay.width, overlay.height))
    base.alpha_composite(overlay, (max(0, left), max(0, top)))


class CanvasRasterizer:
    """
    Rasterizes a RenderedCanvas at `scale` device pixels per design pixel

    Nothing is drawn outside the canvas box itself, so areas the canvas does
    not paint stay transparent.
    """

    def __init__(self, scale: int = None):
        self.scale = scale or settings.EXPORT_SUPERSAMPLE

    def _s(self, value: float) -> float:
        return value * self.scale

    def _too_small(self, box: ElementBox) -> bool:
        return self._s(box.width) < 1 or self._s(box.height or 0) < 1

    def rasterize(self, canvas: RenderedCanvas, images: Dict[str, Image.Image]) -> Image.Image:
        size = (int(round(self._s(canvas.width))), int(round(self._s(canvas.height))))
        bitmap = Image.new("RGBA", size, parse_color(canvas.background_color, WHITE))

        if canvas.background_image:
            background = ImageOps.fit(
                images[canvas.background_image], size, method=Image.Resampling.LANCZOS
            )
            bitmap.alpha_composite(background)

        self._draw_border(bitmap, canvas)
        if canvas.corners:
            self._draw_corners(bitmap, canvas)

        for box in canvas.boxes:
            painter = getattr(self, f"_draw_{box.kind}")
            painter(bitmap, box, images)

        return bitmap

    def _draw_border(self, bitmap: Image.Image, canvas: RenderedCanvas) -> None:
        if not canvas.border.width:
            return
        draw = ImageDraw.Draw(bitmap)
        accent = parse_color(canvas.accent_color)
        total = max(1, int(round(self._s(canvas.border.width))))
        right, bottom = bitmap.width - 1, bitmap.height - 1

        if canvas.border.line == "double":
            band = max(1, total // 3)
            inner = total - band
            draw.rectangle([0, 0, right, bottom], outline=accent, width=band)
            draw.rectangle([inner, inner, right - inner, bottom - inner], outline=accent, width=band)
        else:
            draw.rectangle([0, 0, right, bottom], outline=accent, width=total)

    def _draw_corners(self, bitmap: Image.Image, canvas: RenderedCanvas) -> None:
        draw = ImageDraw.Draw(bitmap)
        accent = parse_color(canvas.accent_color)
        offset = self._s(canvas.corner_offset)
        length = self._s(CORNER_SIZE)
        stroke = self._s(CORNER_STROKE)

        for on_right in (False, True):
            for on_bottom in (False, True):
                x0 = bitmap.width - offset - length if on_right else offset
                y0 = bitmap.height - offset - length if on_bottom else offset
                edge_y = y0 + length - stroke if on_bottom else y0
                edge_x = x0 + length - stroke if on_right else x0
                draw.rectangle([x0, edge_y, x0 + length - 1, edge_y + stroke - 1], fill=accent)
                draw.rectangle([edge_x, y0, edge_x + stroke - 1, y0 + length - 1], fill=accent)

    def _draw_text(self, bitmap: Image.Image, box: ElementBox, images) -> None:
        style = box.text
        font = load_font(
            style.font_face,
            max(1, int(round(self._s(style.font_size)))),
            style.font_weight,
            style.font_style == "italic",
        )
        width = self._s(box.width)
        lines = wrap_text(box.value or "", font, width)
        line_height = self._s(style.font_size * style.line_height)
        top = self._s(box.anchor_y) - line_height * len(lines) / 2
        left = self._s(box.left)

        if style.text_align == "left":
            x, anchor = left, "lm"
        elif style.text_align == "right":
            x, anchor = left + width, "rm"
        else:
            x, anchor = left + width / 2, "mm"

        draw = ImageDraw.Draw(bitmap)
        fill = parse_color(style.color)
        for index, line in enumerate(lines):
            if line:
                draw.text((x, top + line_height * (index + 0.5)), line, font=font, fill=fill, anchor=anchor)

    def _draw_line(self, bitmap: Image.Image, box: ElementBox, images) -> None:
        if self._too_small(box):
            return
        draw = ImageDraw.Draw(bitmap)
        left = self._s(box.left)
        top = self._s(box.top)
        draw.rectangle(
            [left, top, left + self._s(box.width) - 1, top + self._s(box.height) - 1],
            fill=parse_color(box.color),
        )

    def _fitted(self, source: Image.Image, max_width: float, max_height: float) -> Image.Image:
        width, height = contain_size(source.size, max_width, max_height)
        size = (max(1, int(round(self._s(width)))), max(1, int(round(self._s(height)))))
        return source.resize(size, Image.Resampling.LANCZOS)

    def _draw_image(self, bitmap: Image.Image, box: ElementBox, images) -> None:
        if self._too_small(box):
            return
        border = IMAGE_BORDER_WIDTH
        photo = self._fitted(images[box.value], box.width - 2 * border, box.height - 2 * border)
        ring = int(round(self._s(border)))
        outer = (photo.width + 2 * ring, photo.height + 2 * ring)

        framed = Image.new("RGBA", outer, (0, 0, 0, 0))
        ImageDraw.Draw(framed).rounded_rectangle(
            [0, 0, outer[0] - 1, outer[1] - 1],
            radius=int(self._s(IMAGE_RADIUS)),
            fill=parse_color(box.color),
        )
        mask = Image.new("L", photo.size, 0)
        ImageDraw.Draw(mask).rounded_rectangle(
            [0, 0, photo.width - 1, photo.height - 1],
            radius=int(self._s(IMAGE_RADIUS - border)),
            fill=255,
        )
        photo.putalpha(ImageChops.multiply(photo.getchannel("A"), mask))
        framed.alpha_composite(photo, (ring, ring))

        composite(
            bitmap, framed,
            self._s(box.anchor_x) - outer[0] / 2,
            self._s(box.anchor_y) - outer[1] / 2,
        )

    def _draw_logo(self, bitmap: Image.Image, box: ElementBox, images) -> None:
        if self._too_small(box):
            return
        logo = self._fitted(images[box.value], box.width, box.height)
        composite(
            bitmap, logo,
            self._s(box.anchor_x) - logo.width / 2,
            self._s(box.anchor_y) - logo.height / 2,
        )

    def _draw_qrcode(self, bitmap: Image.Image, box: ElementBox, images) -> None:
        qr_px = int(round(self._s(box.qr_size)))
        caption_height = self._s(QR_CAPTION_SIZE * LINE_HEIGHT)
        gap = self._s(QR_CAPTION_GAP)
        top = self._s(box.anchor_y) - (qr_px + gap + caption_height) / 2
        center_x = self._s(box.anchor_x)

        composite(bitmap, make_qr_image(box.value, qr_px), center_x - qr_px / 2, top)

        font = load_font("Inter", int(round(self._s(QR_CAPTION_SIZE))))
        ImageDraw.Draw(bitmap).text(
            (center_x, top + qr_px + gap + caption_height / 2),
            QR_CAPTION,
            font=font,
            fill=parse_color(QR_CAPTION_COLOR),
            anchor="mm",
        )

    def _draw_seal(self, bitmap: Image.Image, box: ElementBox, images) -> None:
        width = int(round(self._s(min(box.width, SEAL_MAX_SIZE))))
        height = int(round(self._s(min(box.height, SEAL_MAX_SIZE))))
        if width <= 0 or height <= 0:
            return
        accent = parse_color(box.color)

        seal = Image.new("RGBA", (width, height), (0, 0, 0, 0))
        draw = ImageDraw.Draw(seal)
        draw.rounded_rectangle(
            [0, 0, width - 1, height - 1],
            radius=min(width, height) // 2,
            fill=accent[:3] + (SEAL_TINT_ALPHA,),
            outline=accent,
            width=int(round(self._s(SEAL_RING_WIDTH))),
        )
        font = load_font("Inter", int(round(self._s(SEAL_CAPTION_SIZE))), 700)
        draw.text((width / 2, height / 2), box.value, font=font, fill=accent, anchor="mm")

        composite(
            bitmap, seal,
            self._s(box.anchor_x) - width / 2,
            self._s(box.anchor_y) - height / 2,
        )
