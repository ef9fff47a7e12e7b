"""
Certificate Export Service
Rasterizes a rendered canvas and packages it as a PNG image or an A4 PDF

Every export works on a detached 1:1 copy of the canvas held on an
off-screen stage. The copy is always removed again, whether the export
succeeds or fails, and the caller's canvas (which may carry the editor's
display scale) is never touched.
"""

import asyncio
import logging
import re
import uuid
from contextlib import asynccontextmanager, contextmanager
from dataclasses import dataclass
from io import BytesIO
from typing import Dict, Iterator, List, Optional

import img2pdf
from PIL import Image

from fibq_certify.config import settings
from fibq_certify.services.errors import ExportError, ExportInProgressError, RenderError
from fibq_certify.services.image_loader import ImageLoader
from fibq_certify.services.layout_renderer import RenderedCanvas
from fibq_certify.services.rasterizer import CanvasRasterizer

logger = logging.getLogger(__name__)

A4_LANDSCAPE_MM = (297.0, 210.0)


class OffscreenStage:
    """Holds detached canvas copies while they are being exported"""

    def __init__(self):
        self._attached: Dict[str, RenderedCanvas] = {}

    @contextmanager
    def attach(self, canvas: RenderedCanvas) -> Iterator[RenderedCanvas]:
        token = uuid.uuid4().hex
        clone = canvas.detached()
        self._attached[token] = clone
        try:
            yield clone
        finally:
            self._attached.pop(token, None)

    @property
    def attached(self) -> List[RenderedCanvas]:
        return list(self._attached.values())

    def __len__(self) -> int:
        return len(self._attached)


@dataclass(frozen=True)
class PagePlacement:
    """Image rectangle on the page, in millimetres"""
    x: float
    y: float
    width: float
    height: float


def compute_page_placement(
    bitmap_width: float,
    bitmap_height: float,
    page_size=A4_LANDSCAPE_MM,
    margin: float = None,
) -> PagePlacement:
    """
    Fit a bitmap onto the page

    The bitmap is scaled to fit the page, shrunk by the margin factor so a
    border of white remains, and centered on both axes.
    """
    margin = settings.EXPORT_MARGIN if margin is None else margin
    page_width, page_height = page_size
    scale = min(page_width / bitmap_width, page_height / bitmap_height) * margin
    width = bitmap_width * scale
    height = bitmap_height * scale
    return PagePlacement(
        x=(page_width - width) / 2,
        y=(page_height - height) / 2,
        width=width,
        height=height,
    )


@dataclass(frozen=True)
class ExportResult:
    filename: str
    content: bytes
    media_type: str

    @property
    def headers(self) -> Dict[str, str]:
        return {"Content-Disposition": f'attachment; filename="{self.filename}"'}


def safe_filename(stem: Optional[str], fallback: str = "certificate") -> str:
    cleaned = re.sub(r"[^A-Za-z0-9._-]+", "-", (stem or "").strip()).strip("-.")
    return cleaned or fallback


def _placement_layout(placement: PagePlacement, page_size=A4_LANDSCAPE_MM):
    page_width = img2pdf.mm_to_pt(page_size[0])
    page_height = img2pdf.mm_to_pt(page_size[1])
    image_width = img2pdf.mm_to_pt(placement.width)
    image_height = img2pdf.mm_to_pt(placement.height)

    def layout_fun(imgwidthpx, imgheightpx, ndpi):
        # img2pdf centers the image on the page
        return page_width, page_height, image_width, image_height

    return layout_fun


class ExportService:
    """
    PNG and PDF export of rendered certificates

    One export runs at a time per service. By default a second request while
    one is in flight is refused with ExportInProgressError; callers that pass
    wait=True queue behind the running export instead.
    """

    def __init__(
        self,
        image_loader: ImageLoader = None,
        rasterizer: CanvasRasterizer = None,
        stage: OffscreenStage = None,
        margin: float = None,
    ):
        self.image_loader = image_loader or ImageLoader()
        self.rasterizer = rasterizer or CanvasRasterizer()
        self.stage = stage or OffscreenStage()
        self.margin = settings.EXPORT_MARGIN if margin is None else margin
        self._busy = asyncio.Lock()

    @property
    def is_exporting(self) -> bool:
        return self._busy.locked()

    @asynccontextmanager
    async def _exclusive(self, wait: bool = False):
        if not wait and self._busy.locked():
            raise ExportInProgressError("An export is already in progress")
        async with self._busy:
            yield

    @staticmethod
    def _image_sources(canvas: RenderedCanvas) -> List[str]:
        sources = [canvas.background_image] if canvas.background_image else []
        sources.extend(box.value for box in canvas.boxes if box.kind in ("image", "logo"))
        return sources

    async def rasterize(self, canvas: RenderedCanvas) -> Image.Image:
        """Supersampled RGBA bitmap of a detached copy of the canvas"""
        with self.stage.attach(canvas) as clone:
            images = await self.image_loader.load_all(self._image_sources(clone))
            try:
                return await asyncio.to_thread(self.rasterizer.rasterize, clone, images)
            except RenderError:
                raise
            except (OSError, ValueError, KeyError) as e:
                logger.error("Rasterizing %s failed: %s", clone.template_id, e)
                raise ExportError("Failed to generate certificate image")

    async def export_image(self, canvas: RenderedCanvas, filename: str, wait: bool = False) -> ExportResult:
        async with self._exclusive(wait):
            bitmap = await self.rasterize(canvas)
            buffer = BytesIO()
            bitmap.save(buffer, format="PNG")
            logger.info("Exported PNG %s (%sx%s)", filename, bitmap.width, bitmap.height)
            return ExportResult(f"{safe_filename(filename)}.png", buffer.getvalue(), "image/png")

    async def export_pdf(self, canvas: RenderedCanvas, filename: str, wait: bool = False) -> ExportResult:
        async with self._exclusive(wait):
            bitmap = await self.rasterize(canvas)
            placement = compute_page_placement(
                bitmap.width, bitmap.height, margin=self.margin
            )

            # PDF pages are white; flatten so the embedded image carries no alpha
            flattened = Image.new("RGB", bitmap.size, (255, 255, 255))
            flattened.paste(bitmap, mask=bitmap.getchannel("A"))
            buffer = BytesIO()
            flattened.save(buffer, format="PNG")

            try:
                pdf_bytes = img2pdf.convert(
                    buffer.getvalue(), layout_fun=_placement_layout(placement)
                )
            except img2pdf.ImageOpenError as e:
                logger.error("PDF assembly failed for %s: %s", filename, e)
                raise ExportError("Failed to generate PDF")

            logger.info("Exported PDF %s", filename)
            return ExportResult(f"{safe_filename(filename)}.pdf", pdf_bytes, "application/pdf")
