"""
Export pipeline tests
"""

import asyncio
from io import BytesIO

import pytest
from PIL import Image

from fibq_certify.schemas.certificate import CertificateData
from fibq_certify.schemas.presets import system_templates
from fibq_certify.schemas.template import (
    BorderStyle,
    CertificateTemplate,
    ImageElement,
    LineElement,
    QrCodeElement,
    SealElement,
    TextElement,
)
from fibq_certify.services.errors import ExportInProgressError, ImageLoadError
from fibq_certify.services.export_service import (
    ExportService,
    OffscreenStage,
    compute_page_placement,
    safe_filename,
)
from fibq_certify.services.layout_renderer import RenderMode, render
from fibq_certify.services.rasterizer import CanvasRasterizer, contain_size, parse_color

from conftest import StubImageLoader


@pytest.fixture
def small_template():
    return CertificateTemplate(
        id="custom-small",
        name="Small",
        width=200,
        height=120,
        border_style=BorderStyle.CLASSIC,
        elements=[
            TextElement(id="name", placeholder="traineeName", x=50, y=30, width=80, font_size=12),
            LineElement(id="rule", x=50, y=45, width=60),
            ImageElement(id="photo", placeholder="traineePhoto", x=20, y=70, width=20, height=30),
            QrCodeElement(id="qr", x=80, y=70, width=20, height=30),
            SealElement(id="seal", x=50, y=75, width=15, height=25),
        ],
    )


@pytest.fixture
def canvas(small_template):
    data = CertificateData(
        certificate_number="FIBQ-A1B2-C3D4",
        trainee_name="John Smith",
        trainee_photo="https://images.example/photo.png",
    )
    return render(small_template, data, RenderMode.EXPORT)


@pytest.mark.parametrize("width, height", [
    (2400, 1698),
    (1698, 2400),
    (5000, 10),
    (10, 5000),
    (297, 210),
])
def test_page_placement_stays_on_the_page(width, height):
    placement = compute_page_placement(width, height)

    assert placement.x >= 0
    assert placement.y >= 0
    assert placement.x + placement.width <= 297 + 1e-9
    assert placement.y + placement.height <= 210 + 1e-9
    assert placement.width / placement.height == pytest.approx(width / height)


def test_page_placement_is_centered_with_margin():
    placement = compute_page_placement(2400, 1698, margin=0.9)

    scale = min(297 / 2400, 210 / 1698) * 0.9
    assert placement.width == pytest.approx(2400 * scale)
    assert placement.height == pytest.approx(1698 * scale)
    assert placement.x == pytest.approx((297 - placement.width) / 2)
    assert placement.y == pytest.approx((210 - placement.height) / 2)


async def test_png_export_is_supersampled(canvas, image_loader):
    service = ExportService(image_loader=image_loader, rasterizer=CanvasRasterizer(scale=3))
    result = await service.export_image(canvas, "certificate-FIBQ-A1B2-C3D4")

    assert result.filename == "certificate-FIBQ-A1B2-C3D4.png"
    assert result.media_type == "image/png"
    assert result.headers["Content-Disposition"] == 'attachment; filename="certificate-FIBQ-A1B2-C3D4.png"'

    bitmap = Image.open(BytesIO(result.content))
    assert bitmap.mode == "RGBA"
    assert bitmap.size == (600, 360)
    assert image_loader.requested == ["https://images.example/photo.png"]


async def test_pdf_export(canvas, export_service):
    result = await export_service.export_pdf(canvas, "certificate-FIBQ-A1B2-C3D4")

    assert result.filename == "certificate-FIBQ-A1B2-C3D4.pdf"
    assert result.media_type == "application/pdf"
    assert result.content.startswith(b"%PDF")


async def test_export_uses_a_detached_copy_and_cleans_up(small_template, image_loader):
    stage = OffscreenStage()
    service = ExportService(image_loader=image_loader, rasterizer=CanvasRasterizer(scale=1), stage=stage)
    canvas = render(small_template, CertificateData(), RenderMode.EDIT, display_scale=0.7)

    bitmap = await service.rasterize(canvas)

    assert bitmap.size == (200, 120)
    assert len(stage) == 0
    assert canvas.display_scale == 0.7


async def test_unloadable_image_fails_export_and_cleans_up(canvas):
    stage = OffscreenStage()
    service = ExportService(
        image_loader=StubImageLoader(fail=True),
        rasterizer=CanvasRasterizer(scale=1),
        stage=stage,
    )

    with pytest.raises(ImageLoadError) as excinfo:
        await service.export_image(canvas, "certificate")

    assert excinfo.value.status_code == 502
    assert len(stage) == 0
    assert not service.is_exporting


async def test_second_export_refused_while_one_runs(canvas, export_service):
    async with export_service._busy:
        assert export_service.is_exporting
        with pytest.raises(ExportInProgressError) as excinfo:
            await export_service.export_pdf(canvas, "certificate")
    assert excinfo.value.status_code == 409

    result = await export_service.export_image(canvas, "certificate")
    assert result.content


async def test_waiting_exports_queue_behind_each_other(canvas, export_service):
    results = await asyncio.gather(
        export_service.export_image(canvas, "first", wait=True),
        export_service.export_pdf(canvas, "second", wait=True),
    )

    assert [r.media_type for r in results] == ["image/png", "application/pdf"]
    assert not export_service.is_exporting


def test_stage_removes_clone_on_error(canvas):
    stage = OffscreenStage()
    with pytest.raises(RuntimeError):
        with stage.attach(canvas) as clone:
            assert stage.attached == [clone]
            raise RuntimeError("boom")
    assert len(stage) == 0


async def test_every_system_template_rasterizes(export_service):
    data = CertificateData(trainee_name="Jane Doe", certificate_number="FIBQ-ZZZZ-0001")
    for template in system_templates():
        bitmap = await export_service.rasterize(render(template, data, RenderMode.EXPORT))
        assert bitmap.size == (template.width, template.height)


async def test_zero_sized_elements_do_not_break_export(export_service):
    template = CertificateTemplate(
        id="custom-zero",
        name="Zero",
        width=200,
        height=120,
        border_style=BorderStyle.NONE,
        elements=[
            LineElement(id="rule", width=0),
            ImageElement(id="photo", placeholder="traineePhoto", width=0, height=0),
            SealElement(id="seal", width=0, height=0),
        ],
    )
    data = CertificateData(trainee_photo="https://images.example/photo.png")

    result = await export_service.export_image(render(template, data, RenderMode.EXPORT), "zero")

    assert Image.open(BytesIO(result.content)).size == (200, 120)


def test_background_colour_fills_the_canvas():
    template = CertificateTemplate(id="custom-bg", name="Bg", width=50, height=40,
                                   background_color="#FFFEF7", border_style=BorderStyle.NONE)
    bitmap = CanvasRasterizer(scale=2).rasterize(render(template, CertificateData(), RenderMode.EXPORT), {})
    assert bitmap.getpixel((50, 40)) == (255, 254, 247, 255)


def test_parse_color_falls_back_on_garbage():
    assert parse_color("#C9A227") == (201, 162, 39, 255)
    assert parse_color("not-a-colour", (1, 2, 3, 255)) == (1, 2, 3, 255)


def test_contain_size_never_upscales():
    assert contain_size((100, 50), 400, 400) == (100, 50)
    assert contain_size((400, 200), 100, 100) == (100, 50)


@pytest.mark.parametrize("stem, expected", [
    ("certificate-FIBQ-A1B2-C3D4", "certificate-FIBQ-A1B2-C3D4"),
    ("../etc/passwd", "etc-passwd"),
    ("", "certificate"),
])
def test_safe_filename(stem, expected):
    assert safe_filename(stem) == expected
