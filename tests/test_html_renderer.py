"""
Canvas HTML and QR code tests
"""

from io import BytesIO

from PIL import Image

from fibq_certify.schemas.certificate import CertificateData
from fibq_certify.schemas.presets import system_templates
from fibq_certify.schemas.template import BorderStyle, CertificateTemplate, TextElement
from fibq_certify.services.html_renderer import render_canvas_html
from fibq_certify.services.layout_renderer import RenderMode, render
from fibq_certify.services.qr_service import make_qr_image, qr_data_uri, qr_png_bytes


def classic_gold():
    return system_templates()[0]


def test_boxes_positioned_by_center(sample_certificate):
    html = render_canvas_html(render(classic_gold(), sample_certificate, RenderMode.PREVIEW))

    # trainee-name sits at x=50%, y=37% of 800x566
    assert 'data-element-id="trainee-name"' in html
    assert "left: 400px; top: 209.42px; transform: translate(-50%, -50%); width: 480px;" in html


def test_border_overlay_and_corners():
    html = render_canvas_html(render(classic_gold(), CertificateData(), RenderMode.PREVIEW))

    assert "border: 12px double #C9A227" in html
    assert html.count('class="corner ') == 4
    assert "top: 28px; left: 28px" in html


def test_no_border_no_corners():
    template = CertificateTemplate(id="custom-plain", name="Plain", border_style=BorderStyle.NONE)
    html = render_canvas_html(render(template, CertificateData(), RenderMode.PREVIEW))

    assert "certificate-border" not in html
    assert 'class="corner ' not in html


def test_qr_code_embedded_as_data_uri(sample_certificate):
    html = render_canvas_html(render(classic_gold(), sample_certificate, RenderMode.EXPORT))

    assert 'data-payload="http://localhost:8000/verify?number=FIBQ-A1B2-C3D4"' in html
    assert 'src="data:image/png;base64,' in html
    assert "Scan to verify" in html


def test_text_is_escaped():
    template = CertificateTemplate(
        id="custom-escape", name="Escape",
        elements=[TextElement(id="name", placeholder="traineeName")],
    )
    html = render_canvas_html(render(template, CertificateData(trainee_name="<b>Jo</b>")))

    assert "&lt;b&gt;Jo&lt;/b&gt;" in html
    assert "<b>Jo</b>" not in html


def test_edit_mode_markup():
    html = render_canvas_html(render(
        classic_gold(), CertificateData(), RenderMode.EDIT,
        selected_element_id="heading", display_scale=0.7,
    ))

    assert "transform: scale(0.7)" in html
    assert html.count("outline: 2px solid #3B82F6") == 1
    assert "cursor: grab;" in html


def test_qr_image_size_and_bytes():
    image = make_qr_image("http://localhost:8000/verify?number=FIBQ-A1B2-C3D4", 160)
    assert image.size == (160, 160)
    assert image.mode == "RGBA"

    decoded = Image.open(BytesIO(qr_png_bytes("payload", 90)))
    assert decoded.size == (90, 90)
    assert qr_data_uri("payload", 60).startswith("data:image/png;base64,")
