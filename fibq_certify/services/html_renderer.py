"""
HTML Canvas Rendering
Serialises a rendered canvas to the HTML fragment shown in the editor and preview
"""

from pathlib import Path

from fastapi.templating import Jinja2Templates

from fibq_certify.services.layout_renderer import RenderedCanvas
from fibq_certify.services.qr_service import qr_data_uri

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def _px(value) -> str:
    return f"{value:.2f}".rstrip("0").rstrip(".") + "px"


templates.env.filters["px"] = _px


def render_canvas_html(canvas: RenderedCanvas) -> str:
    """HTML fragment for a rendered canvas"""
    qr_images = {
        box.element_id: qr_data_uri(box.value, box.qr_size * 2)
        for box in canvas.boxes
        if box.kind == "qrcode"
    }
    return templates.env.get_template("canvas.html").render(
        canvas=canvas,
        qr_images=qr_images,
    )
