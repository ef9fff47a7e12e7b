"""
Rendering and Export Errors
Raised by the render/export pipeline and converted to HTTP errors by the routes
"""

from fastapi import HTTPException


class RenderError(Exception):
    status_code = 400

    def __init__(self, detail: str, *, status_code: int = None):
        super().__init__(detail)
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code

    def to_http(self) -> HTTPException:
        return HTTPException(status_code=self.status_code, detail=self.detail)


class ImageLoadError(RenderError):
    """An element or background image could not be fetched or decoded"""
    status_code = 502


class ExportError(RenderError):
    """Rasterization or document assembly failed"""
    status_code = 500


class ExportInProgressError(ExportError):
    """Another export is still running"""
    status_code = 409
