"""
Template Service
Business logic for the certificate template catalogue

System presets live in code and are merged ahead of stored user templates.
They can be chosen as the default but never modified or deleted.
"""

import logging
import uuid
from typing import List, Optional

from fastapi import HTTPException, status

from fibq_certify.schemas.placeholders import (
    CERTIFICATE_TYPE_LABELS,
    IMAGE_PLACEHOLDERS,
    PLACEHOLDERS,
)
from fibq_certify.schemas.presets import (
    DEFAULT_TEMPLATE_ID,
    SYSTEM_TEMPLATE_IDS,
    default_elements,
    system_templates,
)
from fibq_certify.schemas.template import (
    CertificateTemplate,
    CreateTemplateRequest,
    PlaceholderListResponse,
    PlaceholderOption,
    TemplateListResponse,
    UpdateTemplateRequest,
)
from fibq_certify.services.record_store import TemplateStore

logger = logging.getLogger(__name__)


def new_template_id() -> str:
    return f"custom-{uuid.uuid4().hex[:12]}"


def placeholder_options() -> PlaceholderListResponse:
    """Field picker options shown in the template editor"""
    return PlaceholderListResponse(
        text=[PlaceholderOption(key=p.key, label=p.label) for p in PLACEHOLDERS],
        image=[PlaceholderOption(key=p.key, label=p.label) for p in IMAGE_PLACEHOLDERS],
        certificate_types=dict(CERTIFICATE_TYPE_LABELS),
    )


class TemplateCatalog:
    """
    Templates available for rendering, plus the selected default

    selected_template_id mirrors the stored default and is only changed
    after the store call it depends on has succeeded.
    """

    def __init__(self, store: TemplateStore, include_system: bool = True):
        self.store = store
        self.include_system = include_system
        self.selected_template_id: Optional[str] = None

    def _presets(self) -> List[CertificateTemplate]:
        return system_templates() if self.include_system else []

    async def _stored(self) -> List[CertificateTemplate]:
        try:
            templates = await self.store.list()
        except Exception:
            logger.exception("Failed to load templates")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to load templates"
            )
        return [t for t in templates if t.id not in SYSTEM_TEMPLATE_IDS]

    async def refresh(self) -> List[CertificateTemplate]:
        """Reload templates and re-derive the selected default"""
        templates = self._presets() + await self._stored()
        ids = [t.id for t in templates]

        try:
            default_id = await self.store.get_default_id()
        except Exception:
            logger.exception("Failed to load the default template")
            default_id = None

        if default_id in ids:
            selected = default_id
        elif self.selected_template_id in ids:
            selected = self.selected_template_id
        elif DEFAULT_TEMPLATE_ID in ids:
            selected = DEFAULT_TEMPLATE_ID
        else:
            selected = ids[0] if ids else None

        self.selected_template_id = selected
        return [
            t.model_copy(update={"is_default": t.id == selected}) for t in templates
        ]

    async def list_templates(self) -> TemplateListResponse:
        templates = await self.refresh()
        return TemplateListResponse(
            total=len(templates),
            default_template_id=self.selected_template_id,
            templates=templates,
        )

    async def find_template(self, template_id: str) -> Optional[CertificateTemplate]:
        for preset in self._presets():
            if preset.id == template_id:
                return preset
        if template_id in SYSTEM_TEMPLATE_IDS:
            return None
        try:
            return await self.store.get(template_id)
        except Exception:
            logger.exception("Failed to load template %s", template_id)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to load template"
            )

    async def get_template(self, template_id: str) -> CertificateTemplate:
        template = await self.find_template(template_id)
        if template is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Template not found"
            )
        return template

    async def resolve_template(self, template_id: Optional[str]) -> CertificateTemplate:
        """
        Template to render a certificate with

        A missing or dangling template id falls back to the selected default,
        then to the built-in default preset.
        """
        if template_id:
            template = await self.find_template(template_id)
            if template is not None:
                return template
            logger.info("Template %s not found, using the default template", template_id)

        await self.refresh()
        if self.selected_template_id:
            template = await self.find_template(self.selected_template_id)
            if template is not None:
                return template

        for preset in system_templates():
            if preset.id == DEFAULT_TEMPLATE_ID:
                return preset
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No template available"
        )

    async def _save(self, template: CertificateTemplate, action: str) -> CertificateTemplate:
        try:
            return await self.store.save(template)
        except Exception:
            logger.exception("Failed to %s template %s", action, template.id)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to {action} template"
            )

    @staticmethod
    def _ensure_editable(template_id: str, action: str) -> None:
        if template_id in SYSTEM_TEMPLATE_IDS:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"System templates cannot be {action}"
            )

    async def create_template(self, data: CreateTemplateRequest) -> CertificateTemplate:
        """Create a user template; without elements it starts from the starter set"""
        fields = data.model_dump(exclude={"elements"})
        elements = data.elements if data.elements is not None else default_elements()
        template = CertificateTemplate(
            id=new_template_id(), elements=elements, is_system=False, **fields
        )
        saved = await self._save(template, "create")
        logger.info("Created template %s (%s)", saved.id, saved.name)
        return saved

    async def update_template(self, template_id: str, data: UpdateTemplateRequest) -> CertificateTemplate:
        """Replace a user template with the submitted version"""
        self._ensure_editable(template_id, "modified")
        existing = await self.get_template(template_id)
        template = CertificateTemplate(
            id=existing.id,
            is_system=False,
            is_default=existing.is_default,
            **data.model_dump(),
        )
        return await self._save(template, "update")

    async def save_template(self, template: CertificateTemplate) -> CertificateTemplate:
        """Persist a template produced by the editor"""
        self._ensure_editable(template.id, "modified")
        return await self._save(template, "update")

    async def delete_template(self, template_id: str) -> None:
        """
        Delete a user template

        If it was the selected default, selection moves to the first
        remaining template, or to nothing when none remain.
        """
        self._ensure_editable(template_id, "deleted")
        await self.get_template(template_id)

        try:
            await self.store.delete(template_id)
        except Exception:
            logger.exception("Failed to delete template %s", template_id)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to delete template"
            )

        if self.selected_template_id == template_id:
            remaining = self._presets() + await self._stored()
            self.selected_template_id = remaining[0].id if remaining else None
        logger.info("Deleted template %s", template_id)

    async def set_default(self, template_id: str) -> CertificateTemplate:
        template = await self.get_template(template_id)
        try:
            if template.is_system and await self.store.get(template_id) is None:
                await self.store.save(template)
            await self.store.set_default(template_id)
        except Exception:
            logger.exception("Failed to set default template %s", template_id)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to set default template"
            )
        self.selected_template_id = template_id
        return template.model_copy(update={"is_default": True})
