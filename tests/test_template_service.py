"""
Template catalogue tests
"""

import pytest
from fastapi import HTTPException

from fibq_certify.schemas.presets import DEFAULT_TEMPLATE_ID, SYSTEM_TEMPLATE_IDS
from fibq_certify.schemas.template import CreateTemplateRequest, UpdateTemplateRequest
from fibq_certify.services.template_service import TemplateCatalog, placeholder_options

from conftest import InMemoryTemplateStore


@pytest.fixture
def catalog(template_store):
    return TemplateCatalog(template_store)


async def test_system_presets_listed_first(catalog, template_store, user_template):
    await template_store.save(user_template)
    listing = await catalog.list_templates()

    ids = [t.id for t in listing.templates]
    assert ids[:4] == ["classic-gold", "modern-navy", "minimal-elegant", "ornate-traditional"]
    assert ids[4] == user_template.id
    assert listing.total == 5
    assert listing.default_template_id == DEFAULT_TEMPLATE_ID
    assert [t.id for t in listing.templates if t.is_default] == [DEFAULT_TEMPLATE_ID]


async def test_create_starts_from_starter_layout(catalog):
    template = await catalog.create_template(CreateTemplateRequest(name="Ceremony"))

    assert template.id.startswith("custom-")
    assert not template.is_system
    assert template.find_element("trainee-name") is not None
    assert (await catalog.get_template(template.id)).name == "Ceremony"


async def test_system_templates_are_read_only(catalog):
    with pytest.raises(HTTPException) as excinfo:
        await catalog.delete_template("classic-gold")
    assert excinfo.value.status_code == 403

    with pytest.raises(HTTPException) as excinfo:
        await catalog.update_template("classic-gold", UpdateTemplateRequest(name="Mine now"))
    assert excinfo.value.status_code == 403


async def test_delete_selected_user_template_falls_back(catalog, template_store, user_template):
    await template_store.save(user_template)
    await catalog.set_default(user_template.id)
    assert catalog.selected_template_id == user_template.id

    await catalog.delete_template(user_template.id)

    assert user_template.id not in template_store.templates
    assert catalog.selected_template_id == "classic-gold"


async def test_delete_last_template_clears_selection(user_template):
    store = InMemoryTemplateStore([user_template])
    catalog = TemplateCatalog(store, include_system=False)
    await catalog.refresh()
    assert catalog.selected_template_id == user_template.id

    await catalog.delete_template(user_template.id)

    assert catalog.selected_template_id is None
    assert (await catalog.list_templates()).templates == []


async def test_failed_delete_keeps_selection(catalog, template_store, user_template):
    await template_store.save(user_template)
    await catalog.set_default(user_template.id)
    template_store.fail_deletes = True

    with pytest.raises(HTTPException) as excinfo:
        await catalog.delete_template(user_template.id)

    assert excinfo.value.status_code == 500
    assert catalog.selected_template_id == user_template.id
    assert user_template.id in template_store.templates


async def test_failed_save_is_reported(catalog, template_store):
    template_store.fail_saves = True
    with pytest.raises(HTTPException) as excinfo:
        await catalog.create_template(CreateTemplateRequest(name="Unsaved"))
    assert excinfo.value.status_code == 500
    assert template_store.templates == {}


async def test_missing_template_is_not_found(catalog):
    with pytest.raises(HTTPException) as excinfo:
        await catalog.get_template("custom-missing")
    assert excinfo.value.status_code == 404


async def test_dangling_template_id_falls_back_to_default(catalog):
    template = await catalog.resolve_template("custom-deleted-long-ago")
    assert template.id == DEFAULT_TEMPLATE_ID

    assert (await catalog.resolve_template(None)).id == DEFAULT_TEMPLATE_ID
    assert (await catalog.resolve_template("modern-navy")).id == "modern-navy"


async def test_system_template_can_become_default(catalog, template_store):
    template = await catalog.set_default("modern-navy")

    assert template.is_default
    assert template_store.default_id == "modern-navy"
    assert "modern-navy" in template_store.templates

    listing = await catalog.list_templates()
    assert listing.default_template_id == "modern-navy"
    assert listing.total == 4
    assert (await catalog.resolve_template(None)).id == "modern-navy"


async def test_stored_copies_of_presets_are_not_listed_twice(catalog, template_store):
    await catalog.set_default("ornate-traditional")
    assert (await catalog.list_templates()).total == len(SYSTEM_TEMPLATE_IDS)


async def test_update_replaces_user_template(catalog, template_store, user_template):
    await template_store.save(user_template)
    updated = await catalog.update_template(
        user_template.id,
        UpdateTemplateRequest(name="Renamed", borderStyle="modern", elements=[]),
    )
    assert updated.name == "Renamed"
    assert updated.border_style == "modern"
    assert updated.elements == []
    assert template_store.templates[user_template.id].name == "Renamed"


def test_placeholder_options():
    options = placeholder_options()
    assert options.text[0].key == "traineeName"
    assert {o.key for o in options.image} == {"traineePhoto", "centerLogo"}
    assert options.certificate_types["trainee"] == "Trainee Certificate"
