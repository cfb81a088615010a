import pytest
from httpx import AsyncClient

pytestmark = [pytest.mark.integration, pytest.mark.anyio]

BASE = "/api/form-config"
EDITOR = {"X-User-Email": "admin@example.com"}


async def _create(client: AsyncClient, **payload) -> dict:
    r = await client.post(BASE, json=payload, headers=EDITOR)
    assert r.status_code == 201, r.text
    return r.json()


def _relabel(label):
    return {
        "op": "set_field_property",
        "section_key": "basic",
        "field_key": "product_name",
        "property": "label",
        "value": label,
    }


def _label(config):
    basic = next(s for s in config["sections"] if s["section_key"] == "basic")
    return next(f for f in basic["fields"] if f["field_key"] == "product_name")["label"]


async def test_create_and_get(client: AsyncClient):
    created = await _create(client, name="Chemicals")
    assert created["version"] == "1.0"
    assert created["is_draft"] is False
    assert created["created_by"] == "admin@example.com"
    assert created["metadata"]["custom_fields_count"] == 0

    r = await client.get(f"{BASE}/{created['id']}")
    assert r.status_code == 200
    assert r.json()["name"] == "Chemicals"


async def test_list(client: AsyncClient):
    await _create(client, name="First")
    await _create(client, name="Second")
    r = await client.get(BASE)
    assert r.status_code == 200
    assert sorted(c["name"] for c in r.json()) == ["First", "Second"]


async def test_missing_configuration_is_404(client: AsyncClient):
    r = await client.get(f"{BASE}/999")
    assert r.status_code == 404
    assert "request_id" in r.json()


async def test_mutation_makes_draft_and_active_serves_baseline(client: AsyncClient):
    created = await _create(client)
    r = await client.post(f"{BASE}/{created['id']}/mutations", json=_relabel("Draft Name"), headers=EDITOR)
    assert r.status_code == 200, r.text
    assert r.json()["is_draft"] is True

    live = (await client.get(f"{BASE}/active")).json()
    assert _label(live) == "Product Name"
    assert live["is_draft"] is False

    editor_view = (await client.get(f"{BASE}/active", params={"include_draft": True})).json()
    assert _label(editor_view) == "Draft Name"


async def test_invalid_mutation_is_422_and_not_persisted(client: AsyncClient):
    created = await _create(client)
    op = {"op": "add_field_option", "section_key": "basic", "field_key": "priority",
          "option": {"value": "LOW", "label": "Low"}}
    r = await client.post(f"{BASE}/{created['id']}/mutations", json=op)
    assert r.status_code == 422
    body = r.json()
    assert body["violations"][0]["code"] == "duplicate_option_value"

    stored = (await client.get(f"{BASE}/{created['id']}")).json()
    assert stored["is_draft"] is False


async def test_unknown_operation_is_422(client: AsyncClient):
    created = await _create(client)
    r = await client.post(f"{BASE}/{created['id']}/mutations", json={"op": "explode"})
    assert r.status_code == 422


async def test_deleting_built_in_is_403(client: AsyncClient):
    created = await _create(client)
    r = await client.post(
        f"{BASE}/{created['id']}/mutations",
        json={"op": "delete_section", "section_key": "basic"},
    )
    assert r.status_code == 403


async def test_publish_rollback_cycle(client: AsyncClient):
    created = await _create(client)
    config_id = created["id"]

    await client.post(f"{BASE}/{config_id}/mutations", json=_relabel("Renamed"))
    r = await client.post(f"{BASE}/{config_id}/publish", headers=EDITOR)
    assert r.status_code == 200, r.text
    published = r.json()
    assert published["version"] == "1.1"
    assert published["is_draft"] is False
    assert published["last_published_at"] is not None
    assert published["updated_by"] == "admin@example.com"

    r = await client.post(f"{BASE}/{config_id}/rollback")
    assert r.status_code == 200
    rolled_back = r.json()
    assert rolled_back["version"] == "1.0"
    assert _label(rolled_back) == "Product Name"
    assert rolled_back["updated_by"] == "system"

    r = await client.post(f"{BASE}/{config_id}/rollback")
    assert r.status_code == 409


async def test_publish_with_sections(client: AsyncClient):
    created = await _create(client)
    sections = created["sections"]
    sections[0]["name"] = "How is it sourced?"
    r = await client.post(f"{BASE}/{created['id']}/publish", json={"sections": sections})
    assert r.status_code == 200, r.text
    assert r.json()["sections"][0]["name"] == "How is it sourced?"
    assert r.json()["version"] == "1.1"


async def test_save_full_draft(client: AsyncClient):
    created = await _create(client)
    sections = created["sections"]
    sections.append({"section_key": "notes", "name": "Notes", "order": len(sections) + 1, "fields": [
        {"field_key": "internal_notes", "label": "Internal Notes", "type": "textarea"},
    ]})
    r = await client.put(f"{BASE}/{created['id']}", json={"sections": sections})
    assert r.status_code == 200, r.text
    saved = r.json()
    assert saved["is_draft"] is True
    assert saved["metadata"]["custom_sections_count"] == 1


async def test_discard_draft(client: AsyncClient):
    created = await _create(client)
    config_id = created["id"]

    r = await client.post(f"{BASE}/{config_id}/discard-draft")
    assert r.status_code == 409

    await client.post(f"{BASE}/{config_id}/mutations", json=_relabel("Temporary"))
    r = await client.post(f"{BASE}/{config_id}/discard-draft")
    assert r.status_code == 200
    assert _label(r.json()) == "Product Name"
    assert r.json()["is_draft"] is False


async def test_diagnostics(client: AsyncClient):
    created = await _create(client)
    config_id = created["id"]

    r = await client.get(f"{BASE}/{config_id}/diagnostics")
    assert r.json()["rollback_available"] is False

    await client.post(f"{BASE}/{config_id}/publish")
    diagnostics = (await client.get(f"{BASE}/{config_id}/diagnostics")).json()
    assert diagnostics["rollback_available"] is True
    assert diagnostics["rollback_matches_published"] is True
    assert diagnostics["rollback_target_version"] == "1.0"
    assert diagnostics["violations"] == []

    await client.post(f"{BASE}/{config_id}/mutations", json=_relabel("Edited"))
    diagnostics = (await client.get(f"{BASE}/{config_id}/diagnostics")).json()
    assert diagnostics["has_unpublished_changes"] is True


async def test_activate_keeps_single_active(client: AsyncClient):
    first = await _create(client, name="First")
    second = await _create(client, name="Second")
    assert first["is_active"] is True
    assert second["is_active"] is False

    r = await client.patch(f"{BASE}/{second['id']}/activate")
    assert r.status_code == 200
    listing = {c["name"]: c["is_active"] for c in (await client.get(BASE)).json()}
    assert listing == {"First": False, "Second": True}

    active = (await client.get(f"{BASE}/active")).json()
    assert active["id"] == second["id"]


async def test_evaluate_and_preview(client: AsyncClient):
    created = await _create(client)
    config_id = created["id"]
    values = {"production_type": "Procured", "cas_number": "64-17-5"}

    r = await client.post(f"{BASE}/{config_id}/evaluate", json={"values": values})
    assert r.status_code == 200
    evaluation = r.json()
    visible = [f["field_key"] for f in evaluation["visible_fields"]]
    assert "vendor_name" in visible
    assert evaluation["violations_by_field_key"] == {}

    r = await client.post(f"{BASE}/{config_id}/preview", json={"values": {"cas_number": "nope"}})
    assert r.status_code == 200
    form = r.json()
    assert form["read_only"] is True
    assert form["violations_by_field_key"]["cas_number"][0]["code"] == "pattern"


async def test_render_without_configuration_is_empty(client: AsyncClient):
    r = await client.post(f"{BASE}/render", json={"values": {}})
    assert r.status_code == 200
    assert r.json()["sections"] == []

    r = await client.get(f"{BASE}/active")
    assert r.status_code == 404


async def test_render_serves_published_form(client: AsyncClient):
    created = await _create(client)
    await client.post(f"{BASE}/{created['id']}/mutations", json=_relabel("Not yet live"))

    r = await client.post(f"{BASE}/render", json={"values": {}})
    form = r.json()
    assert form["read_only"] is False
    basic = next(s for s in form["sections"] if s["section_key"] == "basic")
    assert basic["controls"][0]["label"] == "Product Name"


async def test_request_id_is_propagated(client: AsyncClient):
    r = await client.get(BASE, headers={"X-Request-ID": "abc123"})
    assert r.headers["X-Request-ID"] == "abc123"
