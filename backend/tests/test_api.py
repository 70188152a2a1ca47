from __future__ import annotations

from uuid import UUID, uuid4

import pytest

DEFAULT_AVAILABILITY = [{"product_line": "Duration", "sheen": "Satin"}, {"product_line": "Emerald", "sheen": "Flat"}]


async def _color(client, code, *, availability=DEFAULT_AVAILABILITY):
    r = await client.post(
        "/colors",
        json={"color_code": code, "name": f"Color {code}", "manufacturer": "Sherwin-Williams", "availability": availability},
    )
    assert r.status_code == 201, r.text
    return r.json()


async def _usage(client, color_id):
    r = await client.get(f"/colors/{color_id}")
    assert r.status_code == 200
    body = r.json()
    return body["usage_count"], body["first_used_at"]


async def _project(client, name="Maple St Repaint"):
    r = await client.post("/projects", json={"name": name, "client_name": "J. Doe", "address": "12 Maple St"})
    assert r.status_code == 201
    return r.json()


async def _room(client, name):
    r = await client.post("/rooms", json={"name": name})
    assert r.status_code == 201
    return r.json()


async def _photo(client, project_id, *, room_id=None, filename="IMG_0001.jpg"):
    r = await client.post(f"/projects/{project_id}/photos", json={"filename": filename, "room_id": room_id})
    assert r.status_code == 201, r.text
    return r.json()


async def _annotate(client, photo_id, color_id, surface_type="Wall", **extra):
    r = await client.post(
        f"/photos/{photo_id}/annotations",
        json={"color_id": color_id, "surface_type": surface_type, **extra},
    )
    assert r.status_code == 201, r.text
    return r.json()


async def test_health(client):
    r = await client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


class TestColors:
    async def test_create_normalizes_and_keeps_availability_order(self, client):
        r = await client.post(
            "/colors",
            json={
                "color_code": " SW7005 ",
                "name": "Pure White",
                "manufacturer": "Sherwin-Williams",
                "hex_color": "edece6",
                "availability": DEFAULT_AVAILABILITY,
            },
        )
        assert r.status_code == 201
        body = r.json()
        assert body["color_code"] == "SW7005"
        assert body["hex_color"] == "#EDECE6"
        assert body["usage_count"] == 0
        assert body["first_used_at"] is None
        assert [(a["product_line"], a["position"]) for a in body["availability"]] == [("Duration", 0), ("Emerald", 1)]

    async def test_duplicate_code_per_manufacturer_conflicts(self, client):
        await _color(client, "SW7005")
        r = await client.post("/colors", json={"color_code": "SW7005", "name": "x", "manufacturer": "Sherwin-Williams"})
        assert r.status_code == 409

    async def test_invalid_hex_rejected(self, client):
        r = await client.post(
            "/colors", json={"color_code": "X1", "name": "x", "manufacturer": "m", "hex_color": "#12"}
        )
        assert r.status_code == 422

    async def test_delete_refused_while_referenced(self, client):
        color = await _color(client, "SW7005")
        project = await _project(client)
        photo = await _photo(client, project["id"])
        ann = await _annotate(client, photo["id"], color["id"])

        r = await client.delete(f"/colors/{color['id']}")
        assert r.status_code == 409

        await client.delete(f"/photos/{photo['id']}/annotations/{ann['id']}")
        r = await client.delete(f"/colors/{color['id']}")
        assert r.status_code == 200
        assert (await client.get(f"/colors/{color['id']}")).status_code == 404

    async def test_list_orders_by_usage(self, client):
        a = await _color(client, "A")
        b = await _color(client, "B")
        project = await _project(client)
        photo = await _photo(client, project["id"])
        await _annotate(client, photo["id"], b["id"])

        r = await client.get("/colors")
        assert [c["color_code"] for c in r.json()] == ["B", "A"]
        r = await client.get("/colors", params={"search": "color a"})
        assert [c["id"] for c in r.json()] == [a["id"]]


class TestColorImport:
    async def test_bulk_import_reports_created_and_skipped(self, client):
        await _color(client, "SW7005")
        r = await client.post(
            "/colors/bulk-import",
            json={
                "colors": [
                    {
                        "color_code": "SW7006",
                        "name": "Extra White",
                        "manufacturer": "Sherwin-Williams",
                        "hex_color": "eeefea",
                        "product_lines": [
                            {"product_line": "Duration", "sheens": ["Satin", "Flat"]},
                            {"product_line": "Emerald", "sheens": ["Satin"]},
                        ],
                    },
                    {"color_code": "SW7006", "name": "Extra White", "manufacturer": "Sherwin-Williams"},
                    {"color_code": "SW7005", "name": "Pure White", "manufacturer": "Sherwin-Williams"},
                    {"color_code": "SW0001", "manufacturer": "Sherwin-Williams"},
                    {"color_code": "SW0002", "name": "Bad Hex", "manufacturer": "Sherwin-Williams", "hex_color": "zz"},
                    {"color_code": "100", "name": "Snowbound", "manufacturer": "Sherwin-Williams"},
                    {"color_code": "100", "name": "Chantilly Lace", "manufacturer": "Benjamin Moore"},
                ]
            },
        )
        assert r.status_code == 200, r.text
        body = r.json()
        assert (body["created"], body["skipped"]) == (3, 4)
        assert len(body["errors"]) == 2
        assert "SW0001" in body["errors"][0]
        assert "SW0002" in body["errors"][1]

        r = await client.get("/colors", params={"search": "extra white"})
        (imported,) = r.json()
        assert imported["hex_color"] == "#EEEFEA"
        assert [(a["product_line"], a["sheen"], a["position"]) for a in imported["availability"]] == [
            ("Duration", "Satin", 0),
            ("Duration", "Flat", 1),
            ("Emerald", "Satin", 2),
        ]

    async def test_duplicates_reported_when_not_skipped(self, client):
        await _color(client, "SW7005")
        r = await client.post(
            "/colors/bulk-import",
            json={
                "colors": [{"color_code": "SW7005", "name": "Pure White", "manufacturer": "Sherwin-Williams"}],
                "skip_duplicates": False,
            },
        )
        body = r.json()
        assert (body["created"], body["skipped"]) == (0, 1)
        assert body["errors"] == ["color Sherwin-Williams SW7005 already exists"]

    async def test_empty_import_rejected(self, client):
        r = await client.post("/colors/bulk-import", json={"colors": []})
        assert r.status_code == 422

    async def test_imported_availability_feeds_synopsis_defaults(self, client):
        await client.post(
            "/colors/bulk-import",
            json={
                "colors": [
                    {
                        "color_code": "SW7006",
                        "name": "Extra White",
                        "manufacturer": "Sherwin-Williams",
                        "product_lines": [{"product_line": "Emerald", "sheens": ["Semi-Gloss", "Satin"]}],
                    }
                ]
            },
        )
        (color,) = (await client.get("/colors")).json()
        project = await _project(client)
        room = await _room(client, "Kitchen")
        photo = await _photo(client, project["id"], room_id=room["id"])
        await _annotate(client, photo["id"], color["id"], "Trim")

        body = (await client.get(f"/projects/{project['id']}/synopsis")).json()
        row = body["roomData"][0]["surfaces"][0]
        assert (row["productLine"], row["sheen"]) == ("Emerald", "Semi-Gloss")


class TestAnnotationAccounting:
    async def test_create_update_delete(self, client):
        a = await _color(client, "A")
        b = await _color(client, "B")
        project = await _project(client)
        room = await _room(client, "Kitchen")
        photo = await _photo(client, project["id"], room_id=room["id"])

        ann = await _annotate(client, photo["id"], a["id"], notes="two coats")
        assert ann["room_id"] == room["id"]
        assert await _usage(client, a["id"]) == (1, ann["created_at"])

        # unrelated edit leaves accounting alone
        r = await client.patch(f"/photos/{photo['id']}/annotations/{ann['id']}", json={"notes": "one coat"})
        assert r.status_code == 200
        assert r.json()["notes"] == "one coat"
        assert (await _usage(client, a["id"]))[0] == 1

        r = await client.patch(f"/photos/{photo['id']}/annotations/{ann['id']}", json={"color_id": b["id"]})
        assert r.status_code == 200
        usage_a, first_a = await _usage(client, a["id"])
        assert usage_a == 0
        assert first_a == ann["created_at"]
        assert (await _usage(client, b["id"]))[0] == 1

        r = await client.delete(f"/photos/{photo['id']}/annotations/{ann['id']}")
        assert r.status_code == 200
        assert (await _usage(client, b["id"]))[0] == 0
        assert (await client.get(f"/photos/{photo['id']}/annotations/{ann['id']}")).status_code == 404

    async def test_imported_annotation_keeps_its_timestamp(self, client):
        a = await _color(client, "A")
        project = await _project(client)
        photo = await _photo(client, project["id"])

        ann = await _annotate(client, photo["id"], a["id"], created_at="2025-06-01T08:30:00Z")

        assert ann["created_at"].startswith("2025-06-01T08:30:00")
        usage, first_used = await _usage(client, a["id"])
        assert usage == 1
        assert first_used.startswith("2025-06-01T08:30:00")

    async def test_clearing_color_releases_reference(self, client):
        a = await _color(client, "A")
        project = await _project(client)
        photo = await _photo(client, project["id"])
        ann = await _annotate(client, photo["id"], a["id"])

        r = await client.patch(f"/photos/{photo['id']}/annotations/{ann['id']}", json={"color_id": None})
        assert r.status_code == 200
        assert r.json()["color_id"] is None
        assert (await _usage(client, a["id"]))[0] == 0

    async def test_annotation_without_color_is_not_counted(self, client):
        project = await _project(client)
        photo = await _photo(client, project["id"])
        r = await client.post(f"/photos/{photo['id']}/annotations", json={"kind": "drawing", "data": {"points": [1, 2]}})
        assert r.status_code == 201

    async def test_unknown_references_are_404(self, client):
        project = await _project(client)
        photo = await _photo(client, project["id"])
        r = await client.post(f"/photos/{photo['id']}/annotations", json={"color_id": str(uuid4())})
        assert r.status_code == 404
        r = await client.post(f"/photos/{uuid4()}/annotations", json={})
        assert r.status_code == 404

    async def test_photo_delete_releases_every_reference(self, client):
        a = await _color(client, "A")
        b = await _color(client, "B")
        project = await _project(client)
        photo = await _photo(client, project["id"])
        other = await _photo(client, project["id"], filename="IMG_0002.jpg")
        for cid in (a["id"], a["id"], b["id"]):
            await _annotate(client, photo["id"], cid)
        await _annotate(client, other["id"], a["id"])

        r = await client.delete(f"/photos/{photo['id']}")
        assert r.status_code == 200
        assert r.json() == {"id": photo["id"], "deleted": True, "accounting_failures": []}
        assert (await _usage(client, a["id"]))[0] == 1
        assert (await _usage(client, b["id"]))[0] == 0
        assert (await client.get(f"/photos/{photo['id']}/annotations")).status_code == 404


class TestGeneratedSynopsis:
    async def test_kitchen_and_bath(self, client):
        sw001, sw002, sw003 = [await _color(client, code) for code in ("SW001", "SW002", "SW003")]
        project = await _project(client)
        kitchen = await _room(client, "Kitchen")
        bath = await _room(client, "Bath")
        kp = await _photo(client, project["id"], room_id=kitchen["id"], filename="kitchen.jpg")
        bp = await _photo(client, project["id"], room_id=bath["id"], filename="bath.jpg")
        await _annotate(client, kp["id"], sw001["id"], "Wall", data={"label": "North wall"})
        await _annotate(client, kp["id"], sw002["id"], "Trim")
        await _annotate(client, bp["id"], sw002["id"], "Trim", notes="semi-gloss on doors")
        await _annotate(client, bp["id"], sw003["id"], "Ceiling")

        r = await client.get(f"/projects/{project['id']}/synopsis")
        assert r.status_code == 200
        body = r.json()

        assert body["project"]["name"] == "Maple St Repaint"
        assert body["project"]["clientName"] == "J. Doe"
        summary = body["colorSummary"]
        assert [(e["colorCode"], e["isUniversal"]) for e in summary["trim"]] == [("SW002", True)]
        assert summary["trim"][0]["productLines"] == ["Duration - Satin"]
        assert [(e["colorCode"], e["isUniversal"]) for e in summary["ceilings"]] == [("SW003", True)]
        assert [e["colorCode"] for e in summary["walls"]] == ["SW001"]

        rooms = {r["roomName"]: r["surfaces"] for r in body["roomData"]}
        assert list(rooms) == ["Kitchen", "Bath"]
        assert [(s["surfaceType"], s["colorCode"]) for s in rooms["Kitchen"]] == [("Wall", "SW001"), ("Trim", "SW002")]
        assert rooms["Kitchen"][0]["surfaceArea"] == "North wall"
        assert rooms["Kitchen"][0]["sourcePhotos"][0]["filename"] == kp["filename"]
        assert rooms["Bath"][0]["notes"] == "semi-gloss on doors"

    async def test_empty_project(self, client):
        project = await _project(client)
        r = await client.get(f"/projects/{project['id']}/synopsis")
        assert r.status_code == 200
        assert r.json()["roomData"] == []
        assert r.json()["colorSummary"] == {"trim": [], "ceilings": [], "walls": []}

    async def test_unknown_project(self, client):
        assert (await client.get(f"/projects/{uuid4()}/synopsis")).status_code == 404


class TestSuggestions:
    async def test_ranked_quick_picks(self, client):
        a = await _color(client, "A")
        b = await _color(client, "B")
        project = await _project(client)
        room = await _room(client, "Kitchen")
        photo = await _photo(client, project["id"], room_id=room["id"], filename="kitchen.jpg")
        for _ in range(3):
            await _annotate(client, photo["id"], a["id"], "Wall", product_line="Duration", sheen="Satin")
        await _annotate(client, photo["id"], b["id"], "Trim", product_line="Emerald", sheen="Semi-Gloss")
        # no explicit sheen: not a quick pick
        await _annotate(client, photo["id"], b["id"], "Trim", product_line="Emerald")

        r = await client.get(f"/projects/{project['id']}/annotation-suggestions")
        assert r.status_code == 200
        body = r.json()
        assert body["totalAnnotations"] == 5
        picks = [(s["colorCode"], s["surfaceType"], s["count"]) for s in body["suggestions"]]
        assert picks == [("A", "Wall", 3), ("B", "Trim", 1)]
        assert body["suggestions"][0]["roomName"] == "Kitchen"
        assert body["suggestions"][0]["photoFilename"] == "kitchen.jpg"

        r = await client.get(f"/projects/{project['id']}/annotation-suggestions", params={"limit": 1})
        assert len(r.json()["suggestions"]) == 1


class TestSynopses:
    async def _project_with_annotations(self, client):
        a = await _color(client, "A")
        b = await _color(client, "B")
        project = await _project(client)
        kitchen = await _room(client, "Kitchen")
        bath = await _room(client, "Bath")
        kp = await _photo(client, project["id"], room_id=kitchen["id"])
        bp = await _photo(client, project["id"], room_id=bath["id"])
        await _annotate(client, kp["id"], a["id"], "Wall")
        await _annotate(client, kp["id"], a["id"], "Wall")
        await _annotate(client, kp["id"], a["id"], "Trim")
        await _annotate(client, bp["id"], a["id"], "Wall")
        await _annotate(client, bp["id"], b["id"], "Ceiling")
        # no room: stays out of persisted entries
        loose = await _photo(client, project["id"])
        await _annotate(client, loose["id"], b["id"], "Ceiling")
        return project, a, b

    async def test_generate_then_delete_restores_usage(self, client):
        project, a, b = await self._project_with_annotations(client)
        assert (await _usage(client, a["id"]))[0] == 4
        assert (await _usage(client, b["id"]))[0] == 2

        r = await client.post(
            "/synopses", json={"project_id": project["id"], "title": "Final spec", "generate_from_annotations": True}
        )
        assert r.status_code == 201, r.text
        synopsis = r.json()
        assert len(synopsis["entries"]) == 4
        assert (await _usage(client, a["id"]))[0] == 4 + 3
        assert (await _usage(client, b["id"]))[0] == 2 + 1

        r = await client.delete(f"/synopses/{synopsis['id']}")
        assert r.status_code == 200
        assert r.json()["accounting_failures"] == []
        assert (await _usage(client, a["id"]))[0] == 4
        assert (await _usage(client, b["id"]))[0] == 2
        assert (await client.get(f"/synopses/{synopsis['id']}")).status_code == 404

    async def test_manual_entries(self, client):
        a = await _color(client, "A")
        b = await _color(client, "B")
        project = await _project(client)
        room = await _room(client, "Kitchen")
        r = await client.post("/synopses", json={"project_id": project["id"], "title": "Draft"})
        assert r.status_code == 201
        sid = r.json()["id"]
        assert r.json()["entries"] == []

        r = await client.post(
            f"/synopses/{sid}/entries",
            json={
                "room_id": room["id"],
                "color_id": a["id"],
                "surface_type": "Wall",
                "product_line": "Duration",
                "sheen": "Satin",
                "quantity": "2 gal",
            },
        )
        assert r.status_code == 201, r.text
        entry = r.json()
        usage, first_used = await _usage(client, a["id"])
        assert usage == 1
        assert first_used == entry["created_at"]

        r = await client.patch(f"/synopses/{sid}/entries/{entry['id']}", json={"color_id": b["id"]})
        assert r.status_code == 200
        assert (await _usage(client, a["id"]))[0] == 0
        assert (await _usage(client, b["id"]))[0] == 1

        r = await client.patch(f"/synopses/{sid}/entries/{entry['id']}", json={"sheen": None})
        assert r.status_code == 400
        r = await client.patch(f"/synopses/{sid}/entries/{entry['id']}", json={"color_id": str(uuid4())})
        assert r.status_code == 404
        assert (await _usage(client, b["id"]))[0] == 1

        r = await client.put(f"/synopses/{sid}", json={"title": "Final", "notes": "approved"})
        assert r.status_code == 200
        assert (r.json()["title"], r.json()["notes"], len(r.json()["entries"])) == ("Final", "approved", 1)

        r = await client.delete(f"/synopses/{sid}/entries/{entry['id']}")
        assert r.status_code == 200
        assert (await _usage(client, b["id"]))[0] == 0

    async def test_list_by_project(self, client):
        p1 = await _project(client, "One")
        p2 = await _project(client, "Two")
        await client.post("/synopses", json={"project_id": p1["id"], "title": "A"})
        await client.post("/synopses", json={"project_id": p2["id"], "title": "B"})
        r = await client.get("/synopses", params={"project_id": p1["id"]})
        assert [s["title"] for s in r.json()] == ["A"]

    async def test_unknown_project(self, client):
        r = await client.post("/synopses", json={"project_id": str(uuid4()), "title": "x"})
        assert r.status_code == 404


async def test_project_delete_releases_annotations_and_entries(client):
    a = await _color(client, "A")
    project = await _project(client)
    room = await _room(client, "Kitchen")
    photo = await _photo(client, project["id"], room_id=room["id"])
    await _annotate(client, photo["id"], a["id"], "Wall")
    await _annotate(client, photo["id"], a["id"], "Trim")
    r = await client.post(
        "/synopses", json={"project_id": project["id"], "title": "Spec", "generate_from_annotations": True}
    )
    assert r.status_code == 201
    assert (await _usage(client, a["id"]))[0] == 4

    r = await client.delete(f"/projects/{project['id']}")
    assert r.status_code == 200
    assert r.json()["accounting_failures"] == []
    assert (await _usage(client, a["id"]))[0] == 0
    assert (await client.get(f"/projects/{project['id']}")).status_code == 404
    assert (await client.get("/synopses", params={"project_id": project["id"]})).json() == []


async def test_recalculate_and_ledger(client, session_factory):
    from sqlalchemy import update

    from colorspec.db.models.catalog_color import CatalogColor

    a = await _color(client, "A")
    project = await _project(client)
    photo = await _photo(client, project["id"])
    await _annotate(client, photo["id"], a["id"])

    # simulate drift from a lost accounting update
    async with session_factory() as s:
        await s.execute(update(CatalogColor).where(CatalogColor.id == UUID(a["id"])).values(usage_count=9))
        await s.commit()

    r = await client.post(f"/colors/{a['id']}/usage/recalculate")
    assert r.status_code == 200
    assert r.json()["usage_count"] == 1

    r = await client.get(f"/colors/{a['id']}/usage-ledger")
    assert r.status_code == 200
    assert [(row["reason"], row["delta"]) for row in r.json()][0] == ("recalculated", -8)


@pytest.mark.parametrize("path", ["/projects", "/rooms", "/colors", "/synopses"])
async def test_list_endpoints_start_empty(client, path):
    r = await client.get(path)
    assert r.status_code == 200
    assert r.json() == []


class TestRooms:
    async def test_update(self, client):
        room = await _room(client, "Kitchen")
        r = await client.patch(f"/rooms/{room['id']}", json={"name": " Main Kitchen ", "room_type": "kitchen"})
        assert r.status_code == 200
        assert (r.json()["name"], r.json()["room_type"]) == ("Main Kitchen", "kitchen")

        r = await client.patch(f"/rooms/{room['id']}", json={"name": None})
        assert r.status_code == 400
        assert (await client.patch(f"/rooms/{uuid4()}", json={"name": "x"})).status_code == 404

    async def test_delete_unassigns_photos_and_annotations(self, client):
        a = await _color(client, "A")
        project = await _project(client)
        room = await _room(client, "Kitchen")
        photo = await _photo(client, project["id"], room_id=room["id"])
        ann = await _annotate(client, photo["id"], a["id"], "Trim")
        assert ann["room_id"] == room["id"]

        r = await client.delete(f"/rooms/{room['id']}")
        assert r.status_code == 200
        assert (await client.get("/rooms")).json() == []

        ann = (await client.get(f"/photos/{photo['id']}/annotations/{ann['id']}")).json()
        assert ann["room_id"] is None
        assert (await client.get(f"/projects/{project['id']}/photos")).json()[0]["room_id"] is None
        # usage is untouched: the annotation still references the color
        assert (await _usage(client, a["id"]))[0] == 1

        body = (await client.get(f"/projects/{project['id']}/synopsis")).json()
        assert [rd["roomName"] for rd in body["roomData"]] == ["Global/No Room Assigned"]

    async def test_delete_refused_while_synopsis_entries_reference_it(self, client):
        a = await _color(client, "A")
        project = await _project(client)
        room = await _room(client, "Kitchen")
        s = (await client.post("/synopses", json={"project_id": project["id"], "title": "Spec"})).json()
        await client.post(
            f"/synopses/{s['id']}/entries",
            json={
                "room_id": room["id"],
                "color_id": a["id"],
                "surface_type": "Wall",
                "product_line": "Duration",
                "sheen": "Satin",
            },
        )

        r = await client.delete(f"/rooms/{room['id']}")
        assert r.status_code == 409
        assert r.json()["detail"]["references"] == 1
        assert len((await client.get("/rooms")).json()) == 1
