# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Tests for the data dictionary."""
import pytest
from httpx import AsyncClient

from vdr_console.dictionary import clean_constraints, group_by_category

BASE = "/api/dictionary"


async def create_vocab_type(client: AsyncClient, headers: dict, **body) -> dict:
    response = await client.post(f"{BASE}/vocab-types", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def add_property(client: AsyncClient, headers: dict, vocab_type_id: str, **body) -> dict:
    response = await client.post(
        f"{BASE}/vocab-types/{vocab_type_id}/properties", json=body, headers=headers
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestHelpers:
    def test_clean_constraints(self):
        assert clean_constraints({"minLength": 1, "pattern": "", "enum": [], "bogus": 3}) == {"minLength": 1}

    def test_clean_constraints_empty(self):
        assert clean_constraints({"pattern": ""}) is None
        assert clean_constraints(None) is None

    def test_group_by_category(self):
        categories = [
            {"id": "b", "name": "B", "order": 2},
            {"id": "a", "name": "A", "order": 1},
            {"id": "other", "name": "Other", "order": 999},
        ]
        vocab_types = [
            {"id": "t1", "category": "a"},
            {"id": "t2", "category": "other"},
            {"id": "t3", "category": "missing"},
        ]
        groups = group_by_category(categories, vocab_types)
        assert [g["id"] for g in groups] == ["a", "b", "other"]
        assert [vt["id"] for vt in groups[0]["vocabTypes"]] == ["t1"]
        assert groups[1]["vocabTypes"] == []
        assert [vt["id"] for vt in groups[2]["vocabTypes"]] == ["t2", "t3"]

    def test_group_without_leftovers_has_no_other(self):
        groups = group_by_category([{"id": "a", "name": "A", "order": 1}], [{"id": "t", "category": "a"}])
        assert [g["id"] for g in groups] == ["a"]


# =============================================================================
# Vocab types
# =============================================================================


@pytest.mark.asyncio
async def test_create_vocab_type_defaults(client: AsyncClient, user_headers: dict):
    vocab_type = await create_vocab_type(client, user_headers, name="Property Address")
    assert vocab_type["id"] == "property-address"
    assert vocab_type["category"] == "other"
    assert vocab_type["parentTypeId"] is None
    assert vocab_type["properties"] == []
    assert vocab_type["sources"] == []

    response = await client.post(
        f"{BASE}/vocab-types", json={"name": "Property Address"}, headers=user_headers
    )
    assert response.status_code == 409
    assert response.json()["detail"] == "Vocab type with this ID already exists"


@pytest.mark.asyncio
async def test_create_vocab_type_requires_name(client: AsyncClient, user_headers: dict):
    response = await client.post(f"{BASE}/vocab-types", json={}, headers=user_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_filter_and_update_vocab_types(client: AsyncClient, user_headers: dict):
    await create_vocab_type(client, user_headers, name="Mortgage Balance", category="financial")
    await create_vocab_type(
        client, user_headers, name="Property Address", category="property", parentTypeId="mortgage-balance"
    )

    response = await client.get(f"{BASE}/vocab-types", params={"category": "financial"})
    assert [vt["id"] for vt in response.json()] == ["mortgage-balance"]

    response = await client.get(f"{BASE}/vocab-types", params={"search": "ADDR"})
    assert [vt["id"] for vt in response.json()] == ["property-address"]

    response = await client.put(
        f"{BASE}/vocab-types/property-address",
        json={"description": "Where it is", "parentTypeId": None},
        headers=user_headers,
    )
    updated = response.json()
    assert updated["description"] == "Where it is"
    assert updated["parentTypeId"] is None
    assert updated["category"] == "property"
    assert updated["updatedBy"]["login"] == "octocat"


@pytest.mark.asyncio
async def test_delete_vocab_type(client: AsyncClient, user_headers: dict):
    await create_vocab_type(client, user_headers, name="Temp")
    response = await client.delete(f"{BASE}/vocab-types/temp", headers=user_headers)
    assert response.json() == {"success": True}
    response = await client.delete(f"{BASE}/vocab-types/temp", headers=user_headers)
    assert response.status_code == 404
    assert response.json()["detail"] == "Vocab type not found"


# =============================================================================
# Properties
# =============================================================================


@pytest.mark.asyncio
async def test_property_lifecycle(client: AsyncClient, user_headers: dict):
    await create_vocab_type(client, user_headers, name="Mortgage")
    vocab_type = await add_property(
        client, user_headers, "mortgage",
        name="balance", valueType="currency", constraints={"minimum": 0, "pattern": ""},
    )
    prop = vocab_type["properties"][0]
    assert prop["id"].startswith("prop-")
    assert prop["displayName"] == "balance"
    assert prop["required"] is False
    assert prop["constraints"] == {"minimum": 0}

    response = await client.post(
        f"{BASE}/vocab-types/mortgage/properties", json={"name": "balance"}, headers=user_headers
    )
    assert response.status_code == 409

    response = await client.put(
        f"{BASE}/vocab-types/mortgage/properties/{prop['id']}",
        json={"displayName": "Balance", "constraints": {}},
        headers=user_headers,
    )
    updated = response.json()["properties"][0]
    assert updated["displayName"] == "Balance"
    assert updated["valueType"] == "currency"
    assert "constraints" not in updated

    response = await client.delete(
        f"{BASE}/vocab-types/mortgage/properties/{prop['id']}", headers=user_headers
    )
    assert response.json()["properties"] == []

    response = await client.delete(
        f"{BASE}/vocab-types/mortgage/properties/{prop['id']}", headers=user_headers
    )
    assert response.status_code == 404
    assert response.json()["detail"] == "Property not found"


@pytest.mark.asyncio
async def test_property_requires_name(client: AsyncClient, user_headers: dict):
    await create_vocab_type(client, user_headers, name="Mortgage")
    response = await client.post(
        f"{BASE}/vocab-types/mortgage/properties", json={"description": "x"}, headers=user_headers
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Property name is required"


@pytest.mark.asyncio
async def test_move_properties(client: AsyncClient, user_headers: dict):
    await create_vocab_type(client, user_headers, name="Source")
    await create_vocab_type(client, user_headers, name="Target")
    await add_property(client, user_headers, "source", name="a")
    vocab_type = await add_property(client, user_headers, "source", name="b")
    prop_a, prop_b = vocab_type["properties"]

    response = await client.post(
        f"{BASE}/vocab-types/source/properties/move",
        json={"propertyIds": [prop_a["id"]], "targetVocabTypeId": "target"},
        headers=user_headers,
    )
    assert response.status_code == 200, response.text
    data = response.json()
    assert [p["name"] for p in data["source"]["properties"]] == ["b"]
    moved = data["target"]["properties"]
    assert [p["name"] for p in moved] == ["a"]
    assert moved[0]["id"] != prop_a["id"]

    stored = (await client.get(f"{BASE}/vocab-types/target")).json()
    assert [p["name"] for p in stored["properties"]] == ["a"]


@pytest.mark.asyncio
async def test_move_properties_name_clash(client: AsyncClient, user_headers: dict):
    await create_vocab_type(client, user_headers, name="Source")
    await create_vocab_type(client, user_headers, name="Target")
    vocab_type = await add_property(client, user_headers, "source", name="a")
    await add_property(client, user_headers, "target", name="a")

    response = await client.post(
        f"{BASE}/vocab-types/source/properties/move",
        json={"propertyIds": [vocab_type["properties"][0]["id"]], "targetVocabTypeId": "target"},
        headers=user_headers,
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_move_to_same_type_rejected(client: AsyncClient, user_headers: dict):
    await create_vocab_type(client, user_headers, name="Source")
    response = await client.post(
        f"{BASE}/vocab-types/source/properties/move",
        json={"propertyIds": ["x"], "targetVocabTypeId": "source"},
        headers=user_headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_move_to_missing_target(client: AsyncClient, user_headers: dict):
    await create_vocab_type(client, user_headers, name="Source")
    response = await client.post(
        f"{BASE}/vocab-types/source/properties/move",
        json={"propertyIds": ["x"], "targetVocabTypeId": "nope"},
        headers=user_headers,
    )
    assert response.status_code == 404


# =============================================================================
# Sources
# =============================================================================


@pytest.mark.asyncio
async def test_source_lifecycle(client: AsyncClient, user_headers: dict):
    await create_vocab_type(client, user_headers, name="Mortgage")
    url = f"{BASE}/vocab-types/mortgage/sources"

    response = await client.post(
        url, json={"entityId": "copa-bank", "entityName": "Bank", "regionsCovered": ["ON"]},
        headers=user_headers,
    )
    assert response.status_code == 201
    source = response.json()["sources"][0]
    assert source["entityName"] == "Bank"
    assert source["addedBy"]["login"] == "octocat"

    response = await client.post(url, json={"entityId": "copa-bank"}, headers=user_headers)
    assert response.status_code == 409

    response = await client.put(
        f"{url}/copa-bank", json={"updateFrequency": "daily"}, headers=user_headers
    )
    source = response.json()["sources"][0]
    assert source["updateFrequency"] == "daily"
    assert source["regionsCovered"] == ["ON"]

    response = await client.delete(f"{url}/copa-bank", headers=user_headers)
    assert response.json()["sources"] == []
    response = await client.delete(f"{url}/copa-bank", headers=user_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_source_requires_entity_id(client: AsyncClient, user_headers: dict):
    await create_vocab_type(client, user_headers, name="Mortgage")
    response = await client.post(
        f"{BASE}/vocab-types/mortgage/sources", json={"entityName": "x"}, headers=user_headers
    )
    assert response.status_code == 400


# =============================================================================
# Categories, search, export, stats
# =============================================================================


@pytest.mark.asyncio
async def test_categories(client: AsyncClient, user_headers: dict):
    response = await client.post(
        f"{BASE}/categories", json={"name": " Financial ", "description": "Money"}, headers=user_headers
    )
    assert response.status_code == 201
    assert response.json() == {"id": "financial", "name": "Financial", "description": "Money", "order": 1}

    response = await client.post(f"{BASE}/categories", json={"name": "Property"}, headers=user_headers)
    assert response.json()["order"] == 2

    response = await client.post(f"{BASE}/categories", json={"name": "FINANCIAL"}, headers=user_headers)
    assert response.status_code == 409

    await create_vocab_type(client, user_headers, name="Balance", category="financial")
    await create_vocab_type(client, user_headers, name="Misc")

    groups = (await client.get(f"{BASE}/categories/grouped")).json()
    assert [g["id"] for g in groups] == ["financial", "property", "other"]
    assert [vt["id"] for vt in groups[0]["vocabTypes"]] == ["balance"]
    assert [vt["id"] for vt in groups[2]["vocabTypes"]] == ["misc"]


@pytest.mark.asyncio
async def test_search_matches_properties(client: AsyncClient, user_headers: dict):
    await create_vocab_type(client, user_headers, name="Mortgage")
    await create_vocab_type(client, user_headers, name="Address")
    await add_property(client, user_headers, "mortgage", name="lender", displayName="Lender Name")

    response = await client.get(f"{BASE}/search", params={"q": "lender"})
    assert [vt["id"] for vt in response.json()["vocabTypes"]] == ["mortgage"]

    response = await client.get(f"{BASE}/search", params={"q": "l"})
    assert response.json() == {"vocabTypes": []}


@pytest.mark.asyncio
async def test_export_and_stats(client: AsyncClient, user_headers: dict):
    await client.post(f"{BASE}/categories", json={"name": "Financial"}, headers=user_headers)
    await create_vocab_type(client, user_headers, name="Mortgage", category="financial")
    await create_vocab_type(client, user_headers, name="Address")
    await add_property(client, user_headers, "mortgage", name="a")
    await add_property(client, user_headers, "mortgage", name="b")
    await client.post(
        f"{BASE}/vocab-types/address/sources", json={"entityId": "copa-x"}, headers=user_headers
    )

    export = (await client.get(f"{BASE}/export")).json()
    assert "exportedAt" in export
    assert [c["id"] for c in export["categories"]] == ["financial"]
    assert [vt["id"] for vt in export["vocabTypes"]] == ["mortgage", "address"]

    stats = (await client.get(f"{BASE}/stats")).json()
    assert stats == {
        "totalVocabTypes": 2,
        "totalProperties": 2,
        "totalSources": 1,
        "totalCategories": 1,
        "categoryCounts": {"financial": 1, "other": 1},
    }
