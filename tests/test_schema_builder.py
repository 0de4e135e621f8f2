# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Tests for the credential schema builder."""
import pytest
from httpx import AsyncClient

from vdr_console.errors import ValidationError
from vdr_console.schema_builder import (
    JSON_SCHEMA_DRAFT,
    generate_json_schema,
    parse_json_schema,
    property_from_vocab,
    validate_document,
)

BASE = "/api/schemas"

HOME_PROPERTIES = [
    {"name": "ownerName", "type": "string", "title": "Owner name", "required": True, "minLength": 1},
    {
        "name": "address",
        "type": "object",
        "required": True,
        "children": [
            {"name": "street", "type": "string", "required": True},
            {"name": "city", "type": "string"},
        ],
    },
    {
        "name": "liens",
        "type": "array",
        "children": [{"name": "amount", "type": "number", "required": True}],
    },
]


class TestGeneration:
    def test_credential_subject_tree(self):
        schema = generate_json_schema({"id": "home", "title": "Home", "properties": HOME_PROPERTIES})
        assert schema["$schema"] == JSON_SCHEMA_DRAFT
        assert schema["$id"] == "https://openpropertyassociation.ca/credentials/schemas/home.json"
        assert schema["required"] == ["credentialSubject"]

        subject = schema["properties"]["credentialSubject"]
        assert subject["required"] == ["ownerName", "address"]
        assert subject["properties"]["ownerName"] == {"type": "string", "title": "Owner name", "minLength": 1}

        address = subject["properties"]["address"]
        assert address["required"] == ["street"]
        assert set(address["properties"]) == {"street", "city"}

        liens = subject["properties"]["liens"]
        assert liens["items"]["type"] == "object"
        assert liens["items"]["required"] == ["amount"]

    def test_vct_const(self):
        schema = generate_json_schema({"id": "x", "title": "X", "vct": "https://vct/home", "properties": []})
        assert schema["properties"]["vct"] == {"type": "string", "const": "https://vct/home"}
        assert "required" not in schema["properties"]["credentialSubject"]

    def test_property_from_vocab(self):
        prop = property_from_vocab({
            "name": "balance",
            "displayName": "Balance",
            "valueType": "currency",
            "required": True,
            "constraints": {"minimum": 0, "pattern": ""},
        })
        assert prop == {
            "name": "balance",
            "title": "Balance",
            "description": "",
            "type": "number",
            "required": True,
            "minimum": 0,
        }

    def test_property_from_vocab_format(self):
        prop = property_from_vocab({"name": "closingDate", "valueType": "date"})
        assert prop["type"] == "string"
        assert prop["format"] == "date"
        assert prop["title"] == "closingDate"


class TestParsing:
    def test_round_trip_structure(self):
        schema = generate_json_schema({"id": "home", "title": "Home", "properties": HOME_PROPERTIES})
        parsed = parse_json_schema(schema)
        assert parsed["$id"].endswith("/home.json")
        assert parsed["title"] == "Home"

        names = [p["name"] for p in parsed["properties"]]
        assert names == ["ownerName", "address", "liens"]
        address = parsed["properties"][1]
        assert address["required"] is True
        assert address["children"][0] == {
            "name": "street", "type": "string", "path": ["address", "street"], "required": True,
        }
        liens = parsed["properties"][2]
        assert liens["children"][0]["path"] == ["liens", "amount"]

    def test_plain_schema_without_credential_subject(self):
        parsed = parse_json_schema({
            "type": "object",
            "properties": {"a": {"type": "integer", "description": "A"}},
            "required": ["a"],
        })
        assert parsed["properties"] == [
            {"name": "a", "type": "integer", "path": ["a"], "required": True, "description": "A"}
        ]
        assert parsed["$id"] == ""

    def test_non_object_rejected(self):
        with pytest.raises(ValidationError):
            parse_json_schema(["not", "a", "schema"])


class TestValidation:
    def test_valid_document(self):
        schema = generate_json_schema({"id": "home", "title": "Home", "properties": HOME_PROPERTIES})
        document = {"credentialSubject": {"ownerName": "Ada", "address": {"street": "1 Main"}}}
        assert validate_document(schema, document) == {"valid": True, "errors": []}

    def test_errors_have_paths(self):
        schema = generate_json_schema({"id": "home", "title": "Home", "properties": HOME_PROPERTIES})
        result = validate_document(schema, {"credentialSubject": {"ownerName": 5, "address": {}}})
        assert result["valid"] is False
        assert "credentialSubject.ownerName: 5 is not of type 'string'" in result["errors"]
        assert any(e.startswith("credentialSubject.address:") for e in result["errors"])

    def test_root_errors(self):
        schema = generate_json_schema({"id": "home", "title": "Home", "properties": []})
        result = validate_document(schema, {})
        assert result["errors"] == ["(root): 'credentialSubject' is a required property"]

    def test_error_cap(self):
        schema = {"type": "object", "properties": {f"p{i}": {"type": "string"} for i in range(5)}}
        result = validate_document(schema, {f"p{i}": i for i in range(5)}, max_errors=2)
        assert len(result["errors"]) == 3
        assert result["errors"][-1] == "... and more errors (stopped at 2)"

    def test_invalid_schema(self):
        result = validate_document({"type": "nonsense"}, {})
        assert result["valid"] is False
        assert result["errors"][0].startswith("Invalid schema:")


# =============================================================================
# API
# =============================================================================


@pytest.mark.asyncio
async def test_project_crud(client: AsyncClient, user_headers: dict):
    response = await client.post(
        BASE,
        json={"id": "home", "title": "Home", "properties": HOME_PROPERTIES},
        headers=user_headers,
    )
    assert response.status_code == 201, response.text
    assert response.json()["createdBy"]["login"] == "octocat"

    response = await client.post(BASE, json={"id": "home", "title": "Again"}, headers=user_headers)
    assert response.status_code == 409

    response = await client.put(f"{BASE}/home", json={"vct": "https://vct/home"}, headers=user_headers)
    assert response.json()["vct"] == "https://vct/home"
    assert response.json()["title"] == "Home"

    response = await client.get(f"{BASE}/home/json-schema")
    assert response.json()["properties"]["vct"]["const"] == "https://vct/home"

    response = await client.post(
        f"{BASE}/home/validate",
        json={"data": {"vct": "https://vct/home", "credentialSubject": {"ownerName": "Ada", "address": {"street": "x"}}}},
    )
    assert response.json() == {"valid": True, "errors": []}

    assert [p["id"] for p in (await client.get(BASE)).json()] == ["home"]
    assert (await client.delete(f"{BASE}/home", headers=user_headers)).json() == {"success": True}
    response = await client.get(f"{BASE}/home")
    assert response.status_code == 404
    assert response.json()["detail"] == "Schema project not found"


@pytest.mark.asyncio
async def test_project_requires_title(client: AsyncClient, user_headers: dict):
    response = await client.post(BASE, json={"title": "  "}, headers=user_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Title is required"


@pytest.mark.asyncio
async def test_generated_id(client: AsyncClient, user_headers: dict):
    response = await client.post(BASE, json={"title": "Untitled"}, headers=user_headers)
    project_id = response.json()["id"]
    assert len(project_id) == 36
    assert (await client.get(f"{BASE}/{project_id}")).status_code == 200


@pytest.mark.asyncio
async def test_parse_endpoint(client: AsyncClient):
    response = await client.post(
        f"{BASE}/parse",
        json={"schema": {"title": "T", "properties": {"credentialSubject": {
            "type": "object", "properties": {"x": {"type": "string"}}}}}},
    )
    assert response.status_code == 200
    assert response.json()["properties"][0]["path"] == ["x"]


@pytest.mark.asyncio
async def test_from_vocab(client: AsyncClient, user_headers: dict):
    await client.post("/api/dictionary/vocab-types", json={"name": "Mortgage"}, headers=user_headers)
    await client.post(
        "/api/dictionary/vocab-types/mortgage/properties",
        json={"name": "rate", "valueType": "number", "required": True},
        headers=user_headers,
    )

    response = await client.post(f"{BASE}/from-vocab/mortgage")
    assert response.status_code == 200
    project = response.json()
    assert project["title"] == "Mortgage"
    assert project["vocabTypeId"] == "mortgage"
    assert project["properties"][0]["type"] == "number"
    assert (await client.get(BASE)).json() == []

    response = await client.post(f"{BASE}/from-vocab/unknown")
    assert response.status_code == 404
