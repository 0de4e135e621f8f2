# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Request models for the console API.

Records travel as camelCase JSON. Routers hand the record modules
``model.model_dump(by_alias=True, exclude_unset=True)``, so a field
the client did not send is absent and an explicit ``null`` is None.
"""
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def body(self) -> dict:
        return self.model_dump(by_alias=True, exclude_unset=True)


# =============================================================================
# Entities
# =============================================================================


class EntityFields(CamelModel):
    name: Optional[str] = Field(None, description="Organisation name")
    description: Optional[str] = None
    logo_uri: Optional[str] = None
    primary_color: Optional[str] = None
    website: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    contact_name: Optional[str] = None
    did: Optional[str] = None
    regions_covered: Optional[list[str]] = None
    data_provider_types: Optional[list[str]] = None
    service_provider_types: Optional[list[str]] = None
    entity_types: Optional[list[str]] = None
    entity_type: Optional[str] = Field(None, description="Legacy single entity type")
    data_schema: Optional[dict[str, Any]] = None
    status: Optional[str] = Field(None, description="active | pending | inactive")


class CreateEntityRequest(EntityFields):
    id: Optional[str] = Field(None, description="Entity id; derived from name when omitted")


class UpdateEntityRequest(EntityFields):
    new_id: Optional[str] = Field(None, description="Rename the entity to this id")


# =============================================================================
# Credential catalogue
# =============================================================================


class ImportCredentialRequest(CamelModel):
    schema_data: Optional[dict[str, Any]] = None
    cred_def_data: Optional[dict[str, Any]] = None
    ecosystem_tag_id: Optional[str] = None
    issuer_name: Optional[str] = None
    schema_source_url: Optional[str] = None
    cred_def_source_url: Optional[str] = None
    register_with_orbit: bool = False


class ImportUrlRequest(CamelModel):
    url: Optional[str] = Field(None, description="IndyScan or CandyScan transaction page")


class UpdateCredentialRequest(CamelModel):
    ecosystem_tag: Optional[str] = None
    issuer_name: Optional[str] = None


class CreateTagRequest(CamelModel):
    name: Optional[str] = None


# =============================================================================
# Data dictionary
# =============================================================================


class VocabTypeRequest(CamelModel):
    id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    parent_type_id: Optional[str] = None
    properties: Optional[list[dict[str, Any]]] = None
    sources: Optional[list[dict[str, Any]]] = None


class VocabPropertyRequest(CamelModel):
    id: Optional[str] = None
    name: Optional[str] = None
    display_name: Optional[str] = None
    description: Optional[str] = None
    value_type: Optional[str] = None
    required: Optional[bool] = None
    sample_value: Optional[str] = None
    path: Optional[str] = None
    json_ld_term: Optional[str] = None
    constraints: Optional[dict[str, Any]] = None
    metadata: Optional[dict[str, Any]] = None


class MovePropertiesRequest(CamelModel):
    property_ids: list[str] = Field(default_factory=list)
    target_vocab_type_id: str


class VocabSourceRequest(CamelModel):
    entity_id: Optional[str] = None
    entity_name: Optional[str] = None
    regions_covered: Optional[list[str]] = None
    update_frequency: Optional[str] = None
    notes: Optional[str] = None
    api_endpoint: Optional[str] = None


class CategoryRequest(CamelModel):
    name: Optional[str] = None
    description: Optional[str] = None
    order: Optional[int] = None


# =============================================================================
# Harmonization
# =============================================================================


class FieldMappingRequest(CamelModel):
    entity_id: Optional[str] = None
    entity_name: Optional[str] = None
    source_id: Optional[str] = None
    source_name: Optional[str] = None
    source_type: Optional[str] = None
    furnisher_field_id: Optional[str] = None
    furnisher_field_name: Optional[str] = None
    field_path: Optional[str] = None
    vocab_type_id: Optional[str] = None
    vocab_type_name: Optional[str] = None
    vocab_property_id: Optional[str] = None
    vocab_property_name: Optional[str] = None
    transform: Optional[str] = None
    notes: Optional[str] = None


# =============================================================================
# Assets
# =============================================================================


class ManagedAssetUpdateRequest(CamelModel):
    name: Optional[str] = None
    type: Optional[str] = Field(None, description="entity-logo | credential-background | credential-icon")
    entity_id: Optional[str] = None
    published_uri: Optional[str] = None
    is_published: Optional[bool] = None


class ManagedAssetCreateRequest(ManagedAssetUpdateRequest):
    filename: Optional[str] = Field(None, description="Name returned by the upload endpoint")
    original_name: Optional[str] = None
    mimetype: Optional[str] = None


# =============================================================================
# Forms
# =============================================================================


class FormRequest(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    form_schema: Optional[dict[str, Any]] = Field(None, alias="schema")
    mode: Optional[str] = Field(None, description="simple | advanced")


class FormsSettingsRequest(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    credential_registry_path: Optional[str] = None


# =============================================================================
# Badges
# =============================================================================


class BadgeRequest(CamelModel):
    id: Optional[str] = None
    schema_id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    category_id: Optional[str] = None
    eligibility_rules: Optional[list[dict[str, Any]]] = None
    rule_logic: Optional[str] = Field(None, description="all | any")
    evidence_config: Optional[list[dict[str, Any]]] = None
    proof_method: Optional[str] = None
    template_uri: Optional[str] = None
    template_asset_id: Optional[str] = None
    status: Optional[str] = Field(None, description="draft | published")
    version: Optional[str] = None


class BadgeSettingsRequest(CamelModel):
    categories: Optional[list[dict[str, Any]]] = None
    proof_methods: Optional[list[dict[str, Any]]] = None


# =============================================================================
# Schema builder
# =============================================================================


class SchemaProjectRequest(CamelModel):
    id: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    issuer_entity_id: Optional[str] = None
    vct: Optional[str] = None
    properties: Optional[list[dict[str, Any]]] = None


class ParseSchemaRequest(CamelModel):
    document: dict[str, Any] = Field(..., alias="schema")


class ValidateDocumentRequest(CamelModel):
    data: Any = None


# =============================================================================
# Settings
# =============================================================================


class OrbitCredentialsRequest(CamelModel):
    lob_id: str = Field(..., description="Orbit line-of-business id")
    api_key: Optional[str] = Field(None, description="Omit or leave empty to keep the stored key")


class OrbitApiRequest(CamelModel):
    base_url: str
