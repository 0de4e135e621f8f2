# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Forms builder persistence.

Forms live in the ``forms`` table. Every read and write is scoped to
the owning user (``github_user_id``); the only public read is by slug,
and only for published forms.
"""
import copy
import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from vdr_console import config
from vdr_console.auth import User
from vdr_console.db.models import Form
from vdr_console.errors import NotFoundError, ValidationError
from vdr_console.store import SettingsStore
from vdr_console.utils import to_iso

log = logging.getLogger(__name__)

FIELD_TYPES = (
    "text",
    "email",
    "phone",
    "number",
    "date",
    "textarea",
    "select",
    "radio",
    "checkbox",
    "verified-credential",
)

FORM_MODES = ("simple", "advanced")

forms_settings = SettingsStore(
    "forms-builder",
    {"credentialRegistryPath": "credentials/branding"},
)


def _get_db_session():
    """Late-binding accessor for DB session context manager."""
    from vdr_console.db.session import get_db_session
    return get_db_session()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def default_form_schema() -> dict:
    return {
        "sections": [{"id": str(uuid.uuid4()), "title": "Section 1", "fields": []}],
        "infoScreen": None,
        "successScreen": {
            "title": "Thank you!",
            "content": "Your form has been submitted successfully.",
        },
    }


def validate_form_schema(schema: dict) -> list[str]:
    """Problems with a form schema; empty when it is valid.

    Every field needs a known type and a non-empty ``name`` that is
    unique across the whole form (names become the submission's JSON
    keys).
    """
    errors = []
    sections = schema.get("sections") if isinstance(schema, dict) else None
    if not isinstance(sections, list):
        return ["Schema must contain a list of sections"]

    seen: set[str] = set()
    for s_index, section in enumerate(sections, start=1):
        if not isinstance(section, dict):
            errors.append(f"Section {s_index}: must be an object")
            continue
        title = section.get("title") or f"Section {s_index}"
        fields = section.get("fields") or []
        if not isinstance(fields, list):
            errors.append(f"{title}: fields must be a list")
            continue
        for f_index, field in enumerate(fields, start=1):
            where = f"{title}, field {f_index}"
            if not isinstance(field, dict):
                errors.append(f"{where}: must be an object")
                continue
            if field.get("type") not in FIELD_TYPES:
                errors.append(f"{where}: unknown field type '{field.get('type')}'")
            name = field.get("name")
            if name is not None and not isinstance(name, str):
                errors.append(f"{where}: name must be a string")
                continue
            name = (name or "").strip()
            if not name:
                errors.append(f"{where}: name is required")
            elif name in seen:
                errors.append(f"{where}: duplicate field name '{name}'")
            else:
                seen.add(name)
    return errors


def _check_schema(schema: dict) -> None:
    errors = validate_form_schema(schema)
    if errors:
        raise ValidationError("Invalid form schema: " + "; ".join(errors))


def _check_mode(mode: Optional[str]) -> None:
    if mode is not None and mode not in FORM_MODES:
        raise ValidationError(f"Invalid mode. Must be one of: {', '.join(FORM_MODES)}")


def form_to_dict(form: Form) -> dict:
    return {
        "id": form.id,
        "title": form.title,
        "description": form.description or "",
        "slug": form.slug,
        "schema": form.schema_json,
        "status": form.status,
        "mode": form.mode,
        "authorName": form.author_name,
        "authorEmail": form.author_email,
        "authorOrganization": form.author_organization,
        "githubUserId": form.github_user_id,
        "githubUsername": form.github_username,
        "clonedFrom": form.cloned_from,
        "createdAt": to_iso(form.created_at),
        "updatedAt": to_iso(form.updated_at),
        "publishedAt": to_iso(form.published_at),
    }


def form_list_item(form: Form) -> dict:
    return {
        "id": form.id,
        "title": form.title,
        "description": form.description or "",
        "status": form.status,
        "mode": form.mode,
        "createdAt": to_iso(form.created_at),
        "updatedAt": to_iso(form.updated_at),
        "publishedAt": to_iso(form.published_at),
        "slug": form.slug,
    }


def public_url(slug: str) -> str:
    return f"{config.FORMS_PUBLIC_URL.rstrip('/')}/f/{slug}"


def _owned(db, form_id: str, user: User) -> Form:
    form = db.query(Form).filter_by(id=form_id, github_user_id=user.id).first()
    if form is None:
        raise NotFoundError("Form not found")
    return form


def _fresh_ids(schema: dict) -> dict:
    cloned = copy.deepcopy(schema)
    for section in cloned.get("sections") or []:
        section["id"] = str(uuid.uuid4())
        for field in section.get("fields") or []:
            field["id"] = str(uuid.uuid4())
    return cloned


class FormStore:
    """CRUD and publishing for forms owned by a user."""

    def list_forms(self, user: User) -> list[dict]:
        with _get_db_session() as db:
            rows = (
                db.query(Form)
                .filter_by(github_user_id=user.id)
                .order_by(Form.updated_at.desc())
                .all()
            )
            return [form_list_item(row) for row in rows]

    def get_form(self, form_id: str, user: User) -> dict:
        with _get_db_session() as db:
            return form_to_dict(_owned(db, form_id, user))

    def get_published_by_slug(self, slug: str) -> dict:
        with _get_db_session() as db:
            form = db.query(Form).filter_by(slug=slug, status="published").first()
            if form is None:
                raise NotFoundError("Form not found")
            return form_to_dict(form)

    def create_form(self, body: dict, user: User) -> dict:
        title = (body.get("title") or "").strip()
        if not title:
            raise ValidationError("Title is required")
        schema = body.get("schema") or default_form_schema()
        _check_schema(schema)
        _check_mode(body.get("mode"))

        now = _utcnow()
        form = Form(
            id=str(uuid.uuid4()),
            title=title,
            description=body.get("description") or "",
            schema_json=schema,
            status="draft",
            mode=body.get("mode") or "simple",
            author_name=user.name,
            author_email=user.email,
            github_user_id=user.id,
            github_username=user.login,
            created_at=now,
            updated_at=now,
        )
        with _get_db_session() as db:
            db.add(form)
            db.flush()
            result = form_to_dict(form)
        log.info(f"Created form {result['id']} for {user.login}")
        return result

    def update_form(self, form_id: str, body: dict, user: User) -> dict:
        if body.get("title") is not None and not body["title"].strip():
            raise ValidationError("Title cannot be empty")
        if body.get("schema") is not None:
            _check_schema(body["schema"])
        _check_mode(body.get("mode"))

        with _get_db_session() as db:
            form = _owned(db, form_id, user)
            if body.get("title") is not None:
                form.title = body["title"].strip()
            if body.get("description") is not None:
                form.description = body["description"]
            if body.get("schema") is not None:
                form.schema_json = body["schema"]
            if body.get("mode") is not None:
                form.mode = body["mode"]
            form.updated_at = _utcnow()
            db.flush()
            return form_to_dict(form)

    def delete_form(self, form_id: str, user: User) -> None:
        with _get_db_session() as db:
            db.delete(_owned(db, form_id, user))
        log.info(f"Deleted form {form_id}")

    def publish_form(self, form_id: str, user: User) -> dict:
        """Publish a form; the slug is assigned once and kept across re-publishes."""
        with _get_db_session() as db:
            form = _owned(db, form_id, user)
            now = _utcnow()
            if not form.slug:
                form.slug = str(uuid.uuid4())
            form.status = "published"
            form.published_at = now
            form.updated_at = now
            db.flush()
            result = form_to_dict(form)
        result["publicUrl"] = public_url(result["slug"])
        log.info(f"Published form {form_id} at {result['publicUrl']}")
        return result

    def unpublish_form(self, form_id: str, user: User) -> dict:
        with _get_db_session() as db:
            form = _owned(db, form_id, user)
            form.status = "draft"
            form.updated_at = _utcnow()
            db.flush()
            return form_to_dict(form)

    def clone_form(self, form_id: str, user: User) -> dict:
        with _get_db_session() as db:
            source = _owned(db, form_id, user)
            now = _utcnow()
            clone = Form(
                id=str(uuid.uuid4()),
                title=f"{source.title} (Copy)",
                description=source.description,
                schema_json=_fresh_ids(source.schema_json or default_form_schema()),
                status="draft",
                mode=source.mode,
                author_name=user.name,
                author_email=user.email,
                author_organization=source.author_organization,
                github_user_id=user.id,
                github_username=user.login,
                cloned_from=source.id,
                created_at=now,
                updated_at=now,
            )
            db.add(clone)
            db.flush()
            return form_to_dict(clone)


form_store = FormStore()
