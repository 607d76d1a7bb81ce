"""Authentication-related Marshmallow schemas.

Input schemas are deliberately lenient (``fields.Raw``): they only pick the
known keys out of the body. Type and format rules are enforced by the session
service so every client gets the same field-level messages.
"""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, fields


class _LenientSchema(Schema):
    class Meta:
        unknown = EXCLUDE


class RegisterSchema(_LenientSchema):
    """Input payload for account registration."""

    email = fields.Raw(load_default=None, allow_none=True)
    password = fields.Raw(load_default=None, allow_none=True)
    name = fields.Raw(load_default=None, allow_none=True)


class LoginSchema(_LenientSchema):
    """Input payload for authenticating a user."""

    email = fields.Raw(load_default=None, allow_none=True)
    password = fields.Raw(load_default=None, allow_none=True)


class RefreshSchema(_LenientSchema):
    """Optional body for refresh/logout when the cookie is not available."""

    refresh_token = fields.Raw(load_default=None, allow_none=True)


class UserSchema(Schema):
    """Public user representation (no password hash)."""

    id = fields.Integer(required=True)
    email = fields.Email(required=True)
    name = fields.String(required=True)
    created_at = fields.DateTime(allow_none=True)
    updated_at = fields.DateTime(allow_none=True)


class SessionResponseSchema(Schema):
    """Response payload of register/login/refresh. The refresh token travels as a cookie."""

    user = fields.Nested(UserSchema, required=True)
    token = fields.String(required=True)
    token_type = fields.String(dump_default="Bearer")


class MessageSchema(Schema):
    message = fields.String(required=True)
