from marshmallow import EXCLUDE, fields, validate

from withdrawal_tracker.extensions import ma
from withdrawal_tracker.models.enums import Region, UserRole


class UserPublicSchema(ma.Schema):
    id = fields.Str()
    email = fields.Str()
    full_name = fields.Str()
    role = fields.Str()
    regional_assignment = fields.Str(allow_none=True)
    is_active = fields.Bool()


class CreateUserSchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE

    email = fields.Email(required=True)
    password = fields.Str(required=True, validate=validate.Length(min=8))
    full_name = fields.Str(required=True, validate=validate.Length(min=2, max=255))
    role = fields.Str(required=True, validate=validate.OneOf(UserRole.ALL))
    regional_assignment = fields.Str(load_default=None, allow_none=True, validate=validate.OneOf(Region.ALL))


class UpdateUserSchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE

    full_name = fields.Str(validate=validate.Length(min=2, max=255))
    role = fields.Str(validate=validate.OneOf(UserRole.ALL))
    regional_assignment = fields.Str(allow_none=True, validate=validate.OneOf(Region.ALL))
    is_active = fields.Bool()


class LoginSchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE

    email = fields.Email(required=True)
    password = fields.Str(required=True)
