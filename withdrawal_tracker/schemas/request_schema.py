from flask import current_app
from marshmallow import EXCLUDE, RAISE, ValidationError, fields, pre_load, validate, validates

from withdrawal_tracker.extensions import ma
from withdrawal_tracker.models.enums import CommentType, Decision, Priority
from withdrawal_tracker.utils.validation import clean_iban, is_valid_iban, is_valid_swift, parse_amount


class AmountField(fields.Field):
    """Accepts numbers or strings with thousands separators."""

    def _deserialize(self, value, attr, data, **kwargs):
        amount = parse_amount(value)
        if amount is None:
            raise ValidationError("Please enter a valid amount")
        return amount

    def _serialize(self, value, attr, obj, **kwargs):
        return float(value) if value is not None else None


class CreateRequestSchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE

    project_number = fields.Str(load_default=None, validate=validate.Length(max=100))
    ref_number = fields.Str(load_default=None, validate=validate.Length(max=100))
    country = fields.Str(required=True)
    beneficiary_name = fields.Str(required=True, validate=validate.Length(min=2, max=255))
    amount = AmountField(required=True)
    currency = fields.Str(required=True)
    swift_code = fields.Str(load_default=None, allow_none=True)
    iban = fields.Str(load_default=None, allow_none=True)
    value_date = fields.Date(load_default=None)
    project_details = fields.Str(load_default=None)
    reference_documentation = fields.Str(load_default=None)
    priority = fields.Str(load_default=Priority.MEDIUM, validate=validate.OneOf(Priority.ALL))
    draft = fields.Bool(load_default=False)

    @pre_load
    def accept_client_keys(self, data, **kwargs):
        # the web client posts camelCase form keys
        aliases = {
            "projectNumber": "project_number",
            "referenceNumber": "ref_number",
            "beneficiaryName": "beneficiary_name",
            "date": "value_date",
            "projectDetails": "project_details",
            "referenceDocumentation": "reference_documentation",
            "swiftCode": "swift_code",
        }
        data = dict(data)
        for src, dest in aliases.items():
            if src in data and dest not in data:
                data[dest] = data.pop(src)
        if isinstance(data.get("swift_code"), str):
            data["swift_code"] = data["swift_code"].strip().upper() or None
        if isinstance(data.get("iban"), str):
            data["iban"] = clean_iban(data["iban"]) or None
        return data

    @validates("amount")
    def validate_amount(self, value, **kwargs):
        limit = current_app.config.get("MAX_REQUEST_AMOUNT", 100_000_000)
        if value <= 0:
            raise ValidationError("Please enter a valid amount")
        if value > limit:
            raise ValidationError(f"Amount cannot exceed {limit:,}")

    @validates("currency")
    def validate_currency(self, value, **kwargs):
        supported = current_app.config.get("SUPPORTED_CURRENCIES", ("USD", "EUR", "AED"))
        if value not in supported:
            raise ValidationError(f"Currency must be one of {', '.join(supported)}")

    @validates("swift_code")
    def validate_swift_code(self, value, **kwargs):
        if value is not None and not is_valid_swift(value):
            raise ValidationError("Invalid SWIFT code format")

    @validates("iban")
    def validate_iban(self, value, **kwargs):
        if value is not None and not is_valid_iban(value):
            raise ValidationError("IBAN must be 15-34 characters: country code, check digits, account")


class UpdateFieldsSchema(ma.Schema):
    class Meta:
        unknown = RAISE

    value_date = fields.Date(allow_none=True)
    project_details = fields.Str(allow_none=True)
    reference_documentation = fields.Str(allow_none=True)
    priority = fields.Str(validate=validate.OneOf(Priority.ALL))
    expected_version = fields.Int(load_default=None)


class TransitionSchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE

    decision = fields.Str(required=True, validate=validate.OneOf(Decision.ALL))
    comments = fields.Str(load_default="", validate=validate.Length(max=2000))
    expected_version = fields.Int(load_default=None)
    # set by clients that edited fields just before approving
    modified_fields = fields.List(fields.Str(), load_default=None)


class CommentSchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE

    comment_text = fields.Str(required=True, validate=validate.Length(min=1, max=2000))
    # decision and system comments are written by the workflow only
    comment_type = fields.Str(load_default=CommentType.GENERAL, validate=validate.OneOf([CommentType.GENERAL]))


class RequestListQuerySchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE

    page = fields.Int(load_default=1, validate=validate.Range(min=1))
    limit = fields.Int(load_default=20, validate=validate.Range(min=1, max=100))
    stage = fields.Str(load_default=None)
    region = fields.Str(load_default=None)
    country = fields.Str(load_default=None)
    assigned_to = fields.Str(load_default=None)
    created_by = fields.Str(load_default=None)
    priority = fields.Str(load_default=None)
    currency = fields.Str(load_default=None)
    search = fields.Str(load_default=None)


class ReassignSchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE

    user_id = fields.Str(required=True, validate=validate.Length(min=1))
    comments = fields.Str(load_default="", validate=validate.Length(max=2000))
    expected_version = fields.Int(load_default=None)
