# SPDX-License-Identifier: AGPL-3.0-only

"""
Input validation schemas using Marshmallow for sentiment requests.
"""
from marshmallow import Schema, fields, validate, ValidationError, EXCLUDE

LOCALES = ['he', 'en']


class SentimentRequestSchema(Schema):
    """Validation schema for brand sentiment requests."""

    class Meta:
        unknown = EXCLUDE

    keywords = fields.Str(
        required=True,
        validate=validate.Length(min=1, max=500),
        error_messages={
            'required': 'Keywords field is required',
            'invalid': 'Keywords must be a string'
        }
    )
    brand_name = fields.Str(
        required=False,
        allow_none=True,
        validate=validate.Length(max=200),
        data_key='brandName',
        error_messages={'invalid': 'Brand name must be a string'}
    )
    brand_id = fields.UUID(
        required=False,
        allow_none=True,
        data_key='brandId',
        error_messages={'invalid_uuid': 'Brand id must be a valid UUID'}
    )
    locale = fields.Str(
        required=False,
        validate=validate.OneOf(LOCALES),
        load_default='he',
        error_messages={'invalid': 'Locale must be he or en'}
    )


class EngagementSchema(Schema):
    """Engagement counters supplied with a post."""

    class Meta:
        unknown = EXCLUDE

    likes = fields.Int(required=False, validate=validate.Range(min=0))
    comments = fields.Int(required=False, validate=validate.Range(min=0))
    shares = fields.Int(required=False, validate=validate.Range(min=0))


class PostSentimentRequestSchema(Schema):
    """Validation schema for post sentiment requests."""

    class Meta:
        unknown = EXCLUDE

    post_id = fields.UUID(
        required=True,
        data_key='postId',
        error_messages={'required': 'Post id is required', 'invalid_uuid': 'Post id must be a valid UUID'}
    )
    post_content = fields.Str(
        required=True,
        validate=validate.Length(min=1),
        data_key='postContent',
        error_messages={'required': 'Post content is required'}
    )
    platform = fields.Str(required=False, allow_none=True, validate=validate.Length(max=50))
    engagement = fields.Nested(EngagementSchema, required=False, allow_none=True)
    locale = fields.Str(
        required=False,
        validate=validate.OneOf(LOCALES),
        load_default='he',
        error_messages={'invalid': 'Locale must be he or en'}
    )


def validate_request(schema: Schema, payload) -> dict:
    """
    Load a payload with a schema.

    Raises:
        ValidationError: With the schema's field messages
    """
    if not isinstance(payload, dict):
        raise ValidationError({'_schema': ['Request body must be a JSON object']})
    return schema.load(payload)
