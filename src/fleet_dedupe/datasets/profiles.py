from __future__ import annotations

from fleet_dedupe.schema import FieldTag, RecordSchema

# Column layout of a ``profiles`` export.
PROFILE_COLUMNS = [
    "id",
    "full_name",
    "phone_number",
    "email",
    "role",
]


PROFILE_EXPORT_SCHEMA = RecordSchema.from_mapping(
    {
        FieldTag.ID: ["id", "customer_id"],
        FieldTag.NAME: ["full_name", "name"],
        FieldTag.PHONE: ["phone_number", "phone", "mobile"],
        FieldTag.EMAIL: ["email"],
    }
)
