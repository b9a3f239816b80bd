# fleet_telemetry_gateway/models/shared_response_models.py
"""
Base configuration shared by every vendor payload model.

Vendor payload models mirror the wire format as closely as possible and are
translated to domain models by the adapters. Unknown fields are
ignored and numeric identifiers are read as strings. Most fields are optional
since vendors leave out what they do not know.
"""

from pydantic import BaseModel, ConfigDict

__all__: list[str] = ['VendorModelBase']


class VendorModelBase(BaseModel):
    """
    Base class for all vendor response models.

    Configuration:
        - extra='ignore': Silently ignore unknown fields from the API.
        - populate_by_name=True: Allow both alias and field name.
        - str_strip_whitespace=True: Trim whitespace from strings.
        - coerce_numbers_to_str=True: Read numeric ids (TrackJack) as strings.
    """

    model_config = ConfigDict(
        extra='ignore',
        populate_by_name=True,
        str_strip_whitespace=True,
        coerce_numbers_to_str=True,
    )
