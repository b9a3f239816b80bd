# fleet_telemetry_gateway/models/credentials.py
"""
Credential shapes for each authentication scheme.

Credentials form a tagged union discriminated by ``auth_type``. Each provider
declares one AuthType in its ProviderInfo, and its adapter accepts exactly the
matching variant, so a FleetGO adapter can never be handed a password or a
RouteVision adapter an API key.

Secrets are stored as SecretStr to prevent accidental exposure in logs,
repr() or error messages. Access the value via ``.get_secret_value()``.

Usage:
------
    from fleet_telemetry_gateway.models import AuthType, parse_credentials

    # From a loose mapping, e.g. a decrypted row from the caller's database
    credentials = parse_credentials(
        AuthType.CREDENTIALS,
        {'email': 'fleet@example.nl', 'password': 'secret'},
    )

    # Or directly
    credentials = ApiKeyCredentials(api_key=SecretStr('sk_live_...'))
"""

from collections.abc import Mapping
from typing import Annotated, Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    ValidationError,
    field_validator,
)

from fleet_telemetry_gateway.exceptions import MissingCredentialsError
from fleet_telemetry_gateway.models.domain import AuthType

__all__: list[str] = [
    'ApiKeyCredentials',
    'Credentials',
    'OAuth2ClientCredentials',
    'SessionLoginCredentials',
    'parse_credentials',
]

# Loose input keys accepted by parse_credentials, mapped to model field names.
# Callers often store credentials with the camelCase names their UI used.
_FIELD_ALIASES: dict[str, str] = {
    'email': 'email',
    'username': 'email',
    'password': 'password',
    'apiKey': 'api_key',
    'api_key': 'api_key',
    'clientId': 'api_key',
    'apiSecret': 'api_secret',
    'api_secret': 'api_secret',
    'clientSecret': 'api_secret',
    'accountId': 'account_id',
    'account_id': 'account_id',
    'customFields': 'custom_fields',
    'custom_fields': 'custom_fields',
}


def _require_text(value: str, field_name: str) -> str:
    stripped: str = value.strip()
    if not stripped:
        raise ValueError(f'{field_name} cannot be empty or whitespace-only')
    return stripped


def _require_secret(value: SecretStr, field_name: str) -> SecretStr:
    if not value.get_secret_value().strip():
        raise ValueError(f'{field_name} cannot be empty or whitespace-only')
    return value


class _CredentialsBase(BaseModel):
    model_config = ConfigDict(extra='forbid', frozen=True)

    custom_fields: dict[str, str] = Field(
        default_factory=dict,
        description='Vendor-specific extras (e.g. Webfleet apiKey)',
    )


class SessionLoginCredentials(_CredentialsBase):
    """
    Username/password credentials for session-login vendors.

    Attributes:
        email: Login name. Webfleet also accepts 'account@username' here.
        password: Account password.
        account_id: Account identifier for vendors that scope logins per
            account (Webfleet).
    """

    auth_type: Literal[AuthType.CREDENTIALS] = AuthType.CREDENTIALS
    email: str
    password: SecretStr
    account_id: str | None = None

    @field_validator('email')
    @classmethod
    def validate_email_not_blank(cls, email: str) -> str:
        """Reject blank login names."""
        return _require_text(email, 'email')

    @field_validator('password')
    @classmethod
    def validate_password_not_blank(cls, password: SecretStr) -> SecretStr:
        """Reject blank passwords."""
        return _require_secret(password, 'password')


class ApiKeyCredentials(_CredentialsBase):
    """
    Static API key credentials.

    Attributes:
        api_key: The vendor-issued key, sent as a header on every request.
        account_id: Optional account identifier.
    """

    auth_type: Literal[AuthType.API_KEY] = AuthType.API_KEY
    api_key: SecretStr
    account_id: str | None = None

    @field_validator('api_key')
    @classmethod
    def validate_api_key_not_blank(cls, api_key: SecretStr) -> SecretStr:
        """Reject blank API keys."""
        return _require_secret(api_key, 'api_key')


class OAuth2ClientCredentials(_CredentialsBase):
    """
    OAuth2 client-credentials grant.

    Attributes:
        api_key: OAuth2 client id.
        api_secret: OAuth2 client secret.
    """

    auth_type: Literal[AuthType.OAUTH2] = AuthType.OAUTH2
    api_key: SecretStr
    api_secret: SecretStr

    @field_validator('api_key', 'api_secret')
    @classmethod
    def validate_secret_not_blank(cls, secret: SecretStr) -> SecretStr:
        """Reject blank client id or secret."""
        return _require_secret(secret, 'client credential')


Credentials = Annotated[
    SessionLoginCredentials | ApiKeyCredentials | OAuth2ClientCredentials,
    Field(discriminator='auth_type'),
]

_MODEL_BY_AUTH_TYPE: dict[
    AuthType,
    type[SessionLoginCredentials | ApiKeyCredentials | OAuth2ClientCredentials],
] = {
    AuthType.CREDENTIALS: SessionLoginCredentials,
    AuthType.API_KEY: ApiKeyCredentials,
    AuthType.OAUTH2: OAuth2ClientCredentials,
}


def parse_credentials(
    auth_type: AuthType | str,
    raw_credentials: Mapping[str, Any],
    provider: str | None = None,
) -> SessionLoginCredentials | ApiKeyCredentials | OAuth2ClientCredentials:
    """
    Build the credential variant for an auth type from a loose mapping.

    Unknown keys and keys belonging to other auth schemes are dropped, so a
    caller can pass one stored record regardless of which vendor it targets.
    Empty strings and None count as missing.

    Args:
        auth_type: Declared auth type of the target provider.
        raw_credentials: Mapping with camelCase or snake_case keys.
        provider: Provider name, used only in error messages.

    Returns:
        The validated credential model for ``auth_type``.

    Raises:
        MissingCredentialsError: If a required field is absent or blank.
        ValueError: If ``auth_type`` is not a known AuthType.
    """
    resolved_type = AuthType(auth_type)
    model_class = _MODEL_BY_AUTH_TYPE[resolved_type]

    normalized: dict[str, Any] = {}
    for key, value in raw_credentials.items():
        field_name: str | None = _FIELD_ALIASES.get(key)
        if field_name is None or field_name not in model_class.model_fields:
            continue
        if value is None or (isinstance(value, str) and not value.strip()):
            continue
        if field_name == 'custom_fields':
            value = {str(k): str(v) for k, v in dict(value).items() if v is not None}
        normalized[field_name] = value

    try:
        return model_class.model_validate(normalized)
    except ValidationError as error:
        missing_fields: list[str] = sorted(
            {str(detail['loc'][0]) for detail in error.errors() if detail['loc']}
        )
        target: str = provider or resolved_type.value
        raise MissingCredentialsError(
            f'Missing or empty credential fields for {target}: '
            f'{", ".join(missing_fields)}',
            provider=provider,
            missing_fields=missing_fields,
        ) from error
