"""Field mappings for the claude.ai usage API, kept as data.

The response shapes change without notice. Each value we care about is
declared once below as a path plus a default, so following a rename or a
new field means editing a table, not the extraction code.
"""

from collections.abc import Mapping, Sequence
from types import MappingProxyType
from typing import Any

from .models import EndpointDescriptor, SchemaField

SchemaGroup = SchemaField | Mapping[str, SchemaField]
Schema = Mapping[str, SchemaGroup]


def _group(**fields: SchemaField) -> Mapping[str, SchemaField]:
    return MappingProxyType(fields)


def _window(prefix: str, utilization_default: Any) -> Mapping[str, SchemaField]:
    return _group(
        utilization=SchemaField(path=f"{prefix}.utilization", type="percent", default=utilization_default),
        resets_at=SchemaField(path=f"{prefix}.resets_at", type="time"),
    )


# /api/organizations/{org}/usage
USAGE_API_SCHEMA: Schema = MappingProxyType({
    "five_hour": _window("five_hour", 0),
    "seven_day": _window("seven_day", 0),
    "seven_day_sonnet": _window("seven_day_sonnet", None),
    "seven_day_opus": _window("seven_day_opus", None),
    "extra_usage": _group(value=SchemaField(path="extra_usage", type="raw")),
})

# /api/organizations/{org}/overage_spend_limit
OVERAGE_API_SCHEMA: Schema = MappingProxyType({
    "is_enabled": SchemaField(path="is_enabled", type="boolean", default=False),
    "monthly_limit": SchemaField(path="monthly_credit_limit", type="cents", default=0),
    "used_credits": SchemaField(path="used_credits", type="cents", default=0),
    "currency": SchemaField(path="currency", type="string", default="USD"),
    "out_of_credits": SchemaField(path="out_of_credits", type="boolean", default=False),
})

# /api/organizations/{org}/prepaid/credits
PREPAID_API_SCHEMA: Schema = MappingProxyType({
    "balance": SchemaField(path="remaining_credits", type="cents", default=0),
    "currency": SchemaField(path="currency", type="string", default="USD"),
})

# The balance field has shipped under each of these names
PREPAID_BALANCE_PATHS: tuple[str, ...] = (
    "remaining_credits",
    "balance",
    "credit_balance",
    "available_credits",
)

# Checked in order; "usage" last since it is the least specific
API_ENDPOINTS: Mapping[str, EndpointDescriptor] = MappingProxyType({
    "prepaid_credits": EndpointDescriptor(pattern="/api/organizations/", contains="/prepaid/credits"),
    "overage_spend_limit": EndpointDescriptor(pattern="/api/organizations/", contains="/overage_spend_limit"),
    "usage": EndpointDescriptor(pattern="/api/organizations/", contains="/usage"),
})


def get_nested_value(obj: Any, path: str, default: Any = None) -> Any:
    """Follow a dot path such as ``five_hour.utilization``.

    Returns ``default`` as soon as a step is missing or None. Falsy values
    that are present (0, "", False) are returned as-is.
    """
    if obj is None or not path:
        return default

    current = obj
    for part in path.split("."):
        if current is None:
            return default
        if isinstance(current, Mapping):
            current = current.get(part)
        elif isinstance(current, Sequence) and not isinstance(current, (str, bytes)) and part.isdigit():
            index = int(part)
            current = current[index] if index < len(current) else None
        else:
            return default

    return default if current is None else current


def resolve_field(obj: Any, field: SchemaField) -> Any:
    return get_nested_value(obj, field.path, field.default)


def resolve_first(obj: Any, paths: Sequence[str], default: Any = None) -> Any:
    """Value of the first path that resolves to something other than None."""
    for path in paths:
        value = get_nested_value(obj, path)
        if value is not None:
            return value
    return default


def extract(obj: Any, schema: Schema) -> dict[str, Any]:
    """Resolve every field in ``schema`` against ``obj``. Never raises."""
    result: dict[str, Any] = {}
    for group_name, group in schema.items():
        if isinstance(group, SchemaField):
            result[group_name] = resolve_field(obj, group)
        else:
            result[group_name] = {name: resolve_field(obj, field) for name, field in group.items()}
    return result


def match_endpoint(url: str, endpoint: EndpointDescriptor) -> bool:
    return endpoint.pattern in url and endpoint.contains in url


def classify_endpoint(url: str) -> str | None:
    for name, endpoint in API_ENDPOINTS.items():
        if match_endpoint(url, endpoint):
            return name
    return None


def get_schema_info() -> dict[str, list[str]]:
    return {
        "usage_fields": list(USAGE_API_SCHEMA),
        "overage_fields": list(OVERAGE_API_SCHEMA),
        "prepaid_fields": list(PREPAID_API_SCHEMA),
        "endpoints": list(API_ENDPOINTS),
    }
