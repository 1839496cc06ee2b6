"""Pagination options: defaults, deep merge, and validation.

Options are supplied once at registration. They are deep-merged over
DEFAULT_OPTIONS (nested mappings merge, lists and scalars replace) and then
validated into a frozen PaginationConfig. Any violation raises
ConfigValidationError naming the offending field, so an app never starts
serving with a bad configuration.

Option keys follow the documented camelCase names (``totalCount``,
``successStatusCode``). snake_case spellings are accepted and normalized.

Example:
    config = resolve_config({
        "query": {"limit": {"default": 10}, "invalid": "badRequest"},
        "meta": {"location": "header"},
        "routes": {"exclude": ["/health", re.compile(r"^/admin")]},
    })
"""

from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    InstanceOf,
    StrictBool,
    StrictInt,
    StrictStr,
    field_validator,
)
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from pagination_middleware.core.config import settings
from pagination_middleware.core.errors import ConfigValidationError
from pagination_middleware.core.matchers import (
    ExactMatcher,
    PatternMatcher,
    build_matcher,
)

ROUTE_SETTINGS_ATTR = "pagination_settings"
"""Endpoint attribute holding per-route pagination settings."""

Name = Annotated[StrictStr, Field(min_length=1)]
PositiveInt = Annotated[StrictInt, Field(gt=0)]

DEFAULT_OPTIONS: dict[str, Any] = {
    "query": {
        "page": {"name": "page", "default": 1},
        "limit": {"name": "limit", "default": 25},
        "pagination": {"name": "pagination", "default": True, "active": True},
        "invalid": "defaults",
    },
    "meta": {
        "location": "body",
        "successStatusCode": None,
        "baseUri": None,
        "name": "meta",
        "count": {"active": True, "name": "count"},
        "totalCount": {"active": True, "name": "totalCount"},
        "pageCount": {"active": True, "name": "pageCount"},
        "self": {"active": True, "name": "self"},
        "previous": {"active": True, "name": "previous"},
        "next": {"active": True, "name": "next"},
        "hasNext": {"active": False, "name": "hasNext"},
        "hasPrevious": {"active": False, "name": "hasPrevious"},
        "first": {"active": True, "name": "first"},
        "last": {"active": True, "name": "last"},
        # Echo fields reuse the query parameter names.
        "page": {"active": False},
        "limit": {"active": False},
    },
    "results": {"name": "results"},
    "reply": {
        "paginate": "paginate",
        "parameters": {
            "results": {"name": "results"},
            "totalCount": {"name": "totalCount"},
        },
    },
    "routes": {"include": ["*"], "exclude": []},
}


class InvalidPolicy(str, Enum):
    """What to do with a page/limit value that does not parse."""

    DEFAULTS = "defaults"
    BAD_REQUEST = "badRequest"


class MetaLocation(str, Enum):
    """Where pagination metadata is emitted."""

    BODY = "body"
    HEADER = "header"


class _Options(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )


# =============================================================================
# query
# =============================================================================


class PageQuery(_Options):
    name: Name
    default: StrictInt


class LimitQuery(_Options):
    name: Name
    default: PositiveInt


class PaginationFlagQuery(_Options):
    name: Name
    default: StrictBool
    active: StrictBool


class QueryOptions(_Options):
    page: PageQuery
    limit: LimitQuery
    pagination: PaginationFlagQuery
    invalid: InvalidPolicy


# =============================================================================
# meta
# =============================================================================


class MetaField(_Options):
    """A metadata field: emitted under ``name`` when ``active``."""

    active: StrictBool
    name: Name


class EchoField(_Options):
    """page/limit echo: emitted under the query parameter name when active."""

    active: StrictBool


class MetaOptions(_Options):
    location: MetaLocation
    success_status_code: Annotated[StrictInt, Field(ge=200, lt=300)] | None
    base_uri: Name | None
    name: Name
    count: MetaField
    total_count: MetaField
    page_count: MetaField
    self_link: MetaField = Field(alias="self")
    previous: MetaField
    next: MetaField
    has_next: MetaField
    has_previous: MetaField
    first: MetaField
    last: MetaField
    page: EchoField
    limit: EchoField

    @field_validator("base_uri")
    @classmethod
    def strip_trailing_slash(cls, value: str | None) -> str | None:
        """Normalize base URI so request paths can be appended directly."""
        if value is None:
            return None
        stripped = value.rstrip("/")
        if not stripped:
            msg = "baseUri must contain a scheme and host"
            raise ValueError(msg)
        return stripped


# =============================================================================
# results / reply / routes
# =============================================================================


class NamedOption(_Options):
    name: Name


class ReplyParameters(_Options):
    results: NamedOption
    total_count: NamedOption


class ReplyOptions(_Options):
    paginate: Name
    parameters: ReplyParameters

    @field_validator("paginate")
    @classmethod
    def check_identifier(cls, value: str) -> str:
        """The helper is bound as an attribute, so the name must be one."""
        if not value.isidentifier():
            msg = "reply.paginate must be a valid Python identifier"
            raise ValueError(msg)
        if value == "pagination":
            msg = "reply.paginate cannot be 'pagination' (reserved for request state)"
            raise ValueError(msg)
        return value


Matcher = InstanceOf[ExactMatcher] | InstanceOf[PatternMatcher]


class RouteOptions(_Options):
    include: tuple[Matcher, ...]
    exclude: tuple[Matcher, ...]

    @field_validator("include", "exclude", mode="before")
    @classmethod
    def build_matchers(cls, value: Any) -> tuple:
        """Turn path strings and compiled patterns into matchers."""
        if isinstance(value, str | bytes) or not isinstance(value, Iterable):
            msg = "must be a list of path strings or compiled patterns"
            raise ValueError(msg)
        return tuple(build_matcher(entry) for entry in value)

    @property
    def include_all(self) -> bool:
        """True when include holds the "*" wildcard."""
        return any(matcher.is_wildcard for matcher in self.include)


class PaginationConfig(_Options):
    """Validated, immutable pagination configuration.

    Built once by resolve_config() and shared read-only by every request
    handled by the owning middleware instance.
    """

    query: QueryOptions
    meta: MetaOptions
    results: NamedOption
    reply: ReplyOptions
    routes: RouteOptions


# =============================================================================
# Route overrides
# =============================================================================


class RouteDefaults(_Options):
    page: PositiveInt | None = None
    limit: PositiveInt | None = None
    pagination: StrictBool | None = None


class RouteOverride(_Options):
    """Per-route settings attached to an endpoint.

    Attributes:
        enabled: Forces pagination on (True) or off (False) for the route,
            regardless of include/exclude lists. None defers to the lists.
        defaults: Route-specific fallback values for page, limit and the
            pagination flag.
    """

    enabled: StrictBool | None = None
    defaults: RouteDefaults = Field(default_factory=RouteDefaults)


# =============================================================================
# Resolution
# =============================================================================


def _normalize_key(key: str) -> str:
    # to_camel re-cases the whole word, so only touch snake_case keys
    return to_camel(key) if "_" in key else key


def _merge(base: Mapping[str, Any], override: Mapping[str, Any], path: str) -> dict:
    """Deep-merge override into base. Nested mappings merge, all else replaces."""
    merged = dict(base)
    for raw_key, value in override.items():
        if not isinstance(raw_key, str):
            raise ConfigValidationError(path, "option keys must be strings")
        key = _normalize_key(raw_key)
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = _merge(current, value, f"{path}.{key}" if path else key)
        else:
            merged[key] = value
    return merged


def _to_config_error(
    exc: PydanticValidationError, prefix: str = ""
) -> ConfigValidationError:
    """Convert the first pydantic error into a ConfigValidationError."""
    error = exc.errors()[0]
    loc = ".".join(str(part) for part in error["loc"])
    field = f"{prefix}.{loc}" if prefix and loc else prefix or loc
    return ConfigValidationError(field, error["msg"])


def resolve_route_override(raw: Any, where: str = "route") -> RouteOverride:
    """Validate a raw per-route settings object.

    Args:
        raw: A RouteOverride, or a mapping such as
            ``{"enabled": True, "defaults": {"limit": 10}}``.
        where: Label used in error messages (usually the route path).

    Returns:
        The validated RouteOverride.

    Raises:
        ConfigValidationError: If the settings do not match the schema.
    """
    if isinstance(raw, RouteOverride):
        return raw
    if not isinstance(raw, Mapping):
        raise ConfigValidationError(where, "route pagination settings must be a mapping")
    try:
        return RouteOverride.model_validate(raw)
    except PydanticValidationError as exc:
        raise _to_config_error(exc, where) from None


def resolve_config(
    options: Mapping[str, Any] | None = None,
    routes: Iterable[Any] = (),
) -> PaginationConfig:
    """Merge options over defaults and validate the result.

    Args:
        options: User-supplied options (may be partial, may be None).
        routes: Host route objects. Each route's endpoint may carry
            per-route settings under ROUTE_SETTINGS_ATTR; those are
            validated too.

    Returns:
        Frozen PaginationConfig.

    Raises:
        ConfigValidationError: On any invalid option or route setting.
    """
    if options is None:
        options = {}
    if not isinstance(options, Mapping):
        raise ConfigValidationError("", "pagination options must be a mapping")

    merged = _merge(DEFAULT_OPTIONS, options, "")
    meta = merged.get("meta")
    if isinstance(meta, Mapping) and meta.get("baseUri") is None and settings.base_uri:
        merged["meta"] = {**meta, "baseUri": settings.base_uri}

    try:
        config = PaginationConfig.model_validate(merged)
    except PydanticValidationError as exc:
        raise _to_config_error(exc) from None

    validate_route_settings(routes)
    return config


def validate_route_settings(routes: Iterable[Any]) -> None:
    """Validate the per-route settings of every route.

    Raw mappings found under ROUTE_SETTINGS_ATTR are replaced on the
    endpoint by their validated RouteOverride.

    Args:
        routes: Host route objects.

    Raises:
        ConfigValidationError: On the first invalid route setting.
    """
    for route in routes:
        endpoint = getattr(route, "endpoint", None)
        raw = getattr(endpoint, ROUTE_SETTINGS_ATTR, None)
        if raw is None or isinstance(raw, RouteOverride):
            continue
        where = f"routes[{getattr(route, 'path', '?')}]"
        override = resolve_route_override(raw, where)
        setattr(getattr(endpoint, "__func__", endpoint), ROUTE_SETTINGS_ATTR, override)
