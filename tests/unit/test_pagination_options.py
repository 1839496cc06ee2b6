"""Tests for pagination options: defaults, deep merge, and validation.

Options are merged over the defaults and validated once at registration.
Every violation must surface as ConfigValidationError naming the field.
"""

import re

import pytest
from pydantic import ValidationError as PydanticValidationError

from pagination_middleware.core.errors import ConfigValidationError
from pagination_middleware.core.matchers import ExactMatcher, PatternMatcher
from pagination_middleware.core.options import (
    DEFAULT_OPTIONS,
    InvalidPolicy,
    MetaLocation,
    RouteOverride,
    resolve_config,
    resolve_route_override,
)


class TestDefaults:
    """resolve_config() with no options returns the documented defaults."""

    def test_query_defaults(self):
        """Page 1, limit 25, flag on by default and active."""
        config = resolve_config()

        assert config.query.page.name == "page"
        assert config.query.page.default == 1
        assert config.query.limit.name == "limit"
        assert config.query.limit.default == 25
        assert config.query.pagination.default is True
        assert config.query.pagination.active is True
        assert config.query.invalid == InvalidPolicy.DEFAULTS

    def test_meta_defaults(self):
        """Body location, all link fields active, has* fields inactive."""
        meta = resolve_config().meta

        assert meta.location == MetaLocation.BODY
        assert meta.success_status_code is None
        assert meta.name == "meta"
        assert meta.self_link.active is True
        assert meta.self_link.name == "self"
        assert meta.total_count.name == "totalCount"
        assert meta.has_next.active is False
        assert meta.has_previous.active is False
        assert meta.page.active is False
        assert meta.limit.active is False

    def test_results_reply_and_routes_defaults(self):
        """Results field, helper name and include-all routes."""
        config = resolve_config()

        assert config.results.name == "results"
        assert config.reply.paginate == "paginate"
        assert config.reply.parameters.results.name == "results"
        assert config.reply.parameters.total_count.name == "totalCount"
        assert config.routes.include_all is True
        assert config.routes.exclude == ()

    def test_defaults_are_not_mutated(self):
        """Resolving with options leaves DEFAULT_OPTIONS untouched."""
        resolve_config({"query": {"limit": {"default": 5}}})

        assert DEFAULT_OPTIONS["query"]["limit"]["default"] == 25

    def test_config_is_frozen(self):
        """A resolved config cannot be modified."""
        config = resolve_config()

        with pytest.raises(PydanticValidationError):
            config.query.limit.default = 5


class TestDeepMerge:
    """Nested mappings merge, lists and scalars replace."""

    def test_partial_nested_override_keeps_siblings(self):
        """Overriding limit.default keeps limit.name."""
        config = resolve_config({"query": {"limit": {"default": 10}}})

        assert config.query.limit.default == 10
        assert config.query.limit.name == "limit"
        assert config.query.page.default == 1

    def test_lists_replace(self):
        """routes.include replaces the default list."""
        config = resolve_config({"routes": {"include": ["/users"]}})

        assert config.routes.include == (ExactMatcher("/users"),)
        assert config.routes.include_all is False

    def test_renamed_meta_field(self):
        """A meta field can be renamed without touching its active flag."""
        config = resolve_config({"meta": {"totalCount": {"name": "total"}}})

        assert config.meta.total_count.name == "total"
        assert config.meta.total_count.active is True

    def test_snake_case_keys_are_accepted(self):
        """snake_case spellings normalize to the documented camelCase keys."""
        config = resolve_config(
            {
                "meta": {
                    "success_status_code": 206,
                    "has_next": {"active": True},
                    "base_uri": "https://api.example.com/",
                }
            }
        )

        assert config.meta.success_status_code == 206
        assert config.meta.has_next.active is True
        assert config.meta.base_uri == "https://api.example.com"

    def test_string_enums(self):
        """Location and invalid policy accept their string values."""
        config = resolve_config(
            {"meta": {"location": "header"}, "query": {"invalid": "badRequest"}}
        )

        assert config.meta.location == MetaLocation.HEADER
        assert config.query.invalid == InvalidPolicy.BAD_REQUEST

    def test_route_patterns(self):
        """Compiled patterns become pattern matchers."""
        pattern = re.compile(r"^/admin")
        config = resolve_config({"routes": {"exclude": ["/health", pattern]}})

        assert config.routes.exclude == (
            ExactMatcher("/health"),
            PatternMatcher(pattern),
        )


class TestValidation:
    """Invalid options raise ConfigValidationError naming the field."""

    @pytest.mark.parametrize(
        ("options", "field"),
        [
            ({"query": {"limit": {"default": 0}}}, "query.limit.default"),
            ({"query": {"limit": {"default": -5}}}, "query.limit.default"),
            ({"query": {"limit": {"default": "10"}}}, "query.limit.default"),
            ({"query": {"page": {"default": "one"}}}, "query.page.default"),
            ({"query": {"page": {"name": ""}}}, "query.page.name"),
            ({"query": {"pagination": {"default": "yes"}}}, "query.pagination.default"),
            ({"query": {"invalid": "ignore"}}, "query.invalid"),
            ({"meta": {"location": "footer"}}, "meta.location"),
            ({"meta": {"successStatusCode": 404}}, "meta.successStatusCode"),
            ({"meta": {"successStatusCode": 199}}, "meta.successStatusCode"),
            ({"meta": {"count": {"active": "yes"}}}, "meta.count.active"),
            ({"meta": {"next": {"name": 3}}}, "meta.next.name"),
            ({"meta": {"name": ""}}, "meta.name"),
            ({"results": {"name": None}}, "results.name"),
            ({"reply": {"paginate": "not valid"}}, "reply.paginate"),
            ({"reply": {"paginate": "pagination"}}, "reply.paginate"),
            ({"routes": {"include": "/users"}}, "routes.include"),
            ({"routes": {"exclude": [42]}}, "routes.exclude"),
            ({"routes": {"exclude": [""]}}, "routes.exclude"),
            ({"unknown": {}}, "unknown"),
            ({"meta": {"colour": "blue"}}, "meta.colour"),
        ],
    )
    def test_invalid_option_names_field(self, options, field):
        """The error's field is the dotted path of the bad option."""
        with pytest.raises(ConfigValidationError) as exc_info:
            resolve_config(options)

        assert exc_info.value.field == field
        assert str(exc_info.value).startswith(f"{field}: ")

    def test_options_must_be_mapping(self):
        """A non-mapping options object is rejected."""
        with pytest.raises(ConfigValidationError):
            resolve_config(["query"])  # type: ignore[arg-type]

    def test_non_string_key_rejected(self):
        """Option keys must be strings."""
        with pytest.raises(ConfigValidationError) as exc_info:
            resolve_config({"query": {1: "x"}})

        assert exc_info.value.field == "query"

    def test_bytes_pattern_rejected(self):
        """Route patterns must be compiled from str."""
        with pytest.raises(ConfigValidationError):
            resolve_config({"routes": {"include": [re.compile(rb"^/users")]}})


class TestRouteOverride:
    """Per-route settings are validated with the same rigor."""

    def test_valid_override(self):
        """enabled and defaults are parsed."""
        override = resolve_route_override(
            {"enabled": True, "defaults": {"limit": 10, "pagination": False}}
        )

        assert override.enabled is True
        assert override.defaults.limit == 10
        assert override.defaults.pagination is False
        assert override.defaults.page is None

    def test_empty_override(self):
        """An empty mapping defers everything to the global config."""
        override = resolve_route_override({})

        assert override.enabled is None
        assert override.defaults.limit is None

    def test_existing_override_returned_as_is(self):
        """An already-validated RouteOverride passes through."""
        override = RouteOverride(enabled=False)

        assert resolve_route_override(override) is override

    @pytest.mark.parametrize(
        ("raw", "field"),
        [
            ({"defaults": {"limit": 0}}, "/users.defaults.limit"),
            ({"defaults": {"limit": "ten"}}, "/users.defaults.limit"),
            ({"defaults": {"page": -1}}, "/users.defaults.page"),
            ({"defaults": {"pagination": "no"}}, "/users.defaults.pagination"),
            ({"enabled": "yes"}, "/users.enabled"),
            ({"disabled": True}, "/users.disabled"),
        ],
    )
    def test_invalid_override_names_field(self, raw, field):
        """Errors are prefixed with the route label."""
        with pytest.raises(ConfigValidationError) as exc_info:
            resolve_route_override(raw, "/users")

        assert exc_info.value.field == field

    def test_non_mapping_override_rejected(self):
        """Per-route settings must be a mapping."""
        with pytest.raises(ConfigValidationError) as exc_info:
            resolve_route_override(10, "/users")

        assert exc_info.value.field == "/users"

    def test_route_settings_checked_at_resolution(self):
        """A route carrying malformed settings fails resolve_config()."""

        def endpoint():
            return []

        endpoint.pagination_settings = {"defaults": {"limit": -1}}

        class _Route:
            path = "/users"

        route = _Route()
        route.endpoint = endpoint

        with pytest.raises(ConfigValidationError) as exc_info:
            resolve_config({}, routes=[route])

        assert exc_info.value.field == "routes[/users].defaults.limit"
