import datetime
from pathlib import Path

import pytest

from openapi_synth.errors import ManifestError
from openapi_synth.model.endpoint import ExampleSource, ParameterSource
from openapi_synth.model.types import TypeKind
from openapi_synth.parser.manifest import TypeResolver, load_manifest, parse_manifest

FIXTURES = Path(__file__).parent / "fixtures"


class TestLoadManifest:
    def test_units_and_endpoints(self):
        manifest = load_manifest(FIXTURES / "orders.yaml")
        assert [u.name for u in manifest.units] == ["OrderFunctions", "LegacyFunctions"]
        assert [e.method_name for e in manifest.units[0].endpoints] == ["GetOrder", "CreateOrder", "DeleteOrder"]

    def test_config(self):
        config = load_manifest(FIXTURES / "orders.yaml").config
        assert config.info.title == "Orders API"
        assert config.info.version == "2.1.0"
        assert config.security_schemes[0].scopes == {
            "orders.read": "Read orders",
            "orders.write": "Write orders",
        }
        assert config.tag_groups[0].tags == ["Orders", "Customers"]

    def test_declared_types_shared(self):
        manifest = load_manifest(FIXTURES / "orders.yaml")
        order = manifest.units[0].endpoints[0].return_type.inner
        assert order.kind == TypeKind.OBJECT
        assert order.name == "Order"

        parent = next(m for m in order.members if m.name == "Parent")
        assert parent.type.kind == TypeKind.NULLABLE
        assert parent.type.inner is order

        create = manifest.units[0].endpoints[1].return_type.inner
        assert create is order

    def test_member_metadata(self):
        manifest = load_manifest(FIXTURES / "orders.yaml")
        order = manifest.units[0].endpoints[0].return_type.inner
        total = next(m for m in order.members if m.name == "Total")
        assert total.json_name == "total"
        assert total.minimum == 0
        assert total.example == "19.99"
        assert next(m for m in order.members if m.name == "EqualityContract").synthetic

    def test_endpoint_details(self):
        get_order, create_order, delete_order = load_manifest(FIXTURES / "orders.yaml").units[0].endpoints
        assert get_order.documentation.summary == "Get an order"
        assert get_order.documentation.parameter_descriptions == {"id": "Order identifier"}
        assert get_order.parameters[0].source == ParameterSource.PATH
        assert get_order.parameters[0].required is True

        example = create_order.examples[0]
        assert example.status_code == 201
        assert example.value == '{"id": "550e8400-e29b-41d4-a716-446655440000"}'

        assert delete_order.return_type.kind == TypeKind.ASYNC
        assert delete_order.return_type.inner is None

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("units: [unclosed")
        with pytest.raises(ManifestError):
            load_manifest(path)

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        manifest = load_manifest(path)
        assert manifest.units == []


class TestParseManifest:
    def test_not_a_mapping(self):
        with pytest.raises(ManifestError):
            parse_manifest(["units"])

    def test_invalid_config(self):
        with pytest.raises(ManifestError, match="configuration"):
            parse_manifest({"servers": [{"description": "no url"}]})

    def test_unknown_type(self):
        doc = {"units": [{"name": "U", "endpoints": [
            {"method_name": "Get", "http_method": "GET", "route": "/", "returns": "Missing"},
        ]}]}
        with pytest.raises(ManifestError, match="Missing"):
            parse_manifest(doc)

    def test_unit_needs_name(self):
        with pytest.raises(ManifestError):
            parse_manifest({"units": [{"endpoints": []}]})

    def test_invalid_endpoint(self):
        doc = {"units": [{"name": "U", "endpoints": [{"method_name": "Get", "http_method": "GET"}]}]}
        with pytest.raises(ManifestError, match="Get"):
            parse_manifest(doc)

    def test_structured_documentation_merged(self):
        doc = {"units": [{"name": "U", "endpoints": [{
            "method_name": "Get",
            "http_method": "GET",
            "route": "/",
            "doc": "<summary>From XML</summary><param name=\"a\">A</param>",
            "documentation": {
                "description": "From mapping",
                "parameter_descriptions": {"b": "B"},
                "examples": [{"value": {"ok": True}}],
            },
        }]}]}
        documentation = parse_manifest(doc).units[0].endpoints[0].documentation
        assert documentation.summary == "From XML"
        assert documentation.description == "From mapping"
        assert documentation.parameter_descriptions == {"a": "A", "b": "B"}
        assert documentation.examples[0].value == '{"ok": true}'
        assert documentation.examples[0].source == ExampleSource.DOCUMENTATION


class TestTypeResolver:
    def test_builtins(self):
        resolver = TypeResolver({})
        assert resolver.resolve("int64").kind == TypeKind.NUMERIC
        assert resolver.resolve("Guid").name == "guid"
        assert resolver.resolve("datetime").kind == TypeKind.DATETIME
        assert resolver.resolve(None) is None

    def test_suffixes(self):
        resolver = TypeResolver({"Item": {"members": [{"name": "id"}]}})
        nullable = resolver.resolve("int32?")
        assert nullable.kind == TypeKind.NULLABLE
        assert nullable.inner.name == "int32"

        items = resolver.resolve("Item[]")
        assert items.kind == TypeKind.ARRAY
        assert items.element is resolver.declared["Item"]

        wrapped = resolver.resolve("async<async<Item>>")
        assert wrapped.inner.inner is resolver.declared["Item"]

    def test_member_defaults_to_string(self):
        resolver = TypeResolver({"Item": {"members": [{"name": "id"}]}})
        assert resolver.declared["Item"].members[0].type.kind == TypeKind.STRING

    def test_inline_types(self):
        resolver = TypeResolver({})
        array = resolver.resolve({"kind": "array", "items": "string"})
        assert array.element.kind == TypeKind.STRING

        inline = resolver.resolve({"kind": "object", "name": "Inline", "members": [{"name": "x", "type": "bool"}]})
        assert inline.members[0].type.kind == TypeKind.BOOLEAN

        status = resolver.resolve({"kind": "enum", "values": ["A", 1]})
        assert status.enum_values == ["A", "1"]

    def test_inline_object_needs_name(self):
        with pytest.raises(ManifestError):
            TypeResolver({}).resolve({"kind": "object"})

    def test_unknown_inline_kind(self):
        with pytest.raises(ManifestError):
            TypeResolver({}).resolve({"kind": "tuple"})

    def test_only_objects_and_enums_declared(self):
        with pytest.raises(ManifestError):
            TypeResolver({"Alias": {"kind": "string"}})

    def test_member_needs_name(self):
        with pytest.raises(ManifestError):
            TypeResolver({"Item": {"members": [{"type": "string"}]}})


class TestDateExamples:
    def test_unquoted_date_member_example(self, tmp_path):
        path = tmp_path / "events.yaml"
        path.write_text(
            "types:\n"
            "  Event:\n"
            "    members:\n"
            "      - name: day\n"
            "        type: date\n"
            "        example: 2024-01-15\n"
            "      - name: startsAt\n"
            "        type: datetime\n"
            "        example: 2024-01-15 10:30:00\n"
            "units:\n"
            "  - name: Events\n"
            "    endpoints:\n"
            "      - method_name: GetEvent\n"
            "        http_method: GET\n"
            "        route: /events/{id}\n"
            "        returns: Event\n"
        )
        event = load_manifest(path).units[0].endpoints[0].return_type
        assert [m.example for m in event.members] == ["2024-01-15", "2024-01-15T10:30:00"]

    def test_dates_inside_example_values(self):
        doc = {"units": [{"name": "U", "endpoints": [{
            "method_name": "Get",
            "http_method": "GET",
            "route": "/",
            "examples": [{"value": {"on": datetime.date(2024, 1, 15)}}],
        }]}]}
        example = parse_manifest(doc).units[0].endpoints[0].examples[0]
        assert example.value == '{"on": "2024-01-15"}'

    def test_unencodable_example(self):
        value = {"set": {1, 2}}
        doc = {"units": [{"name": "U", "endpoints": [{
            "method_name": "Get",
            "http_method": "GET",
            "route": "/",
            "examples": [{"value": value}],
        }]}]}
        with pytest.raises(ManifestError, match="cannot be encoded"):
            parse_manifest(doc)


def _unit(**endpoint) -> dict:
    return {"units": [{"name": "U", "endpoints": [
        {"method_name": "Get", "http_method": "GET", "route": "/", **endpoint},
    ]}]}


class TestManifestShape:
    def test_types_must_be_mapping(self):
        with pytest.raises(ManifestError, match="types"):
            parse_manifest({"types": ["Order"]})

    def test_type_entry_must_be_mapping(self):
        with pytest.raises(ManifestError, match="Order"):
            parse_manifest({"types": {"Order": ["id"]}})

    def test_members_must_be_list(self):
        with pytest.raises(ManifestError, match="members"):
            parse_manifest({"types": {"Order": {"members": {"name": "id"}}}})

    def test_units_must_be_list(self):
        with pytest.raises(ManifestError, match="units"):
            parse_manifest({"units": {"name": "U"}})

    def test_endpoints_must_be_list(self):
        with pytest.raises(ManifestError, match="endpoints"):
            parse_manifest({"units": [{"name": "U", "endpoints": "GetOrder"}]})

    def test_parameter_entry_must_be_mapping(self):
        with pytest.raises(ManifestError, match="parameters"):
            parse_manifest(_unit(parameters=["id"]))

    def test_parameters_must_be_list(self):
        with pytest.raises(ManifestError, match="parameters"):
            parse_manifest(_unit(parameters={"name": "id"}))

    def test_header_entry_must_be_mapping(self):
        with pytest.raises(ManifestError, match="response_headers"):
            parse_manifest(_unit(response_headers=["X-Total"]))

    def test_response_entry_must_be_mapping(self):
        with pytest.raises(ManifestError, match="responses"):
            parse_manifest(_unit(responses=[404]))

    def test_example_entry_must_be_mapping(self):
        with pytest.raises(ManifestError, match="examples"):
            parse_manifest(_unit(examples=['{"id": 1}']))

    def test_doc_must_be_text(self):
        with pytest.raises(ManifestError, match="doc"):
            parse_manifest(_unit(doc={"summary": "Get"}))

    def test_documentation_must_be_mapping(self):
        with pytest.raises(ManifestError, match="documentation"):
            parse_manifest(_unit(documentation=["Get"]))
