from pathlib import Path

from karg.generator.markdown import (
    anchor,
    footnote_identifier,
    render_api_documentation,
    render_combined_documentation,
    to_yaml,
    truncate_description,
)
from karg.parser.base import APIDocumentation, APIMetadata, FieldDocumentation
from karg.parser.converter import build_api_documentation
from karg.parser.crd import ValidationRule
from karg.parser.reader import load_crds, parse_content

FIXTURES = Path(__file__).parent / "fixtures"
FOOTNOTE = "[^immutable_by_CEL_self_==_oldSelf]"


def _doc(kind: str = "Widget", spec_fields=None, status_fields=None, **kwargs) -> APIDocumentation:
    return APIDocumentation(
        title=kind,
        kind=kind,
        group="example.com",
        version="v1",
        scope="Namespaced",
        spec_fields=spec_fields or [],
        status_fields=status_fields or [],
        **kwargs,
    )


def _field(path: str = "spec.value", type: str = "string", required: bool = False, **kwargs) -> FieldDocumentation:
    return FieldDocumentation(field_path=path, type=type, required=required, **kwargs)


class TestRenderApiDocumentation:
    def test_full_document(self):
        doc = _doc(
            spec_fields=[
                _field(
                    "spec.size",
                    type="integer",
                    required=True,
                    description="Number of widgets.",
                    minimum=1,
                    immutable="self == oldSelf",
                    default=3,
                )
            ],
            metadata=APIMetadata(plural="widgets", singular="widget", short_names=["wd"]),
        )
        expected = (
            "# Widget\n"
            "\n"
            "- **API version:** `example.com/v1`\n"
            "- **Scope:** Namespaced\n"
            "- **Plural:** `widgets`\n"
            "- **Singular:** `widget`\n"
            "- **Short names:** `wd`\n"
            "\n"
            "## Quick Reference\n"
            "\n"
            "| Field path  | Type      | Required | Description        |\n"
            f"| {'-' * 11} | {'-' * 9} | {'-' * 8} | {'-' * 18} |\n"
            "| `spec.size` | `integer` | ✓        | Number of widgets. |\n"
            "\n"
            "## Spec\n"
            "\n"
            "### `spec.size`\n"
            "\n"
            "Number of widgets.\n"
            "\n"
            "- **Type:** `integer`\n"
            "- **Required**\n"
            "- **Constraints**\n"
            f"  - **Immutable** {FOOTNOTE}\n"
            "  - **Minimum:** `1`\n"
            "- **Default value:** `3`\n"
            "\n"
            "## Status\n"
            "\n"
            "No status fields defined for this resource.\n"
            "\n"
            f"{FOOTNOTE}: This field is immutable. Once set, it cannot be modified as enforced by "
            "the CEL validation rule: `self == oldSelf`\n"
        )
        assert render_api_documentation(doc) == expected

    def test_description_follows_title(self):
        doc = _doc(description="A managed **database**.\n\nSee [guide](https://x.io).")
        output = render_api_documentation(doc)
        assert output.startswith(
            "# Widget\n\nA managed **database**.\n\nSee [guide](https://x.io).\n\n- **API version:**"
        )

    def test_no_fields(self):
        output = render_api_documentation(_doc())
        assert "Quick Reference" not in output
        assert "## Spec\n\nNo spec fields defined for this resource.\n" in output
        assert "## Status\n\nNo status fields defined for this resource.\n" in output
        assert "[^" not in output

    def test_overview_without_metadata(self):
        output = render_api_documentation(_doc())
        assert "- **Scope:** Namespaced\n\n## Spec" in output
        assert "Plural" not in output

    def test_short_names_joined(self):
        doc = _doc(metadata=APIMetadata(plural="widgets", short_names=["wd", "wdg"]))
        assert "- **Short names:** `wd`, `wdg`\n" in render_api_documentation(doc)

    def test_long_description_truncated_in_table_only(self):
        description = "x" * 70
        output = render_api_documentation(_doc(spec_fields=[_field(description=description)]))
        assert f"| {'x' * 57}... |" in output
        assert f"\n{description}\n" in output

    def test_depth_note(self):
        doc = _doc(spec_fields=[_field("spec.a"), _field("spec.a.b")])
        output = render_api_documentation(doc)
        assert "| `spec.a.b`" not in output
        assert "### `spec.a.b`" in output
        assert (
            "Note: This table shows fields up to 2 levels deep. "
            "Deeper nested fields are documented in the sections below.\n"
        ) in output

    def test_custom_depth(self):
        doc = _doc(spec_fields=[_field("spec.a"), _field("spec.a.b")])
        output = render_api_documentation(doc, quick_reference_depth=3)
        assert "| `spec.a.b`" in output
        assert "Note:" not in output

    def test_zero_depth_shows_everything(self):
        doc = _doc(spec_fields=[_field("spec.a.b.c.d")])
        output = render_api_documentation(doc, quick_reference_depth=0)
        assert "| `spec.a.b.c.d`" in output
        assert "Note:" not in output

    def test_optional_and_format(self):
        output = render_api_documentation(_doc(spec_fields=[_field(format="date-time")]))
        assert "- **Type:** `string` (`date-time`)\n- **Optional**\n" in output

    def test_pattern_block(self):
        output = render_api_documentation(_doc(spec_fields=[_field(pattern="^[0-9]+Gi$")]))
        assert "- **Constraints**\n  - **Pattern:**\n    ```regex\n    ^[0-9]+Gi$\n    ```\n" in output

    def test_validation_rules(self):
        field = _field(
            validation_rules=[
                ValidationRule(rule="self > 0", message="must be positive"),
                ValidationRule(rule="self < 10"),
            ]
        )
        output = render_api_documentation(_doc(spec_fields=[field]))
        assert "  - **Validation:** must be positive\n    ```cel\n    self > 0\n    ```\n" in output
        assert "  - **Validation:**\n    ```cel\n    self < 10\n    ```\n" in output

    def test_allowed_values_as_json(self):
        output = render_api_documentation(_doc(spec_fields=[_field(enum=["postgres", "mysql"])]))
        assert '  - **Allowed values:** `"postgres"`, `"mysql"`\n' in output

    def test_array_constraints(self):
        field = _field(type="string[]", min_items=1, max_items=3, unique_items=True)
        output = render_api_documentation(_doc(spec_fields=[field]))
        assert "  - **Min items:** `1`\n  - **Max items:** `3`\n  - **Unique items:** Yes\n" in output

    def test_multiline_default_is_yaml_block(self):
        output = render_api_documentation(_doc(spec_fields=[_field(default={"a": 1, "b": [1, 2]})]))
        assert "- **Default value**\n  ```yaml\n  a: 1\n  b:\n  - 1\n  - 2\n  ```\n" in output

    def test_mapping_default_spans_lines(self):
        output = render_api_documentation(_doc(spec_fields=[_field(default={"timeout": 30, "retries": 3})]))
        assert "- **Default value**\n  ```yaml\n  timeout: 30\n  retries: 3\n  ```\n" in output

    def test_157_character_description(self):
        description = "d" * 157
        output = render_api_documentation(_doc(spec_fields=[_field(description=description)]))
        cell = "d" * 57 + "..."
        assert len(cell) == 60
        assert f"| {cell} |" in output
        assert f"\n{description}\n" in output

    def test_example_inline(self):
        output = render_api_documentation(_doc(spec_fields=[_field(examples=["10Gi"])]))
        assert "- **Example:** `10Gi`\n" in output

    def test_footnote_syntax_in_description_escaped(self):
        output = render_api_documentation(_doc(spec_fields=[_field(description="Number of replicas[^1] to run")]))
        assert "\nNumber of replicas\\[^1] to run\n" in output

    def test_database_fixture(self):
        output = render_api_documentation(build_api_documentation(load_crds(FIXTURES / "database.yaml")[0]))
        assert output.startswith("# Database\n\nA managed **database** instance.\n\n")
        assert "[the guide](https://example.com/guide)" in output
        assert "- **API version:** `example.com/v1`\n" in output
        assert "| `spec.storage.size`" not in output
        assert "### `spec.users.roles`" in output
        assert "  - **Allowed values:** `\"postgres\"`, `\"mysql\"`\n" in output
        assert output.count(f"{FOOTNOTE}:") == 1
        assert output.endswith("the CEL validation rule: `self == oldSelf`\n")


class TestRenderCombinedDocumentation:
    def test_sorted_table_of_contents(self):
        output = render_combined_documentation([_doc("Zebra"), _doc("Apple"), _doc("Middle")])
        assert output.startswith(
            "# API Documentation\n\n- [Apple](#apple)\n- [Middle](#middle)\n- [Zebra](#zebra)\n\n## Apple\n"
        )
        assert output.index("## Apple") < output.index("## Middle") < output.index("## Zebra")

    def test_sections_shift_one_level(self):
        output = render_combined_documentation([_doc(spec_fields=[_field("spec.a")])])
        assert "\n### Quick Reference\n" in output
        assert "\n### Spec\n" in output
        assert "\n#### `spec.a`\n" in output

    def test_shared_footnotes_defined_once(self):
        immutable = _field("spec.a", immutable="self == oldSelf")
        output = render_combined_documentation([_doc("Apple", [immutable]), _doc("Zebra", [immutable])])
        assert output.count(f"{FOOTNOTE}:") == 1
        assert output.count(FOOTNOTE) == 3
        assert output.rstrip("\n").endswith("`self == oldSelf`")

    def test_block_scalar_rule_shares_footnote(self):
        text = (
            "apiVersion: apiextensions.k8s.io/v1\n"
            "kind: CustomResourceDefinition\n"
            "metadata:\n"
            "  name: gadgets.example.com\n"
            "spec:\n"
            "  group: example.com\n"
            "  names:\n"
            "    kind: Gadget\n"
            "    plural: gadgets\n"
            "  scope: Namespaced\n"
            "  versions:\n"
            "    - name: v1\n"
            "      storage: true\n"
            "      schema:\n"
            "        openAPIV3Schema:\n"
            "          type: object\n"
            "          properties:\n"
            "            spec:\n"
            "              type: object\n"
            "              properties:\n"
            "                name:\n"
            "                  type: string\n"
            "                  x-kubernetes-validations:\n"
            "                    - rule: |\n"
            "                        self == oldSelf\n"
        )
        gadget = build_api_documentation(parse_content(text)[0])
        assert gadget.spec_fields[0].immutable == "self == oldSelf\n"

        one_line = _doc("Apple", [_field("spec.a", immutable="self == oldSelf")])
        output = render_combined_documentation([gadget, one_line])
        assert "\n]" not in output
        assert output.count(f"{FOOTNOTE}:") == 1
        assert output.count(FOOTNOTE) == 3

    def test_empty_input(self):
        assert render_combined_documentation([]) == "# API Documentation\n"


class TestHelpers:
    def test_anchor(self):
        assert anchor("Database") == "database"
        assert anchor("My  Kind") == "my-kind"

    def test_footnote_identifier(self):
        assert footnote_identifier("self == oldSelf") == "immutable_by_CEL_self_==_oldSelf"

    def test_footnote_identifier_collapses_whitespace(self):
        assert footnote_identifier("self == oldSelf\n") == "immutable_by_CEL_self_==_oldSelf"
        assert footnote_identifier("  self  ==\toldSelf ") == "immutable_by_CEL_self_==_oldSelf"

    def test_truncate_description(self):
        assert truncate_description("short", 60) == "short"
        assert truncate_description("a" * 60, 60) == "a" * 60
        assert truncate_description("a" * 61, 60) == "a" * 57 + "..."

    def test_to_yaml(self):
        assert to_yaml(3) == "3"
        assert to_yaml("10Gi") == "10Gi"
        assert to_yaml(True) == "true"
        assert to_yaml({"a": 1}) == "a: 1"
        assert to_yaml(["x", "y"]) == "- x\n- y"
