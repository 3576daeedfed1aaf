"""
tests/test_models.py
Tests for the schema descriptors in crudgen.models and the naming helpers
in crudgen.utils they rely on.
"""

from __future__ import annotations

import pytest

from crudgen.models import Column, OrmTag, Table
from crudgen.utils import (
    ask_for_confirmation,
    camel_case,
    count_lines,
    go_file_stem,
    lower_camel_case,
    url_style,
)


class TestNaming:
    @pytest.mark.parametrize(
        "name, expected",
        [
            ("user_profile", "UserProfile"),
            ("user_ID", "UserID"),
            ("createdAt", "CreatedAt"),
            ("a__b", "AB"),
        ],
    )
    def test_camel_case(self, name: str, expected: str) -> None:
        assert camel_case(name) == expected

    def test_lower_camel_case(self) -> None:
        assert lower_camel_case("very_important_person") == "veryImportantPerson"
        assert lower_camel_case("Users") == "Users"

    def test_url_style(self) -> None:
        assert url_style("Order_Items") == "order-items"

    def test_go_file_stem(self) -> None:
        # always followed by a role suffix, so a _test table cannot become a test source
        assert go_file_stem("user_test") == "UserTest"
        assert go_file_stem("audit_test_test") == "AuditTestTest"
        assert go_file_stem("orders") == "Orders"

    def test_count_lines(self) -> None:
        assert count_lines("") == 0
        assert count_lines("a\nb\n") == 2
        assert count_lines("a\nb") == 2


class TestConfirmation:
    def test_retries_until_answered(self) -> None:
        answers = iter(["maybe", " YES "])
        prompts = []

        def fake_input(prompt: str) -> str:
            prompts.append(prompt)
            return next(answers)

        assert ask_for_confirmation("Overwrite? ", fake_input) is True
        assert prompts[0] == "Overwrite? "
        assert "yes or no" in prompts[1]

    def test_eof_means_no(self) -> None:
        def closed(prompt: str) -> str:
            raise EOFError

        assert ask_for_confirmation("Overwrite? ", closed) is False


class TestOrmTag:
    def test_option_order(self) -> None:
        tag = OrmTag(
            column="price", size="10", null=True, digits="10", decimals="2",
            unique=True, default="0",
        )
        assert tag.options() == [
            "column:price", "size:10", "null", "digits:10;decimals:2",
            "unique", "default:0",
        ]

    def test_comment_quotes_escaped(self) -> None:
        tag = OrmTag(column="title", comment='the "main" title')
        assert tag.render() == (
            '`json:"title" gorm:"column:title" description:"the \\"main\\" title"`'
        )

    def test_empty_tag(self) -> None:
        assert OrmTag().render() == ""


class TestTable:
    def test_derived_names(self) -> None:
        table = Table(name="order_items", primary_key="id")
        assert table.class_name == "OrderItems"
        assert table.url_name == "order-items"
        assert table.component_dir == "orderItems"
        assert table.has_primary_key

    def test_render_struct_keeps_order(self) -> None:
        table = Table(name="t", columns=[
            Column(name="B", type="int", tag=OrmTag(column="b")),
            Column(name="A", type="string", tag=OrmTag(column="a")),
        ])
        assert table.render_struct() == (
            "type T struct {\n"
            'B int `json:"b" gorm:"column:b"`\n'
            'A string `json:"a" gorm:"column:a"`\n'
            "}\n"
        )

    def test_audit_columns(self) -> None:
        assert Column(name="UpdatedBy", type="int").is_audit
        assert not Column(name="Updated", type="int").is_audit
