"""Tests for parameter parsing and placeholder substitution."""

from __future__ import annotations

from secops_warden.templating import parse_params, render, substitute

# ---------------------------------------------------------------------------
# parse_params
# ---------------------------------------------------------------------------


class TestParseParams:
    def test_two_pairs_with_spaces(self) -> None:
        assert parse_params("host=example.com, risk=high") == {
            "host": "example.com",
            "risk": "high",
        }

    def test_empty_string(self) -> None:
        assert parse_params("") == {}

    def test_pair_without_equals_is_skipped(self) -> None:
        assert parse_params("host=a,garbage,risk=b") == {"host": "a", "risk": "b"}

    def test_value_keeps_extra_equals(self) -> None:
        assert parse_params("q=a=b") == {"q": "a=b"}

    def test_empty_value(self) -> None:
        assert parse_params("note=") == {"note": ""}

    def test_comma_in_value_splits(self) -> None:
        # No escaping: the trailing fragment has no "=" and is dropped.
        assert parse_params("note=a,b") == {"note": "a"}

    def test_later_duplicate_wins(self) -> None:
        assert parse_params("k=1,k=2") == {"k": "2"}

    def test_empty_key_is_skipped(self) -> None:
        assert parse_params("=x, batch_size=5") == {"batch_size": "5"}


# ---------------------------------------------------------------------------
# substitute
# ---------------------------------------------------------------------------


class TestSubstitute:
    def test_all_three_spellings(self) -> None:
        template = "{{.host}} {{host}} $host"
        assert substitute(template, {"host": "h"}) == "h h h"

    def test_no_placeholders_is_identity(self) -> None:
        text = "SELECT 1 FROM dual"
        assert substitute(text, {"host": "x"}) == text

    def test_unknown_placeholder_left_untouched(self) -> None:
        assert substitute("$host $missing", {"host": "h"}) == "h $missing"

    def test_total_when_every_placeholder_defined(self) -> None:
        template = '{"ip": "$ip", "limit": {{limit}}, "x": "{{.x}}"}'
        result = substitute(template, {"ip": "1.2.3.4", "limit": "5", "x": "y"})
        assert "$" not in result
        assert "{{" not in result
        assert result == '{"ip": "1.2.3.4", "limit": 5, "x": "y"}'

    def test_longer_name_is_not_clobbered_by_prefix(self) -> None:
        result = substitute("$host_id/$host", {"host": "h", "host_id": "42"})
        assert result == "42/h"

    def test_empty_params(self) -> None:
        assert substitute("$a", {}) == "$a"

    def test_empty_key_is_ignored(self) -> None:
        assert substitute("LIMIT $batch_size {{.}}", {"": "x"}) == "LIMIT $batch_size {{.}}"


# ---------------------------------------------------------------------------
# render
# ---------------------------------------------------------------------------


class TestRender:
    def test_render_substitutes_param_string(self) -> None:
        sql = "SELECT * FROM t WHERE ip = '$ip' LIMIT $batch_size"
        assert render(sql, "ip=10.0.0.1,batch_size=5") == (
            "SELECT * FROM t WHERE ip = '10.0.0.1' LIMIT 5"
        )

    def test_render_without_params_returns_template(self) -> None:
        assert render("LIMIT $n", "") == "LIMIT $n"

    def test_render_empty_template(self) -> None:
        assert render("", "a=b") == ""
