"""
Tests for sap_b1.odata module.
"""

import asyncio
import dataclasses
from datetime import date, datetime
from decimal import Decimal

import pytest
from unittest.mock import AsyncMock

from sap_b1.core.session import ErrorKind, InvalidArgument, ServiceError
from sap_b1.odata.filters import (
    Combinator,
    Contains,
    EndsWith,
    Equal,
    Filter,
    InSet,
    LessThan,
    LessThanOrEqual,
    MoreThan,
    MoreThanOrEqual,
    NotEqual,
    NotInSet,
    StartsWith,
    escape_odata_literal,
    format_key,
    format_literal,
)
from sap_b1.odata.query import Query, _join_csv, encode_component
from sap_b1.odata.resource import Resource

from conftest import BASE, make_response


class TestHelperFunctions:
    """Tests for helper functions."""

    def test_escape_odata_literal(self):
        assert escape_odata_literal("simple") == "simple"
        assert escape_odata_literal("O'Brien") == "O''Brien"
        assert escape_odata_literal("test''double") == "test''''double"

    def test_format_literal(self):
        assert format_literal("O'Brien") == "'O''Brien'"
        assert format_literal(42) == "42"
        assert format_literal(1.5) == "1.5"
        assert format_literal(Decimal("10.25")) == "10.25"
        assert format_literal(True) == "true"
        assert format_literal(False) == "false"
        assert format_literal(None) == "null"
        assert format_literal(date(2024, 1, 31)) == "'2024-01-31'"
        assert format_literal(datetime(2024, 1, 31, 8, 30)) == "'2024-01-31T08:30:00'"

    def test_format_key(self):
        assert format_key(123) == "123"
        assert format_key("AB'C") == "'AB''C'"

    def test_encode_component(self):
        assert encode_component("*") == "*"
        assert encode_component("DocEntry desc") == "DocEntry%20desc"
        assert encode_component("A,B") == "A%2CB"
        assert encode_component("Name eq 'x'") == "Name%20eq%20'x'"
        assert encode_component("a&b=c") == "a%26b%3Dc"

    def test_join_csv(self):
        assert _join_csv(["a", "b", "c"]) == "a,b,c"
        assert _join_csv(["  a  ", "b", "  c"]) == "a,b,c"
        assert _join_csv(["a", "", "c"]) == "a,c"
        assert _join_csv([]) == ""


class TestFilters:
    """Tests for filter compilation."""

    @pytest.mark.parametrize("flt, expected", [
        (Equal("Name", "O'Brien"), "Name eq 'O''Brien'"),
        (NotEqual("CardType", "cCustomer"), "CardType ne 'cCustomer'"),
        (LessThan("DocTotal", 100), "DocTotal lt 100"),
        (LessThanOrEqual("DocTotal", 100), "DocTotal le 100"),
        (MoreThan("DocTotal", 99.5), "DocTotal gt 99.5"),
        (MoreThanOrEqual("DocDate", date(2024, 1, 1)), "DocDate ge '2024-01-01'"),
        (Equal("Frozen", False), "Frozen eq false"),
        (Equal("U_Ref", None), "U_Ref eq null"),
    ])
    def test_comparisons(self, flt, expected):
        assert flt.compile() == expected

    @pytest.mark.parametrize("flt, expected", [
        (StartsWith("CardName", "O'B"), "startswith(CardName,'O''B')"),
        (EndsWith("CardName", "Ltd"), "endswith(CardName,'Ltd')"),
        (Contains("CardName", "and"), "contains(CardName,'and')"),
        (StartsWith("ItemCode", 12), "startswith(ItemCode,'12')"),
    ])
    def test_string_functions_always_quote_once(self, flt, expected):
        assert flt.compile() == expected

    def test_in_set(self):
        assert InSet("Id", [1, 2, 3]).compile() == "(Id eq 1 or Id eq 2 or Id eq 3)"

    def test_in_set_strings(self):
        assert InSet("CardCode", ["C1", "O'B"]).compile() == "(CardCode eq 'C1' or CardCode eq 'O''B')"

    def test_in_set_single_value(self):
        assert InSet("Id", [7]).compile() == "(Id eq 7)"

    def test_not_in_set(self):
        assert NotInSet("Id", [1, "a"]).compile() == "(Id ne 1 and Id ne 'a')"

    def test_empty_sets_compile_to_empty_group(self):
        assert InSet("Id", []).compile() == "()"
        assert NotInSet("Id", []).compile() == "()"

    def test_set_values_are_copied(self):
        values = [1, 2]
        flt = InSet("Id", values)
        values.append(3)
        assert flt.values == (1, 2)
        assert flt == InSet("Id", (1, 2))

    def test_str_is_compiled_form(self):
        assert str(Equal("A", 1)) == "A eq 1"

    def test_filters_are_immutable(self):
        flt = Equal("A", 1)
        with pytest.raises(dataclasses.FrozenInstanceError):
            flt.value = 2

    def test_all_variants_are_filters(self):
        for cls in (Equal, NotEqual, LessThan, LessThanOrEqual, MoreThan,
                    MoreThanOrEqual, StartsWith, EndsWith, Contains):
            assert isinstance(cls("F", 1), Filter)
        assert isinstance(InSet("F", []), Filter)
        assert isinstance(NotInSet("F", []), Filter)


class TestQuery:
    """Tests for the Query builder."""

    def test_chaining_returns_builder(self, transport, b1_session):
        q = Query(transport, b1_session, "Orders")
        assert q.select("DocEntry") is q
        assert q.where(Equal("A", 1)) is q
        assert q.or_where(Equal("B", 2)) is q
        assert q.limit(10) is q
        assert q.inline_count() is q
        assert q.order_by("DocEntry") is q

    def test_empty_select_normalizes_to_star(self, transport, b1_session):
        q = Query(transport, b1_session, "Orders").select("")
        assert q.query_string() == "$select=*&"

    def test_select_list(self, transport, b1_session):
        q = Query(transport, b1_session, "Orders").select(["DocEntry", " CardCode "])
        assert q.query_string() == "$select=DocEntry%2CCardCode&"

    def test_scalar_params_keep_insertion_order(self, transport, b1_session):
        q = (
            Query(transport, b1_session, "Orders")
            .select("DocEntry")
            .limit(20, 40)
            .inline_count()
            .order_by("DocDate", "desc")
        )
        assert q.query_string() == (
            "$select=DocEntry&$top=20&$skip=40&$inlinecount=allpages&$orderby=DocDate%20desc&"
        )

    def test_limit_default_skip(self, transport, b1_session):
        q = Query(transport, b1_session, "Orders").limit(5)
        assert q.query_string() == "$top=5&$skip=0&"

    def test_order_by_rejects_unknown_direction(self, transport, b1_session):
        with pytest.raises(InvalidArgument):
            Query(transport, b1_session, "Orders").order_by("DocEntry", "sideways")

    def test_filter_expression_has_no_leading_combinator(self, transport, b1_session):
        q = Query(transport, b1_session, "Orders").where(Equal("A", 1)).or_where(Equal("B", 2))
        assert q.filter_expression() == "A eq 1 or B eq 2"

    def test_first_filter_ignores_its_combinator(self, transport, b1_session):
        q = Query(transport, b1_session, "Orders").or_where(Equal("A", 1)).where(Equal("B", 2))
        assert q.filter_expression() == "A eq 1 and B eq 2"

    def test_filter_query_string(self, transport, b1_session):
        q = (
            Query(transport, b1_session, "Orders")
            .select("*")
            .where(Equal("CardCode", "O'B"))
            .or_where(InSet("DocEntry", [1, 2]))
        )
        assert q.query_string() == (
            "$select=*&$filter=CardCode%20eq%20'O''B'"
            " or (DocEntry%20eq%201%20or%20DocEntry%20eq%202)"
        )

    def test_empty_query_string(self, transport, b1_session):
        assert Query(transport, b1_session, "Orders").query_string() == ""

    @pytest.mark.parametrize("bad", ["A eq 1", None, 42, {"A": 1}])
    def test_where_rejects_non_filters(self, transport, b1_session, bad):
        q = Query(transport, b1_session, "Orders")
        with pytest.raises(InvalidArgument):
            q.where(bad)
        with pytest.raises(TypeError):
            q.or_where(bad)
        assert q.filters == []
        transport.execute.assert_not_called()

    def test_same_filter_in_two_queries(self, transport, b1_session):
        shared = Equal("A", 1)
        q1 = Query(transport, b1_session, "Orders").where(Equal("X", 0)).where(shared)
        q2 = Query(transport, b1_session, "Orders").where(Equal("X", 0)).or_where(shared)
        assert q1.filter_expression() == "X eq 0 and A eq 1"
        assert q2.filter_expression() == "X eq 0 or A eq 1"
        assert q1.filters[1] == (Combinator.AND, shared)
        assert q2.filters[1] == (Combinator.OR, shared)

    def test_find_all(self, transport, b1_session, sample_orders_page):
        transport.execute = AsyncMock(return_value=make_response(200, sample_orders_page))
        q = Query(transport, b1_session, "Orders").select("").where(Equal("A", 1))

        data = asyncio.run(q.find_all())

        assert data["value"][1]["DocEntry"] == 2
        args = transport.execute.call_args
        assert args.args == ("GET", BASE + "Orders?$select=*&$filter=A%20eq%201")
        assert args.kwargs["session"] is b1_session

    def test_find_all_without_params(self, transport, b1_session):
        asyncio.run(Query(transport, b1_session, "Orders").find_all())
        assert transport.execute.call_args.args[1] == BASE + "Orders"

    def test_count(self, transport, b1_session):
        transport.execute = AsyncMock(return_value=make_response(200, "42", {"Content-Type": "text/plain"}))
        q = Query(transport, b1_session, "Orders").where(MoreThan("DocTotal", 10))

        assert asyncio.run(q.count()) == 42
        assert transport.execute.call_args.args[1] == BASE + "Orders/$count?$filter=DocTotal%20gt%2010"

    def test_find_numeric_key(self, transport, b1_session):
        transport.execute = AsyncMock(return_value=make_response(200, '{"DocEntry": 123}'))

        assert asyncio.run(Query(transport, b1_session, "Orders").find(123)) == {"DocEntry": 123}
        assert transport.execute.call_args.args[1] == BASE + "Orders(123)"

    def test_find_string_key(self, transport, b1_session):
        asyncio.run(Query(transport, b1_session, "BusinessPartners").select("CardName").find("AB'C"))
        assert transport.execute.call_args.args[1] == BASE + "BusinessPartners('AB''C')?$select=CardName&"

    def test_non_200_is_service_error(self, transport, b1_session, sap_error_body):
        transport.execute = AsyncMock(return_value=make_response(404, sap_error_body))

        with pytest.raises(ServiceError) as excinfo:
            asyncio.run(Query(transport, b1_session, "Orders").find(1))
        assert excinfo.value.kind is ErrorKind.SERVICE
        assert excinfo.value.response.status_code == 404

    def test_iterate_follows_next_link(self, transport, b1_session):
        transport.execute = AsyncMock(side_effect=[
            make_response(200, '{"value": [{"DocEntry": 1}], "odata.nextLink": "Orders?$skip=1"}'),
            make_response(200, '{"value": [{"DocEntry": 2}], "@odata.nextLink": "Orders?$skip=2"}'),
            make_response(200, '{"value": [{"DocEntry": 3}]}'),
        ])

        async def collect():
            return [page async for page in Query(transport, b1_session, "Orders").iterate()]

        pages = asyncio.run(collect())

        assert pages == [[{"DocEntry": 1}], [{"DocEntry": 2}], [{"DocEntry": 3}]]
        urls = [c.args[1] for c in transport.execute.call_args_list]
        assert urls == [BASE + "Orders", BASE + "Orders?$skip=1", BASE + "Orders?$skip=2"]

    def test_iterate_max_pages(self, transport, b1_session):
        transport.execute = AsyncMock(return_value=make_response(
            200, '{"value": [{"DocEntry": 1}], "odata.nextLink": "Orders?$skip=1"}'
        ))

        async def collect():
            return [page async for page in Query(transport, b1_session, "Orders").iterate(max_pages=1)]

        assert len(asyncio.run(collect())) == 1
        assert transport.execute.call_count == 1

    def test_iterate_stops_on_repeated_link(self, transport, b1_session):
        transport.execute = AsyncMock(return_value=make_response(
            200, '{"value": [{"DocEntry": 1}], "odata.nextLink": "Orders?$skip=1"}'
        ))

        async def collect():
            return [page async for page in Query(transport, b1_session, "Orders").iterate()]

        assert len(asyncio.run(collect())) == 2
        assert transport.execute.call_count == 2


class TestResource:
    """Tests for the Resource client."""

    def test_create(self, transport, b1_session):
        transport.execute = AsyncMock(return_value=make_response(201, '{"DocEntry": 10}'))
        orders = Resource(transport, b1_session, "Orders")

        created = asyncio.run(orders.create({"CardCode": "C20000"}))

        assert created == {"DocEntry": 10}
        args = transport.execute.call_args
        assert args.args == ("POST", BASE + "Orders", {"CardCode": "C20000"})
        assert args.kwargs["session"] is b1_session

    def test_create_requires_201(self, transport, b1_session):
        transport.execute = AsyncMock(return_value=make_response(200, '{"DocEntry": 10}'))

        with pytest.raises(ServiceError) as excinfo:
            asyncio.run(Resource(transport, b1_session, "Orders").create({}))
        assert excinfo.value.kind is ErrorKind.SERVICE

    def test_update(self, transport, b1_session):
        transport.execute = AsyncMock(return_value=make_response(204, ""))

        result = asyncio.run(Resource(transport, b1_session, "Orders").update(5, {"Comments": "rush"}))

        assert result == {}
        assert transport.execute.call_args.args == ("PATCH", BASE + "Orders(5)", {"Comments": "rush"})

    def test_delete_string_key(self, transport, b1_session):
        transport.execute = AsyncMock(return_value=make_response(204, ""))

        asyncio.run(Resource(transport, b1_session, "BusinessPartners").delete("C'1"))

        assert transport.execute.call_args.args == ("DELETE", BASE + "BusinessPartners('C''1')", None)

    def test_action(self, transport, b1_session):
        transport.execute = AsyncMock(return_value=make_response(204, ""))

        asyncio.run(Resource(transport, b1_session, "Orders").action(7, "Close"))

        assert transport.execute.call_args.args == ("POST", BASE + "Orders(7)/Close", {})

    @pytest.mark.parametrize("call", [
        lambda r: r.update(1, {}),
        lambda r: r.delete(1),
        lambda r: r.action(1, "Cancel"),
    ])
    def test_non_204_is_service_error(self, transport, b1_session, call):
        transport.execute = AsyncMock(return_value=make_response(200, "{}"))

        with pytest.raises(ServiceError):
            asyncio.run(call(Resource(transport, b1_session, "Orders")))

    def test_query_builder_is_fresh_and_bound(self, transport, b1_session):
        orders = Resource(transport, b1_session, "Orders")
        q1 = orders.query_builder().where(Equal("A", 1))
        q2 = orders.query_builder()

        assert q1 is not q2
        assert q2.filters == []
        assert q2.resource == "Orders"
        assert q2.session is b1_session
        assert q2.transport is transport
