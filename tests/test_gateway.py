"""Read gateway and typed contract reads."""

from __future__ import annotations

import asyncio

import pytest

from stackspay.errors import DecodingError, EncodingError, TransportFailure
from stackspay.gateway import ReadGateway
from stackspay.test_accounts import ALICE, BOB, CONTRACT_ADDRESS, CONTRACT_NAME
from stackspay.types import Err, ErrCV, NoneCV, Ok, OkCV, StringUtf8CV, UIntCV


def test_query_normalizes_result(endpoint, gateway, record) -> None:
    endpoint.responses["get-company"] = OkCV(record(total_balance=10, name="Acme"))
    result = asyncio.run(gateway.query("get-company", [StringUtf8CV("acme")]))
    assert result == {"total_balance": 10, "name": "Acme"}


def test_query_raw_keeps_discriminator(endpoint, gateway) -> None:
    endpoint.responses["get-company"] = ErrCV(UIntCV(303))
    assert asyncio.run(gateway.query_raw("get-company")) == Err(303)
    endpoint.responses["get-company"] = OkCV(UIntCV(1))
    assert asyncio.run(gateway.query_raw("get-company")) == Ok(1)


@pytest.mark.parametrize(
    "failure",
    [TransportFailure("connection reset"), DecodingError("truncated input"), RuntimeError("bug")],
)
def test_failures_become_none_and_are_logged(endpoint, gateway, caplog, failure) -> None:
    endpoint.responses["get-group"] = failure
    with caplog.at_level("ERROR"):
        assert asyncio.run(gateway.query("get-group")) is None
    assert "get-group" in caplog.text


def test_err_result_is_not_data(endpoint, gateway, caplog) -> None:
    endpoint.responses["get-group"] = ErrCV(UIntCV(404))
    with caplog.at_level("WARNING"):
        assert asyncio.run(gateway.query("get-group")) is None
    assert "404" in caplog.text


def test_sender_defaults(endpoint) -> None:
    endpoint.responses["get-public-group-count"] = UIntCV(0)
    anonymous = ReadGateway(endpoint, CONTRACT_ADDRESS, CONTRACT_NAME)
    connected = ReadGateway(endpoint, CONTRACT_ADDRESS, CONTRACT_NAME, identity=ALICE)

    asyncio.run(anonymous.query("get-public-group-count"))
    asyncio.run(connected.query("get-public-group-count"))
    asyncio.run(connected.query("get-public-group-count", sender=BOB))

    assert [c[2] for c in endpoint.calls] == [CONTRACT_ADDRESS, ALICE, BOB]


def test_block_height_failure_is_none(endpoint, gateway) -> None:
    endpoint.height = TransportFailure("down")
    assert asyncio.run(gateway.block_height()) is None
    endpoint.height = 77
    assert asyncio.run(gateway.block_height()) == 77


def test_query_many_keeps_order(endpoint, gateway) -> None:
    endpoint.responses["a"] = UIntCV(1)
    endpoint.responses["b"] = UIntCV(2)

    async def _run():
        return await gateway.query_many(gateway.query("b"), gateway.query("missing"), gateway.query("a"))

    assert asyncio.run(_run()) == [2, None, 1]


# --- typed reads ---


def test_reader_encodes_arguments(endpoint, reader, record) -> None:
    endpoint.responses["get-member"] = record(payout_position=1)
    member = asyncio.run(reader.get_member("circle", BOB))

    assert member["payout_position"] == 1
    assert member["has_received_payout"] is False
    (call,) = endpoint.called("get-member")
    assert call[1][0] == StringUtf8CV("circle")
    assert str(call[1][1]) == BOB


def test_reader_rejects_bad_arguments_before_network(endpoint, reader) -> None:
    with pytest.raises(EncodingError, match="member"):
        asyncio.run(reader.get_member("circle", "not-a-principal"))
    with pytest.raises(EncodingError):
        asyncio.run(reader.get_contribution("circle", BOB, -1))
    assert endpoint.calls == []


def test_reader_refuses_write_functions(reader) -> None:
    with pytest.raises(ValueError):
        asyncio.run(reader.read("deposit", "circle"))


def test_absent_record_is_none(endpoint, reader) -> None:
    endpoint.responses["get-employee"] = NoneCV()
    assert asyncio.run(reader.get_employee("acme", ALICE)) is None


def test_current_period_accepts_bare_number(endpoint, reader) -> None:
    endpoint.responses["get-current-period"] = OkCV(UIntCV(7))
    period = asyncio.run(reader.get_current_period("acme"))
    assert period["period_number"] == 7


def test_public_group_by_index_resolves_id(endpoint, reader, record) -> None:
    endpoint.responses["get-public-group-by-index"] = record(name="Savers", members_count=3)
    endpoint.map_entries[("public_group_index", UIntCV(0))] = StringUtf8CV("savers-1")

    group = asyncio.run(reader.get_public_group_by_index(0))

    assert group["group_id"] == "savers-1"
    assert group["members_count"] == 3


def test_public_group_id_falls_back(endpoint, reader, record) -> None:
    endpoint.responses["get-public-group-by-index"] = record(name="Savers")
    group = asyncio.run(reader.get_public_group_by_index(4))
    assert group["group_id"] == "group_4"


def test_list_public_groups(endpoint, reader, record) -> None:
    endpoint.responses["get-public-group-count"] = UIntCV(2)
    endpoint.responses["get-public-group-by-index"] = lambda args: record(name=f"g{args[0].value}")

    groups = asyncio.run(reader.list_public_groups())

    assert [g["name"] for g in groups] == ["g0", "g1"]


def test_employee_dashboard_loads_claim_for_current_period(endpoint, reader, record) -> None:
    endpoint.responses["get-company"] = record(name="Acme", owner=BOB)
    endpoint.responses["get-employee"] = record(salary_per_period=100, is_active=True)
    endpoint.responses["get-employee-stats"] = record(total_salary_earned=300, periods_claimed=3)
    endpoint.responses["get-current-period"] = record(period_number=4)
    endpoint.responses["get-period-claim"] = NoneCV()

    dashboard = asyncio.run(reader.load_employee_dashboard("acme", ALICE))

    assert dashboard["company"]["name"] == "Acme"
    assert dashboard["stats"]["total_earned"] == 300
    assert dashboard["claimed"] is False
    (claim_call,) = endpoint.called("get-period-claim")
    assert claim_call[1][2] == UIntCV(4)


def test_employee_dashboard_unknown_period(endpoint, reader, record) -> None:
    endpoint.responses["get-company"] = record(name="Acme")
    dashboard = asyncio.run(reader.load_employee_dashboard("acme", ALICE))
    assert dashboard["period"] is None
    assert dashboard["claimed"] is None
    assert endpoint.called("get-period-claim") == []
