import asyncio

import pytest

from fxconvert.core.errors import FetchFailure, InvalidAmount
from fxconvert.services.orchestrator import (
    ConversionOrchestrator,
    ConversionState as S,
    parse_amount,
)

from .fakes import RecordingRateClient, snapshot

USD_LABEL = "US Dollar (USD)"
EUR_LABEL = "Euro (EUR)"


def _run(orchestrator, amount="100", from_label=USD_LABEL, to_label=EUR_LABEL):
    return asyncio.run(orchestrator.run(amount, from_label, to_label))


@pytest.mark.parametrize("raw", ["100", " 12.5 ", "0", "1e3"])
def test_parse_amount_accepts_numbers(raw):
    assert parse_amount(raw) == float(raw)


@pytest.mark.parametrize("raw", ["abc", "", "-5", "nan", "inf", "1,5"])
def test_parse_amount_rejects_garbage(raw):
    with pytest.raises(InvalidAmount):
        parse_amount(raw)


def test_two_leg_identity_scenario():
    client = RecordingRateClient(
        {
            "USD": snapshot("USD", {"USD": 1.0}),
            "EUR": snapshot("EUR", {"EUR": 1.0}),
        }
    )
    orch = ConversionOrchestrator(client, strategy="two-leg", concurrent_legs=False)

    outcome = _run(orch, "100")

    assert outcome.ok
    assert outcome.result.converted_amount == 100
    assert outcome.text == "100.00 US Dollar (USD) = 100.00 Euro (EUR)"
    assert client.calls == ["USD", "EUR"]
    assert outcome.trail == (S.IDLE, S.FETCHING_FROM, S.FETCHING_TO, S.COMPUTING, S.SUCCESS)


def test_anchored_scenario_uses_one_fetch():
    client = RecordingRateClient({"USD": snapshot("USD", {"USD": 1.0, "EUR": 0.92})})
    orch = ConversionOrchestrator(client)

    outcome = _run(orch, "50")

    assert outcome.ok
    assert outcome.result.converted_amount == pytest.approx(46.0)
    assert outcome.text == "50.00 US Dollar (USD) = 46.00 Euro (EUR)"
    assert client.calls == ["USD"]
    assert outcome.trail == (S.IDLE, S.FETCHING_FROM, S.COMPUTING, S.SUCCESS)


@pytest.mark.parametrize("strategy,concurrent", [("anchored", True), ("two-leg", False), ("two-leg", True)])
def test_invalid_amount_makes_no_network_call(strategy, concurrent):
    client = RecordingRateClient({})
    orch = ConversionOrchestrator(client, strategy=strategy, concurrent_legs=concurrent)

    outcome = _run(orch, "abc")

    assert outcome.state is S.FAILED
    assert outcome.error_kind == "invalid_amount"
    assert outcome.message == "Please enter a valid amount"
    assert client.calls == []
    assert outcome.trail == (S.IDLE, S.FAILED)


def test_first_leg_http_failure_skips_second_leg():
    client = RecordingRateClient(
        {
            "USD": FetchFailure("Not Found", status_code=404, body="missing"),
            "EUR": snapshot("EUR", {"EUR": 1.0}),
        }
    )
    orch = ConversionOrchestrator(client, strategy="two-leg", concurrent_legs=False)

    outcome = _run(orch)

    assert outcome.error_kind == "api_error"
    assert outcome.message == "Error fetching rates: Not Found missing"
    assert client.calls == ["USD"]
    assert outcome.trail == (S.IDLE, S.FETCHING_FROM, S.FAILED)


def test_second_leg_http_failure():
    client = RecordingRateClient(
        {
            "USD": snapshot("USD", {"USD": 1.0}),
            "EUR": FetchFailure("Internal Server Error", status_code=500),
        }
    )
    orch = ConversionOrchestrator(client, strategy="two-leg", concurrent_legs=False)

    outcome = _run(orch)

    assert outcome.error_kind == "api_error"
    assert outcome.trail[-2:] == (S.FETCHING_TO, S.FAILED)


def test_concurrent_legs_report_from_failure_first():
    client = RecordingRateClient(
        {
            "USD": FetchFailure("Bad Gateway", status_code=502),
            "EUR": FetchFailure("Not Found", status_code=404),
        }
    )
    orch = ConversionOrchestrator(client, strategy="two-leg", concurrent_legs=True)

    outcome = _run(orch)

    assert sorted(client.calls) == ["EUR", "USD"]
    assert outcome.message.startswith("Error fetching rates: Bad Gateway")
    assert outcome.trail == (S.IDLE, S.FETCHING_BOTH, S.FAILED)


def test_concurrent_legs_success():
    client = RecordingRateClient(
        {
            "USD": snapshot("USD", {"USD": 1.0, "EUR": 0.92}),
            "EUR": snapshot("EUR", {"EUR": 0.5}),
        }
    )
    orch = ConversionOrchestrator(client, strategy="two-leg", concurrent_legs=True)

    outcome = _run(orch, "10")

    assert outcome.ok
    # two-leg ratio reads the to-leg self rate, not the cross rate
    assert outcome.result.converted_amount == pytest.approx(5.0)
    assert outcome.trail == (S.IDLE, S.FETCHING_BOTH, S.COMPUTING, S.SUCCESS)


@pytest.mark.parametrize("strategy", ["anchored", "two-leg"])
def test_logical_failure_is_generic_error(strategy):
    client = RecordingRateClient(
        {
            "USD": snapshot("USD", None, result="error"),
            "EUR": snapshot("EUR", {"EUR": 1.0}),
        }
    )
    orch = ConversionOrchestrator(client, strategy=strategy)

    outcome = _run(orch)

    assert outcome.error_kind == "generic_fetch_error"
    assert outcome.message == "Error fetching exchange rates. Please try again."
    assert outcome.trail[-2:] == (S.COMPUTING, S.FAILED)


def test_zero_rate_is_reported():
    client = RecordingRateClient({"USD": snapshot("USD", {"USD": 0.0, "EUR": 0.92})})
    outcome = _run(ConversionOrchestrator(client), "10")

    assert outcome.error_kind == "zero_rate"
    assert "USD" in outcome.message


def test_unexpected_exception_becomes_message():
    client = RecordingRateClient({"USD": RuntimeError("kaboom")})
    outcome = _run(ConversionOrchestrator(client), "10")

    assert outcome.error_kind == "unexpected"
    assert outcome.message == "An error occurred: kaboom"


def test_unknown_label_flows_through_as_code():
    client = RecordingRateClient({"Mystery": snapshot("Mystery", None, result="error")})
    outcome = _run(ConversionOrchestrator(client), "1", from_label="Mystery")

    assert client.calls == ["Mystery"]
    assert outcome.error_kind == "generic_fetch_error"


def test_target_missing_from_table_fails_like_two_leg():
    table = {"USD": snapshot("USD", {"USD": 1.0, "EUR": 0.92})}
    anchored = _run(ConversionOrchestrator(RecordingRateClient(dict(table))), "100", to_label="Swiss Franc (CHF)")
    two_leg = _run(
        ConversionOrchestrator(
            RecordingRateClient({**table, "Swiss Franc (CHF)": snapshot("Swiss Franc (CHF)", None, result="error")}),
            strategy="two-leg",
        ),
        "100",
        to_label="Swiss Franc (CHF)",
    )

    assert anchored.state is S.FAILED
    assert anchored.error_kind == "generic_fetch_error"
    assert anchored.ok == two_leg.ok
    assert anchored.trail == (S.IDLE, S.FETCHING_FROM, S.COMPUTING, S.FAILED)


def test_anchored_same_currency_without_self_entry():
    client = RecordingRateClient({"EUR": snapshot("EUR", {"USD": 1.087})})
    outcome = _run(ConversionOrchestrator(client), "7", from_label=EUR_LABEL, to_label=EUR_LABEL)

    assert outcome.ok
    assert outcome.result.converted_amount == pytest.approx(7.0)


def test_unknown_strategy_rejected():
    with pytest.raises(ValueError):
        ConversionOrchestrator(RecordingRateClient({}), strategy="three-leg")


def test_cancellation_propagates():
    class Hanging(RecordingRateClient):
        async def fetch_latest_rates(self, base_code):
            self.calls.append(base_code)
            await asyncio.Event().wait()

    async def scenario():
        orch = ConversionOrchestrator(Hanging({}))
        task = asyncio.ensure_future(orch.run("1", USD_LABEL, EUR_LABEL))
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(scenario())
