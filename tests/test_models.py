import pytest
from google.cloud import run_v2

from autoneg_controller.core.models import LabelSelector, ServiceSummary


def test_empty_selector_matches_everything() -> None:
    selector = LabelSelector.parse("")
    assert selector.is_empty
    assert selector.matches({})
    assert selector.matches({"env": "prod"})
    assert selector.matches(None)


def test_equality_and_inequality() -> None:
    selector = LabelSelector.parse("autoneg=true, env!=dev")
    assert selector.matches({"autoneg": "true", "env": "prod"})
    assert selector.matches({"autoneg": "true"})
    assert not selector.matches({"autoneg": "true", "env": "dev"})
    assert not selector.matches({"autoneg": "false"})


def test_double_equals_is_equality() -> None:
    assert LabelSelector.parse("tier==web").matches({"tier": "web"})


def test_existence_clauses() -> None:
    selector = LabelSelector.parse("autoneg,!legacy")
    assert selector.matches({"autoneg": ""})
    assert not selector.matches({"autoneg": "x", "legacy": "1"})
    assert not selector.matches({"other": "x"})


def test_selector_round_trips_to_string() -> None:
    assert str(LabelSelector.parse("a==b, c!=d,e,!f")) == "a=b,c!=d,e,!f"


@pytest.mark.parametrize("selector", ["a=b,", ",a", "=b", "a b=c", "a=b c", "!a=b", "a=!b"])
def test_malformed_selectors(selector) -> None:
    with pytest.raises(ValueError):
        LabelSelector.parse(selector)


def test_service_summary_from_service() -> None:
    service = run_v2.Service(
        name="projects/p/locations/europe-west1/services/frontend",
        labels={"autoneg": "true"},
        uri="https://frontend-abc-ew.a.run.app",
        terminal_condition=run_v2.Condition(state=run_v2.Condition.State.CONDITION_SUCCEEDED),
    )

    summary = ServiceSummary.from_service(service)
    assert summary.name == "frontend"
    assert summary.region == "europe-west1"
    assert summary.labels == {"autoneg": "true"}
    assert summary.status == "CONDITION_SUCCEEDED"
    assert summary.uri == "https://frontend-abc-ew.a.run.app"


def test_service_summary_defaults() -> None:
    summary = ServiceSummary.from_service(run_v2.Service(name="backend"))
    assert summary.name == "backend"
    assert summary.region is None
    assert summary.labels == {}
    assert summary.status == "STATE_UNSPECIFIED"
    assert summary.uri is None
