import pytest
from fastapi.testclient import TestClient

from league_history.errors import UpstreamUnavailable
from league_history.main import app
from league_history.models.analytics import LeagueTradeAnalysis
from league_history.models.sleeper import League, User
from league_history.services import sleeper_service
from league_history.services.lineage import resolve_lineages
from tests.factories import game, history, ref, season, team

client = TestClient(app)

USERNAME = "dynastyguy"
USER = User(user_id="u1", username=USERNAME, display_name="Dynasty Guy")
ROOT_LEAGUE_ID = "league-2023"


async def fake_get_user(username):
    return USER if username == USERNAME else None


async def fake_get_user_lineages(user_id):
    refs = [ref("league-2023", "Dynasty Bros", 2023), ref("league-2022", "Dynasty Bros", 2022)]
    leagues = {r.league_id: League(league_id=r.league_id, name=r.name, season=str(r.season)) for r in refs}
    return resolve_lineages(refs), leagues


async def fake_load_history(lineage, leagues):
    games_2022 = [game(2022, 1, "alice", 140, "bob", 90), game(2022, 1, "carol", 100, "dave", 95)]
    games_2023 = [game(2023, 1, "alice", 100, "carol", 110), game(2023, 1, "bob", 90, "dave", 80)]
    return history(
        season(2022, games=games_2022, standings=[team("alice", 1, wins=9, rank=1)], champion="alice"),
        season(2023, games=games_2023, standings=[team("alice", 1, wins=7, rank=2)]),
    )


@pytest.fixture(autouse=True)
def fake_sleeper(monkeypatch):
    monkeypatch.setattr(sleeper_service, "get_user", fake_get_user)
    monkeypatch.setattr(sleeper_service, "get_user_lineages", fake_get_user_lineages)
    monkeypatch.setattr(sleeper_service, "load_history", fake_load_history)


def test_unknown_user_is_404():
    response = client.get("/user/nobody/lineages")
    assert response.status_code == 404


def test_get_lineages():
    response = client.get(f"/user/{USERNAME}/lineages")
    assert response.status_code == 200
    data = response.json()
    assert len(data) == 1
    assert data[0]["name"] == "Dynasty Bros"
    assert data[0]["root_league_id"] == ROOT_LEAGUE_ID
    assert [s["season"] for s in data[0]["seasons"]] == [2023, 2022]


def test_unknown_lineage_is_404():
    response = client.get(f"/user/{USERNAME}/lineages/league-2022/records")
    assert response.status_code == 404


def test_get_records():
    response = client.get(f"/user/{USERNAME}/lineages/{ROOT_LEAGUE_ID}/records")
    assert response.status_code == 200
    records = {r["id"]: r for r in response.json()}
    assert records["biggest-blowout"]["holder_id"] == "alice"
    assert records["biggest-blowout"]["value"] == 50
    assert records["most-titles"]["holder_id"] == "alice"


def test_get_blowouts():
    response = client.get(f"/user/{USERNAME}/lineages/{ROOT_LEAGUE_ID}/blowouts", params={"count": 1})
    assert response.status_code == 200
    data = response.json()
    assert len(data["blowouts"]) == 1
    assert data["blowouts"][0]["margin"] == 50


def test_get_luck_for_lineage_and_season():
    response = client.get(f"/user/{USERNAME}/lineages/{ROOT_LEAGUE_ID}/luck")
    assert response.status_code == 200
    assert response.json()["seasons"] == [2022, 2023]

    response = client.get(f"/user/{USERNAME}/lineages/{ROOT_LEAGUE_ID}/luck", params={"season": 2023})
    assert response.json()["scope"] == "season"

    response = client.get(f"/user/{USERNAME}/lineages/{ROOT_LEAGUE_ID}/luck", params={"season": 1999})
    assert response.status_code == 404


def test_trajectory_without_completed_seasons_is_unavailable():
    response = client.get(f"/user/{USERNAME}/lineages/{ROOT_LEAGUE_ID}/trajectory")
    assert response.status_code == 200
    assert response.json()["available"] is False


def test_get_trades(monkeypatch):
    async def fake_lineage_trades(lineage, leagues):
        return LeagueTradeAnalysis(has_data=False)

    monkeypatch.setattr(sleeper_service, "lineage_trades", fake_lineage_trades)
    response = client.get(f"/user/{USERNAME}/lineages/{ROOT_LEAGUE_ID}/trades")
    assert response.status_code == 200
    assert response.json()["has_data"] is False


def test_upstream_failure_is_502(monkeypatch):
    async def failing_load_history(lineage, leagues):
        raise UpstreamUnavailable("https://api.sleeper.app/v1/league/x/users", 503)

    monkeypatch.setattr(sleeper_service, "load_history", failing_load_history)
    response = client.get(f"/user/{USERNAME}/lineages/{ROOT_LEAGUE_ID}/career")
    assert response.status_code == 502
    body = response.json()
    assert body["kind"] == "upstream_unavailable"
    assert "503" in body["reason"]


def test_get_power_rankings_defaults_to_latest_season():
    response = client.get(f"/user/{USERNAME}/lineages/{ROOT_LEAGUE_ID}/power")
    assert response.status_code == 200
    data = response.json()
    assert data["season"] == 2023
    assert [e["user_id"] for e in data["entries"]] == ["alice"]

    response = client.get(f"/user/{USERNAME}/lineages/{ROOT_LEAGUE_ID}/power", params={"season": 2022})
    assert response.json()["season"] == 2022

    response = client.get(f"/user/{USERNAME}/lineages/{ROOT_LEAGUE_ID}/power", params={"season": 1999})
    assert response.status_code == 404
