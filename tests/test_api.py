import pytest

import api
from api import VERSION, create_app
from config import AppConfig


@pytest.fixture
def client():
    app = create_app(AppConfig(max_time=2.0))
    app.config["TESTING"] = True
    return app.test_client()


@pytest.mark.parametrize("url", ["/", "/health"])
def test_health(client, url):
    resp = client.get(url)
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["status"] == "healthy"
    assert data["version"] == VERSION
    assert data["message"]


def test_simulate(client):
    resp = client.post("/api/simulate", json={"vehicle_types": ["Heavy", "agile"], "seed": 3})
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["success"] is True
    assert [v["vehicle_type"] for v in data["vehicles"]] == ["Heavy", "Agile"]
    assert data["total_simulation_time"] >= 2.0
    assert data["message"] == "Simulation completed: 0/2 vehicles arrived successfully"


def test_simulate_defaults(client):
    resp = client.post("/api/simulate")
    assert resp.status_code == 200
    assert len(resp.get_json()["vehicles"]) == 3


def test_simulate_custom_map(client):
    resp = client.post("/api/simulate", json={
        "vehicle_types": ["Standard"], "map_width": 300, "map_height": 300,
        "target_x": 150, "target_y": 250, "max_time": 1, "dt": 0.1,
    })
    assert resp.status_code == 200
    trajectory = resp.get_json()["vehicles"][0]["trajectory"]
    # ten steps of 0.1 s, one more if the accumulated time falls just short of 1 s
    assert len(trajectory) in (10, 11)
    assert trajectory[0]["t"] == pytest.approx(0.1)


@pytest.mark.parametrize("payload", [
    {"vehicle_types": ["Tank"]},
    {"vehicle_types": []},
    {"vehicle_types": "Heavy"},
    {"dt": 0},
    {"max_time": -5},
    {"dt": "fast"},
    {"target_x": 5000},
    {"seed": 1.5},
])
def test_simulate_bad_request(client, payload):
    resp = client.post("/api/simulate", json=payload)
    assert resp.status_code == 400
    data = resp.get_json()
    assert data["error"] == "Bad Request"
    assert data["details"]


def test_simulate_non_object_body(client):
    resp = client.post("/api/simulate", json=[1, 2, 3])
    assert resp.status_code == 400


def test_simulate_unexpected_error(client, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("solver exploded")

    monkeypatch.setattr(api, "run_vehicles", boom)
    resp = client.post("/api/simulate", json={"vehicle_types": ["Heavy"]})
    assert resp.status_code == 500
    assert resp.get_json() == {"error": "Internal Server Error", "details": "solver exploded"}


def test_benchmark(client):
    resp = client.post("/api/benchmark", json={
        "iterations": 2, "vehicle_types": ["Agile"], "threads": 2, "max_time": 1, "seed": 9,
    })
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["success"] is True
    assert data["num_iterations"] == 2
    stats = data["aggregate_stats"]
    assert len(stats) == 1
    assert stats[0]["vehicle_type"] == "Agile"
    assert stats[0]["total_runs"] == 2
    assert data["message"]


@pytest.mark.parametrize("payload", [
    {"iterations": 0},
    {"iterations": "many"},
    {"threads": 0},
    {"vehicle_types": ["Boat"]},
])
def test_benchmark_bad_request(client, payload):
    resp = client.post("/api/benchmark", json=payload)
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "Bad Request"
