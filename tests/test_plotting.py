import matplotlib
matplotlib.use("Agg")

from matplotlib.figure import Figure

from fuzzy_controller import angular_adjustment_variable, distance_variable
from plotting import (
    draw_positions,
    draw_time_series,
    end_time,
    export_all_vehicle_types,
    export_controller_memberships,
    plot_membership_functions,
    plot_trajectories,
    save_figure,
    state_at,
)
from simulation import SimulationParams, TrajectoryPoint, run_vehicles
from world_map import default_map


def test_plot_trajectories(tmp_path):
    sim_map = default_map()
    results = run_vehicles(sim_map, ["Heavy", "Agile"], SimulationParams(max_time=1.0), seed=0)
    fig = plot_trajectories(sim_map, {r.vehicle_type: r.trajectory for r in results})

    assert isinstance(fig, Figure)
    ax = fig.axes[0]
    labels = [line.get_label() for line in ax.get_lines()]
    assert "Heavy" in labels
    assert "Agile" in labels
    assert "Target" in labels
    assert ax.get_xlim() == (0.0, 1000.0)

    path = tmp_path / "plots" / "trajectories.png"
    save_figure(fig, str(path))
    assert path.stat().st_size > 0


def test_plot_empty_trajectories():
    fig = plot_trajectories(default_map(), {"Heavy": []})
    labels = [line.get_label() for line in fig.axes[0].get_lines()]
    assert "Heavy" not in labels


def test_plot_membership_functions():
    fig = plot_membership_functions(distance_variable())
    lines = fig.axes[0].get_lines()
    assert [line.get_label() for line in lines] == ["near", "medium", "far"]

    fig = plot_membership_functions(angular_adjustment_variable(1.0), scale=2.0, unit="x")
    xdata = fig.axes[0].get_lines()[0].get_xdata()
    assert xdata[0] == -2.0
    assert xdata[-1] == 2.0


def test_export_controller_memberships(tmp_path):
    paths = export_controller_memberships("heavy", str(tmp_path / "mf"))
    assert len(paths) == 4
    for path in paths:
        assert path.endswith(".png")
        assert (tmp_path / "mf" / path.split("/")[-1]).exists()


def test_export_all_vehicle_types(tmp_path):
    paths = export_all_vehicle_types(str(tmp_path))
    assert len(paths) == 16
    assert len(list(tmp_path.glob("*.png"))) == 16
    assert (tmp_path / "UltraAgile_angular_adjustment.png").exists()


def point(t, x=0.0, angle=90.0, distance=100.0):
    return TrajectoryPoint(t=t, x=x, y=0.0, angle=angle, velocity=1.0, distance_to_target=distance)


def test_state_at():
    points = [point(0.0, x=0.0), point(0.5, x=1.0), point(1.0, x=2.0)]
    assert state_at(points, 0.0).x == 0.0
    assert state_at(points, 0.7).x == 1.0
    assert state_at(points, 1.0).x == 2.0
    assert state_at(points, 5.0).x == 2.0
    assert state_at(points, -1.0).x == 0.0
    assert state_at([], 1.0) is None


def test_end_time():
    assert end_time({"Heavy": [point(0.0), point(2.5)], "Agile": [point(0.0), point(4.0)]}) == 4.0
    assert end_time({"Heavy": []}) == 0.0


def test_draw_positions_follows_time():
    sim_map = default_map()
    trajectories = {
        "Heavy": [point(0.0, x=100.0), point(1.0, x=200.0)],
        "Agile": [point(0.0, x=300.0, angle=0.0)],
        "Standard": [],
    }
    fig = plot_trajectories(sim_map, trajectories)
    ax = fig.axes[0]
    before = len(ax.get_lines())

    artists = draw_positions(ax, trajectories, 1.0)
    # a marker and a heading tick per vehicle with data
    assert len(artists) == 4
    assert len(ax.get_lines()) == before + 4
    assert artists[0].get_xdata()[0] == 200.0
    # heading 0 deg points along +x
    tick = artists[3]
    assert tick.get_xdata()[1] > tick.get_xdata()[0]
    assert tick.get_ydata()[1] == tick.get_ydata()[0]

    for artist in artists:
        artist.remove()
    assert len(ax.get_lines()) == before


def test_draw_time_series():
    fig = Figure()
    ax_distance = fig.add_subplot(211)
    ax_heading = fig.add_subplot(212)
    trajectories = {"Heavy": [point(0.0, distance=100.0), point(1.0, angle=45.0, distance=80.0)]}

    draw_time_series(ax_distance, ax_heading, trajectories, t=0.5)

    distance_lines = ax_distance.get_lines()
    assert distance_lines[0].get_label() == "Heavy"
    assert list(distance_lines[0].get_ydata()) == [100.0, 80.0]
    assert list(ax_heading.get_lines()[0].get_ydata()) == [90.0, 45.0]
    # time cursor
    assert list(distance_lines[-1].get_xdata()) == [0.5, 0.5]

    draw_time_series(ax_distance, ax_heading, {})
    assert len(ax_distance.get_lines()) == 0
