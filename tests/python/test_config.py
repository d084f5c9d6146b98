from __future__ import annotations

from dataclasses import asdict
from pathlib import Path

import pytest
import yaml

from flocksim.sim.core.config import BoidConfig, SimulationConfig, SteeringConfig, load_config

ROOT = Path(__file__).resolve().parents[2]


def test_defaults_match_reference_behavior():
    config = SimulationConfig()
    assert config.boid == BoidConfig(speed=20.0, rotation_rate=3.0, view_radius=50.0, separation_radius=20.0)
    assert config.steering.separation_weight == pytest.approx(0.2)
    assert config.validate() is config


def test_load_config_reads_nested_sections():
    config = load_config(
        {
            "world_width": 1024,
            "seed": 9,
            "boid": {"speed": 35.0, "view_radius": 80.0},
            "steering": {"cohesion_weight": 0.0},
        }
    )
    assert config.world_width == 1024
    assert config.seed == 9
    assert config.boid.speed == 35.0
    assert config.boid.view_radius == 80.0
    assert config.boid.separation_radius == 20.0
    assert config.steering.cohesion_weight == 0.0
    assert config.steering.alignment_weight == SteeringConfig().alignment_weight


def test_from_yaml(tmp_path):
    path = tmp_path / "flock.yaml"
    path.write_text(yaml.safe_dump({"world_height": 480.0, "steering": {"manual_weight": 0.5}}))

    config = SimulationConfig.from_yaml(path)

    assert config.world_height == 480.0
    assert config.steering.manual_weight == 0.5


def test_empty_yaml_gives_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert SimulationConfig.from_yaml(path) == SimulationConfig()


def test_unknown_keys_rejected():
    with pytest.raises(TypeError):
        load_config({"boid": {"mass": 2.0}})


@pytest.mark.parametrize(
    "raw",
    [
        {"world_width": -1.0},
        {"cell_size": 0.0},
        {"time_step": float("nan")},
        {"initial_population": -3},
        {"initial_population": 10, "max_population": 5},
        {"boid": {"view_radius": 0.0}},
        {"boid": {"speed": -1.0}},
        {"steering": {"alignment_weight": -0.1}},
    ],
)
def test_invalid_values_rejected(raw):
    with pytest.raises(ValueError):
        load_config(raw)


@pytest.mark.config_change
def test_shipped_default_yaml_matches_dataclass_defaults():
    raw = yaml.safe_load((ROOT / "configs" / "default.yaml").read_text())
    assert asdict(load_config(raw)) == asdict(SimulationConfig())


@pytest.mark.parametrize(
    "section, name",
    [
        ("boid", "speed"),
        ("boid", "rotation_rate"),
        ("boid", "view_radius"),
        ("boid", "separation_radius"),
        ("steering", "cohesion_weight"),
        ("steering", "alignment_weight"),
        ("steering", "separation_weight"),
        ("steering", "manual_weight"),
    ],
)
@pytest.mark.parametrize("value", [float("nan"), float("inf")])
def test_non_finite_boid_and_steering_values_rejected(section, name, value):
    with pytest.raises(ValueError, match=name):
        load_config({section: {name: value}})
