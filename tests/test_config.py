"""Tests for configuration loading."""

import pytest

from dagcanvas.config import CanvasConfig, load_config
from dagcanvas.task_graph import TaskGraph


def test_defaults_without_file(tmp_path):
    config = load_config(tmp_path)
    assert config == CanvasConfig(project_path=tmp_path)
    assert config.zoom_step == 0.1
    assert config.storage_path == tmp_path / ".dagcanvas"


def test_load_from_toml(tmp_path):
    (tmp_path / ".dagcanvas.toml").write_text(
        "[view]\nzoom_step = 0.25\n\n"
        "[tasks]\nwidth = 100\nheight = 50\n\n"
        "[edges]\nmargin = 3\n\n"
        "[storage]\nkey = 'board'\ndir = 'state'\n"
    )
    config = load_config(tmp_path)
    assert config.zoom_step == 0.25
    assert (config.task_width, config.task_height) == (100, 50)
    assert config.edge_margin == 3
    assert config.storage_key == "board"
    assert config.storage_path == tmp_path / "state"


def test_invalid_zoom_step(tmp_path):
    (tmp_path / ".dagcanvas.toml").write_text("[view]\nzoom_step = 2\n")
    with pytest.raises(ValueError, match="zoom_step"):
        load_config(tmp_path)


def test_config_drives_new_tasks(project_dir):
    graph = TaskGraph(config=load_config(project_dir))
    task = graph.get_task(graph.create_task((0, 0)))
    assert (task.width, task.height) == (100, 50)
    assert task.at == (-50, -25)


@pytest.mark.parametrize("key", [".x", "a/b", ""])
def test_invalid_storage_key(tmp_path, key):
    (tmp_path / ".dagcanvas.toml").write_text(f"[storage]\nkey = '{key}'\n")
    with pytest.raises(ValueError, match="Invalid storage key"):
        load_config(tmp_path)
