import pytest
from fastmcp import Client, FastMCP

from filldisk.controller import FillController, Registry
from filldisk.fill_types import FILL_DATA_FILE, FillResult, StopResult
from filldisk.serve import build_app
from filldisk.tools import ALL_TOOL_CLASSES, StartFillTool, StopFillTool


@pytest.fixture
def tool_controller(fake_channel):
    return FillController(Registry(channel=fake_channel))


def test_start_fill_apply(tool_controller, fill_dir):
    res = StartFillTool._apply(tool_controller, str(fill_dir), size=10)

    assert isinstance(res, FillResult)
    assert res.error is None
    assert res.size_mb == 10
    assert (fill_dir / FILL_DATA_FILE).exists()


def test_start_fill_apply_reports_errors(tool_controller):
    res = StartFillTool._apply(tool_controller, "")

    assert res.error == "--directory flag value is empty"
    assert res.size_mb is None


def test_stop_fill_apply(tool_controller, fill_dir):
    (fill_dir / FILL_DATA_FILE).write_bytes(b"x")

    res = StopFillTool._apply(tool_controller, str(fill_dir))

    assert isinstance(res, StopResult)
    assert res.artifact_removed is True
    assert not (fill_dir / FILL_DATA_FILE).exists()


def test_tool_names_are_unique():
    names = [cls.name for cls in ALL_TOOL_CLASSES]
    assert sorted(names) == ["start_fill", "stop_fill"]


@pytest.mark.asyncio
async def test_build_app_registers_tools(tool_controller):
    app = build_app(tool_controller)
    assert isinstance(app, FastMCP)

    async with Client(app) as client:
        tools = await client.list_tools()

    assert {t.name for t in tools} == {"start_fill", "stop_fill"}
