import sys
from pathlib import Path

import pytest

from chainrun.dsl import cmd
from chainrun.model import Step
from chainrun.ui.console import Console, set_console


def record(marker: Path, label: str, exit_code: int = 0, **kwargs) -> Step:
    """A step that appends `label` to `marker`, then exits with `exit_code`."""
    code = (
        f"import sys; open({str(marker)!r}, 'a').write({label!r} + '\\n'); "
        f"sys.exit({exit_code})"
    )
    return cmd(sys.executable, "-c", code, name=label, **kwargs)


def recorded(marker: Path) -> list[str]:
    if not marker.exists():
        return []
    return marker.read_text().splitlines()


@pytest.fixture(autouse=True)
def quiet_console():
    set_console(Console())
    yield


@pytest.fixture
def marker(tmp_path) -> Path:
    return tmp_path / "marker.log"
